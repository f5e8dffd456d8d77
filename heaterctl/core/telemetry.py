"""Decoding of framed heater messages into telemetry events."""

from __future__ import annotations

from heaterctl.core.model import (
    ErrorCode,
    Status,
    TelemetryEvent,
    Temperature,
    Unrecognized,
    Voltage,
)

# Checked in order; the first prefix found anywhere in the frame wins.
_PREFIXES = (
    ("TEMP:", Temperature),
    ("VOLT:", Voltage),
    ("ERROR:", ErrorCode),
    ("STATUS:", Status),
)


def extract_value(data: str, prefix: str) -> str:
    return data.split(prefix, 1)[1].split("\r", 1)[0].strip()


def parse(frame: str) -> TelemetryEvent:
    for prefix, event_cls in _PREFIXES:
        if prefix in frame:
            return event_cls(extract_value(frame, prefix))
    return Unrecognized(frame)
