"""Last-known heater telemetry, kept current by connection events."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from heaterctl.core.model import (
    ConnectionState,
    ErrorCode,
    LinkError,
    Status,
    TelemetryEvent,
    Temperature,
    Unrecognized,
    Voltage,
)


@dataclass(frozen=True)
class SnapshotView:
    state: ConnectionState
    temperature: str | None
    voltage: str | None
    status: Status | None
    error: ErrorCode | None
    last_unrecognized: str | None
    last_link_error: LinkError | None


class TelemetrySnapshot:
    """Event sink recording the latest value of each reading.

    Only event delivery mutates the snapshot; readers take an immutable
    ``SnapshotView`` via ``view()``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = ConnectionState.IDLE
        self._temperature: str | None = None
        self._voltage: str | None = None
        self._status: Status | None = None
        self._error: ErrorCode | None = None
        self._unrecognized: str | None = None
        self._link_error: LinkError | None = None

    def on_telemetry(self, event: TelemetryEvent) -> None:
        with self._lock:
            if isinstance(event, Temperature):
                self._temperature = event.value
            elif isinstance(event, Voltage):
                self._voltage = event.value
            elif isinstance(event, Status):
                self._status = event
            elif isinstance(event, ErrorCode):
                self._error = event
            elif isinstance(event, Unrecognized):
                self._unrecognized = event.raw

    def on_state_change(self, old: ConnectionState, new: ConnectionState) -> None:
        with self._lock:
            self._state = new
            if new is ConnectionState.CONNECTING:
                self._temperature = None
                self._voltage = None
                self._status = None
                self._error = None
                self._unrecognized = None
                self._link_error = None

    def on_error(self, error: LinkError) -> None:
        with self._lock:
            self._link_error = error

    def view(self) -> SnapshotView:
        with self._lock:
            return SnapshotView(
                state=self._state,
                temperature=self._temperature,
                voltage=self._voltage,
                status=self._status,
                error=self._error,
                last_unrecognized=self._unrecognized,
                last_link_error=self._link_error,
            )
