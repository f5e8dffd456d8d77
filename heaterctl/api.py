"""Stable public API for building tooling on top of heaterctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from concurrent.futures import Future
from typing import Any

from heaterctl.core.commands import encode
from heaterctl.core.device_match import list_candidates
from heaterctl.core.errors import (
    ConnectFailedError,
    ConnectionBusyError,
    ConnectionStateError,
    DeviceDiscoveryError,
    DeviceSelectionError,
    HeaterctlError,
    NotConnectedError,
    ProfileLoadError,
    ProfileValidationError,
    TransportError,
    TransportUnavailableError,
)
from heaterctl.core.events import EventSink
from heaterctl.core.framing import FrameDecoder
from heaterctl.core.interpret import interpret_error, interpret_status
from heaterctl.core.model import (
    Command,
    ConnectionState,
    Endpoint,
    ErrorCode,
    LinkError,
    LinkErrorKind,
    Profile,
    RawCommand,
    Status,
    TelemetryEvent,
    Temperature,
    Unrecognized,
    Voltage,
)
from heaterctl.core.profile_loader import DEFAULT_PROFILE_ID
from heaterctl.core.service import HeaterService
from heaterctl.core.snapshot import SnapshotView
from heaterctl.core.telemetry import parse
from heaterctl.transports.base import ByteStream, Transport

__all__ = [
    "HeaterctlError",
    "ProfileLoadError",
    "ProfileValidationError",
    "DeviceDiscoveryError",
    "DeviceSelectionError",
    "TransportError",
    "TransportUnavailableError",
    "ConnectFailedError",
    "ConnectionStateError",
    "NotConnectedError",
    "ConnectionBusyError",
    "Command",
    "RawCommand",
    "ConnectionState",
    "Endpoint",
    "Profile",
    "TelemetryEvent",
    "Temperature",
    "Voltage",
    "Status",
    "ErrorCode",
    "Unrecognized",
    "LinkError",
    "LinkErrorKind",
    "SnapshotView",
    "EventSink",
    "FrameDecoder",
    "ByteStream",
    "Transport",
    "encode",
    "parse",
    "list_candidates",
    "interpret_status",
    "interpret_error",
    "Client",
]


class Client:
    """Public client for talking to one heater at a time.

    A `Client` wraps profile loading, device discovery, and the connection
    state machine behind a stable API intended for third-party tools
    (GUI/TUI/services/scripts). Events are delivered to subscribed sinks on a
    dedicated delivery thread, in the order they were produced.
    """

    def __init__(
        self,
        *,
        transport: Transport | None = None,
        profile_id: str = DEFAULT_PROFILE_ID,
    ) -> None:
        self._service = HeaterService(transport=transport, profile_id=profile_id)

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    @property
    def profile(self) -> Profile:
        return self._service.profile

    @property
    def state(self) -> ConnectionState:
        return self._service.state

    def scan(self, *, wait: bool = True) -> list[Endpoint]:
        return self._service.scan(wait=wait)

    def resolve_endpoint(self, device_hint: str | None = None) -> Endpoint:
        return self._service.resolve_endpoint(device_hint)

    def connect(self, endpoint: Endpoint) -> Future[bool]:
        return self._service.connect(endpoint)

    def disconnect(self) -> None:
        self._service.disconnect()

    def send(self, command: Command | RawCommand | str) -> Future[bool]:
        return self._service.send(command)

    def subscribe(self, sink: EventSink) -> None:
        self._service.subscribe(sink)

    def unsubscribe(self, sink: EventSink) -> None:
        self._service.unsubscribe(sink)

    def telemetry(self) -> SnapshotView:
        return self._service.telemetry()

    def close(self) -> None:
        self._service.close()
