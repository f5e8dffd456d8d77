"""Core data models used across the protocol, connection, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from heaterctl.core.interpret import interpret_error, interpret_status


@dataclass(frozen=True)
class Endpoint:
    address: str
    name: str | None = None

    @property
    def label(self) -> str:
        return self.name or "<unknown-device>"


class ConnectionState(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTING = "disconnecting"
    FAILED = "failed"


@dataclass(frozen=True)
class Temperature:
    value: str


@dataclass(frozen=True)
class Voltage:
    value: str


@dataclass(frozen=True)
class Status:
    code: str

    @property
    def label(self) -> str:
        return interpret_status(self.code)


@dataclass(frozen=True)
class ErrorCode:
    code: str

    @property
    def label(self) -> str:
        return interpret_error(self.code)


@dataclass(frozen=True)
class Unrecognized:
    raw: str


TelemetryEvent = Union[Temperature, Voltage, Status, ErrorCode, Unrecognized]


class Command(Enum):
    """Logical heater commands, valued by their short logical name."""

    STATUS = "STATUS"
    TEMPERATURE = "TEMP"
    VOLTAGE = "VOLT"
    ERRORS = "ERRORS"
    START = "START"
    STOP = "STOP"
    RESET = "RESET"


@dataclass(frozen=True)
class RawCommand:
    text: str


class LinkErrorKind(Enum):
    CONNECT_FAILED = "connect_failed"
    WRITE_FAILED = "write_failed"
    READ_FAILED = "read_failed"


@dataclass(frozen=True)
class LinkError:
    kind: LinkErrorKind
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class MatchRules:
    name_contains: tuple[str, ...]
    address_prefix: tuple[str, ...]


@dataclass(frozen=True)
class TransportSpec:
    type: str
    service_uuid: str
    channel: int = 1
    read_size: int = 1024


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    match: MatchRules
    transport: TransportSpec
    scan_duration_s: float = 10.0
