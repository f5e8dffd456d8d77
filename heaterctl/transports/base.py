"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol

from heaterctl.core.model import Endpoint


class ByteStream(Protocol):
    def read(self, size: int) -> bytes:
        """Block until bytes arrive; return ``b""`` once the stream is closed."""

    def write(self, data: bytes) -> None:
        ...

    def flush(self) -> None:
        ...

    def close(self) -> None:
        """Release the stream; safe to call more than once."""


class Transport(Protocol):
    def check_available(self) -> None:
        """Raise TransportUnavailableError when streams cannot be opened at all."""

    def list_paired_endpoints(self) -> list[Endpoint]:
        ...

    def begin_discovery(self) -> None:
        ...

    def end_discovery(self) -> None:
        ...

    def open_stream(self, endpoint: Endpoint, service_id: str) -> ByteStream:
        """Open a byte stream to ``endpoint`` or raise ConnectFailedError."""
