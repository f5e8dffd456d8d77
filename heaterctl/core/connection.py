"""Connection lifecycle for a single heater link.

``ConnectionManager`` owns the state machine::

    IDLE -> CONNECTING -> CONNECTED -> DISCONNECTING -> IDLE
                 \\             \\
                  +-> FAILED <--+  (I/O failure, back to IDLE after cleanup)

Stream opening and writes run on a single-thread I/O worker. The blocking
read loop runs on its own reader thread, which is the only reader of the
stream. Subscribers receive events through an ``EventDispatcher`` and are
never called on either I/O thread.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from heaterctl.core.commands import encode_bytes
from heaterctl.core.errors import (
    ConnectionBusyError,
    ConnectionStateError,
    NotConnectedError,
    TransportError,
)
from heaterctl.core.events import EventDispatcher
from heaterctl.core.framing import FrameDecoder
from heaterctl.core.model import (
    Command,
    ConnectionState,
    Endpoint,
    LinkError,
    LinkErrorKind,
    RawCommand,
)
from heaterctl.core.telemetry import parse
from heaterctl.transports.base import ByteStream, Transport

SERIAL_PORT_SERVICE_ID = "00001101-0000-1000-8000-00805F9B34FB"
DEFAULT_READ_SIZE = 1024
LOGGER = logging.getLogger(__name__)


@dataclass
class Connection:
    endpoint: Endpoint
    stream: ByteStream

    def close(self) -> None:
        try:
            self.stream.close()
        except Exception as exc:
            LOGGER.debug("Ignoring close failure for %s: %r", self.endpoint.address, exc)


class ConnectionManager:
    def __init__(
        self,
        transport: Transport,
        *,
        service_id: str = SERIAL_PORT_SERVICE_ID,
        read_size: int = DEFAULT_READ_SIZE,
        dispatcher: EventDispatcher | None = None,
    ) -> None:
        self._transport = transport
        self._service_id = service_id
        self._read_size = read_size
        self._events = dispatcher or EventDispatcher()
        self._worker = ThreadPoolExecutor(max_workers=1, thread_name_prefix="heaterctl-io")
        self._lock = threading.RLock()
        self._state = ConnectionState.IDLE
        self._connection: Connection | None = None
        self._pending: Endpoint | None = None
        self._reader: threading.Thread | None = None
        self._closed = False
        # Bumped whenever a connection attempt or link is abandoned, so
        # late results from the worker or reader are recognised as stale.
        self._generation = 0

    def __enter__(self) -> ConnectionManager:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def endpoint(self) -> Endpoint | None:
        with self._lock:
            if self._connection is not None:
                return self._connection.endpoint
            return self._pending

    @property
    def events(self) -> EventDispatcher:
        return self._events

    def subscribe(self, sink: Any) -> None:
        self._events.add(sink)

    def unsubscribe(self, sink: Any) -> None:
        self._events.remove(sink)

    def connect(self, endpoint: Endpoint) -> Future[bool]:
        """Start connecting to ``endpoint``; the future resolves to True once connected."""
        with self._lock:
            if self._closed:
                raise ConnectionStateError("Connection manager is closed")
            if self._state is not ConnectionState.IDLE:
                raise ConnectionBusyError(
                    f"Cannot connect to {endpoint.address}: connection is {self._state.value}"
                )
            self._generation += 1
            generation = self._generation
            self._pending = endpoint
            self._set_state(ConnectionState.CONNECTING)
        LOGGER.info("Connecting to %s (%s)", endpoint.label, endpoint.address)
        return self._worker.submit(self._open, endpoint, generation)

    def disconnect(self) -> None:
        with self._lock:
            if self._state in (ConnectionState.IDLE, ConnectionState.DISCONNECTING):
                return
            self._generation += 1
            connection = self._connection
            self._connection = None
            self._pending = None
            reader = self._reader
            self._reader = None
            self._set_state(ConnectionState.DISCONNECTING)

        try:
            if connection is not None:
                connection.close()
            if reader is not None and reader is not threading.current_thread():
                reader.join()
        finally:
            with self._lock:
                self._set_state(ConnectionState.IDLE)
        if connection is not None:
            LOGGER.info("Disconnected from %s", connection.endpoint.address)

    def send(self, command: Command | RawCommand | str) -> Future[bool]:
        """Queue ``command`` for writing; the future resolves to False on write failure."""
        with self._lock:
            if self._state is not ConnectionState.CONNECTED or self._connection is None:
                raise NotConnectedError("No connection to the heater")
            connection = self._connection
            generation = self._generation
        payload = encode_bytes(command)
        return self._worker.submit(self._write, connection, payload, generation)

    def close(self) -> None:
        """Disconnect and stop the I/O worker and event delivery."""
        with self._lock:
            self._closed = True
        self.disconnect()
        self._worker.shutdown(wait=True)
        self._events.close()

    def _set_state(self, new: ConnectionState) -> None:
        old = self._state
        if old is new:
            return
        self._state = new
        LOGGER.debug("Connection state %s -> %s", old.value, new.value)
        self._events.state_change(old, new)

    def _is_current(self, generation: int) -> bool:
        with self._lock:
            return self._generation == generation and self._state is ConnectionState.CONNECTED

    def _open(self, endpoint: Endpoint, generation: int) -> bool:
        try:
            stream = self._transport.open_stream(endpoint, self._service_id)
        except (OSError, TransportError) as exc:
            self._fail_connect(endpoint, generation, str(exc))
            return False
        except Exception as exc:
            LOGGER.exception("Unexpected error opening stream to %s", endpoint.address)
            self._fail_connect(endpoint, generation, str(exc) or exc.__class__.__name__)
            return False

        with self._lock:
            if self._generation != generation or self._state is not ConnectionState.CONNECTING:
                abandoned = Connection(endpoint, stream)
            else:
                abandoned = None
                self._connection = Connection(endpoint, stream)
                self._pending = None
                self._set_state(ConnectionState.CONNECTED)
                self._reader = threading.Thread(
                    target=self._read_loop,
                    args=(self._connection, generation),
                    name="heaterctl-reader",
                    daemon=True,
                )
                self._reader.start()
        if abandoned is not None:
            LOGGER.debug("Connect to %s completed after disconnect; closing", endpoint.address)
            abandoned.close()
            return False
        LOGGER.info("Connected to %s (%s)", endpoint.label, endpoint.address)
        return True

    def _fail_connect(self, endpoint: Endpoint, generation: int, reason: str) -> None:
        with self._lock:
            if self._generation != generation or self._state is not ConnectionState.CONNECTING:
                return
            self._pending = None
            self._set_state(ConnectionState.FAILED)
            message = f"Connection to {endpoint.address} failed: {reason}"
            LOGGER.warning(message)
            self._events.error(LinkError(LinkErrorKind.CONNECT_FAILED, message))
            self._set_state(ConnectionState.IDLE)

    def _write(self, connection: Connection, payload: bytes, generation: int) -> bool:
        if not self._is_current(generation):
            return False
        try:
            connection.stream.write(payload)
            connection.stream.flush()
        except OSError as exc:
            message = f"Failed to send {payload!r}: {exc}"
            LOGGER.warning(message)
            self._events.error(LinkError(LinkErrorKind.WRITE_FAILED, message))
            return False
        LOGGER.debug("Sent %r", payload)
        return True

    def _read_loop(self, connection: Connection, generation: int) -> None:
        decoder = FrameDecoder()
        while self._is_current(generation):
            try:
                chunk = connection.stream.read(self._read_size)
            except OSError as exc:
                self._fail_read(generation, str(exc) or exc.__class__.__name__)
                return
            except Exception as exc:
                LOGGER.exception("Unexpected error reading from %s", connection.endpoint.address)
                self._fail_read(generation, str(exc) or exc.__class__.__name__)
                return
            if not chunk:
                self._fail_read(generation, "stream closed")
                return
            for frame in decoder.feed(chunk):
                LOGGER.debug("Received frame %r", frame)
                self._events.telemetry(parse(frame))

    def _fail_read(self, generation: int, reason: str) -> None:
        with self._lock:
            if self._generation != generation or self._state is not ConnectionState.CONNECTED:
                return
            self._generation += 1
            connection = self._connection
            self._connection = None
            self._reader = None
            self._set_state(ConnectionState.FAILED)
            message = f"Read from heater failed: {reason}"
            LOGGER.warning(message)
            self._events.error(LinkError(LinkErrorKind.READ_FAILED, message))
        if connection is not None:
            connection.close()
        with self._lock:
            if self._state is ConnectionState.FAILED:
                self._set_state(ConnectionState.IDLE)
