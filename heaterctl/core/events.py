"""Ordered, asynchronous delivery of connection events to subscribers."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Protocol

from heaterctl.core.model import ConnectionState, LinkError, TelemetryEvent

LOGGER = logging.getLogger(__name__)

_STOP = object()


class EventSink(Protocol):
    """Receiver of connection events. Sinks may implement any subset."""

    def on_telemetry(self, event: TelemetryEvent) -> None:
        ...

    def on_state_change(self, old: ConnectionState, new: ConnectionState) -> None:
        ...

    def on_error(self, error: LinkError) -> None:
        ...


class EventDispatcher:
    """Queues events and delivers them to sinks from one delivery thread.

    Events reach every sink in the order they were published, outside the
    threads that produced them.
    """

    def __init__(self, *, name: str = "heaterctl-events") -> None:
        self._name = name
        self._sinks: list[Any] = []
        self._queue: queue.Queue[Any] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def add(self, sink: Any) -> None:
        with self._lock:
            self._sinks.append(sink)

    def remove(self, sink: Any) -> None:
        with self._lock:
            if sink in self._sinks:
                self._sinks.remove(sink)

    def publish(self, method: str, *args: Any) -> None:
        self._ensure_started()
        self._queue.put((method, args))

    def telemetry(self, event: TelemetryEvent) -> None:
        self.publish("on_telemetry", event)

    def state_change(self, old: ConnectionState, new: ConnectionState) -> None:
        self.publish("on_state_change", old, new)

    def error(self, error: LinkError) -> None:
        self.publish("on_error", error)

    def flush(self) -> None:
        """Block until every event published so far has been delivered."""
        self._queue.join()

    def close(self) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._queue.put(_STOP)
        if thread is not threading.current_thread():
            thread.join()

    def _ensure_started(self) -> None:
        with self._lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
            self._thread.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                method, args = item
                self._deliver(method, args)
            finally:
                self._queue.task_done()

    def _deliver(self, method: str, args: tuple[Any, ...]) -> None:
        with self._lock:
            sinks = list(self._sinks)
        for sink in sinks:
            handler = getattr(sink, method, None)
            if handler is None:
                continue
            try:
                handler(*args)
            except Exception:
                LOGGER.exception("Event sink %r failed handling %s", sink, method)
