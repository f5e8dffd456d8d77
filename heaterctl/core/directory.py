"""Time-bounded discovery of candidate heater endpoints."""

from __future__ import annotations

import logging
import threading

from heaterctl.core.device_match import DEFAULT_MATCH, list_candidates
from heaterctl.core.model import Endpoint, MatchRules
from heaterctl.transports.base import Transport

DEFAULT_SCAN_DURATION_S = 10.0
LOGGER = logging.getLogger(__name__)


class DeviceDirectory:
    """Holds the candidate endpoints found during the current scan session."""

    def __init__(
        self,
        transport: Transport,
        *,
        rules: MatchRules = DEFAULT_MATCH,
        scan_duration_s: float = DEFAULT_SCAN_DURATION_S,
    ) -> None:
        self._transport = transport
        self._rules = rules
        self.scan_duration_s = scan_duration_s
        self._lock = threading.Lock()
        self._candidates: tuple[Endpoint, ...] = ()
        self._timer: threading.Timer | None = None
        self._done = threading.Event()
        self._done.set()

    @property
    def candidates(self) -> tuple[Endpoint, ...]:
        return self._candidates

    @property
    def scanning(self) -> bool:
        return not self._done.is_set()

    def begin_scan(self) -> tuple[Endpoint, ...]:
        """Start discovery and return the already-paired candidates.

        Discovery ends by itself after ``scan_duration_s``.
        """
        with self._lock:
            if self._timer is not None:
                return self._candidates
            self._done.clear()
            LOGGER.info("Scanning for heater devices for %.0fs", self.scan_duration_s)
            try:
                self._transport.begin_discovery()
                self._candidates = tuple(list_candidates(self._transport.list_paired_endpoints(), self._rules))
            except Exception:
                try:
                    self._transport.end_discovery()
                finally:
                    self._done.set()
                raise
            self._timer = threading.Timer(self.scan_duration_s, self.end_scan)
            self._timer.daemon = True
            self._timer.start()
            return self._candidates

    def end_scan(self) -> tuple[Endpoint, ...]:
        with self._lock:
            timer = self._timer
            self._timer = None
            if timer is None:
                return self._candidates
            if timer is not threading.current_thread():
                timer.cancel()
            try:
                self._transport.end_discovery()
                self._candidates = tuple(list_candidates(self._transport.list_paired_endpoints(), self._rules))
            finally:
                self._done.set()
            LOGGER.info("Scan finished. Found %d device(s)", len(self._candidates))
            return self._candidates

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the running scan window closes."""
        return self._done.wait(timeout)
