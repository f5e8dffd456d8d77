"""Service layer used by the CLI and future UI frontends."""

from __future__ import annotations

import re
from concurrent.futures import Future
from typing import Any

from heaterctl.core.connection import ConnectionManager
from heaterctl.core.directory import DeviceDirectory
from heaterctl.core.errors import DeviceSelectionError
from heaterctl.core.model import Command, ConnectionState, Endpoint, Profile, RawCommand
from heaterctl.core.profile_loader import DEFAULT_PROFILE_ID, load_profiles
from heaterctl.core.snapshot import SnapshotView, TelemetrySnapshot
from heaterctl.transports.base import Transport
from heaterctl.transports.rfcomm import RFCOMMTransport

_ADDRESS_RE = re.compile(r"^[0-9A-F]{2}(?::[0-9A-F]{2}){5}$", re.IGNORECASE)


class HeaterService:
    def __init__(
        self,
        *,
        transport: Transport | None = None,
        profile_id: str = DEFAULT_PROFILE_ID,
    ) -> None:
        loaded = load_profiles()
        self.profiles = loaded.profiles
        self.load_warnings = loaded.warnings
        self.profile: Profile = loaded.get(profile_id)
        self.transport = transport or RFCOMMTransport(channel=self.profile.transport.channel)
        self.transport.check_available()
        self.directory = DeviceDirectory(
            self.transport,
            rules=self.profile.match,
            scan_duration_s=self.profile.scan_duration_s,
        )
        self.connection = ConnectionManager(
            self.transport,
            service_id=self.profile.transport.service_uuid,
            read_size=self.profile.transport.read_size,
        )
        self.snapshot = TelemetrySnapshot()
        self.connection.subscribe(self.snapshot)

    def __enter__(self) -> HeaterService:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def list_profiles(self) -> list[Profile]:
        return sorted(self.profiles.values(), key=lambda p: p.id)

    def scan(self, *, wait: bool = True) -> list[Endpoint]:
        """Run a discovery window and return the candidate endpoints."""
        candidates = self.directory.begin_scan()
        if wait:
            self.directory.wait()
            candidates = self.directory.candidates
        return list(candidates)

    def list_candidates(self) -> list[Endpoint]:
        return list(self.directory.candidates)

    def resolve_endpoint(self, device_hint: str | None, *, scan: bool = True) -> Endpoint:
        if device_hint and _ADDRESS_RE.match(device_hint.strip()):
            address = device_hint.strip().upper()
            known = {c.address: c for c in self.list_candidates()}
            return known.get(address, Endpoint(address=address))

        candidates = self.scan() if scan else self.list_candidates()

        if device_hint:
            hint = device_hint.lower()
            candidates = [
                c
                for c in candidates
                if hint in c.address.lower() or (c.name is not None and hint in c.name.lower())
            ]
            if not candidates:
                raise DeviceSelectionError(f"No heater found matching '{device_hint}'")

        if not candidates:
            raise DeviceSelectionError(
                "No heater found. Pair the heater adapter first or pass its address explicitly."
            )

        if len(candidates) > 1:
            candidate_desc = ", ".join(f"{c.address} ({c.label})" for c in candidates)
            raise DeviceSelectionError(
                f"Multiple candidate heaters found: {candidate_desc}. Use a device hint to choose one."
            )

        return candidates[0]

    @property
    def state(self) -> ConnectionState:
        return self.connection.state

    def connect(self, endpoint: Endpoint) -> Future[bool]:
        return self.connection.connect(endpoint)

    def disconnect(self) -> None:
        self.connection.disconnect()

    def send(self, command: Command | RawCommand | str) -> Future[bool]:
        return self.connection.send(command)

    def subscribe(self, sink: Any) -> None:
        self.connection.subscribe(sink)

    def unsubscribe(self, sink: Any) -> None:
        self.connection.unsubscribe(sink)

    def telemetry(self) -> SnapshotView:
        return self.snapshot.view()

    def close(self) -> None:
        try:
            self.directory.end_scan()
        finally:
            self.connection.close()
