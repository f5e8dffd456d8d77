"""RFCOMM transport implementation using Python sockets and bluetoothctl."""

from __future__ import annotations

import logging
import re
import socket
import subprocess
from collections.abc import Sequence

from heaterctl.core.errors import (
    ConnectFailedError,
    DeviceDiscoveryError,
    TransportUnavailableError,
)
from heaterctl.core.model import Endpoint

_DEVICE_LINE_RE = re.compile(r"^Device\s+([0-9A-F:]{17})(?:\s+(.+))?$", re.IGNORECASE)
LOGGER = logging.getLogger(__name__)


class RFCOMMStream:
    """Blocking byte stream over a connected RFCOMM socket."""

    def __init__(self, bt_socket: socket.socket) -> None:
        self._socket = bt_socket
        self._closed = False

    def read(self, size: int) -> bytes:
        return self._socket.recv(size)

    def write(self, data: bytes) -> None:
        self._socket.sendall(data)

    def flush(self) -> None:
        # sendall() leaves nothing buffered on our side.
        pass

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            # shutdown() wakes a recv() blocked in another thread; close() alone may not.
            self._socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self._socket.close()


class RFCOMMTransport:
    def __init__(self, *, channel: int = 1) -> None:
        self.channel = channel
        self._scan_process: subprocess.Popen[bytes] | None = None

    def check_available(self) -> None:
        if not hasattr(socket, "AF_BLUETOOTH") or not hasattr(socket, "BTPROTO_RFCOMM"):
            raise TransportUnavailableError(
                "This Python build does not expose Bluetooth socket APIs (AF_BLUETOOTH/BTPROTO_RFCOMM)."
            )

    def open_stream(self, endpoint: Endpoint, service_id: str) -> RFCOMMStream:
        try:
            af_bluetooth = socket.AF_BLUETOOTH
            btproto_rfcomm = socket.BTPROTO_RFCOMM
        except AttributeError as exc:
            raise TransportUnavailableError(
                "This Python build does not expose Bluetooth socket APIs (AF_BLUETOOTH/BTPROTO_RFCOMM)."
            ) from exc

        try:
            bt_socket = socket.socket(af_bluetooth, socket.SOCK_STREAM, btproto_rfcomm)
        except OSError as exc:
            raise ConnectFailedError(f"Could not create RFCOMM socket: {exc}") from exc

        LOGGER.debug(
            "Opening RFCOMM stream to %s on channel %d (service %s)",
            endpoint.address,
            self.channel,
            service_id,
        )
        try:
            bt_socket.connect((endpoint.address, self.channel))
        except OSError as exc:
            bt_socket.close()
            raise ConnectFailedError(
                f"RFCOMM connect failed for {endpoint.address} on channel {self.channel}: {exc}"
            ) from exc
        return RFCOMMStream(bt_socket)

    def list_paired_endpoints(self) -> list[Endpoint]:
        return _list_bluetoothctl_devices(
            [
                ["bluetoothctl", "devices", "Paired"],
                ["bluetoothctl", "paired-devices"],
            ]
        )

    def begin_discovery(self) -> None:
        if self._scan_process is not None:
            return
        try:
            self._scan_process = subprocess.Popen(
                ["bluetoothctl", "scan", "on"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except FileNotFoundError as exc:
            raise DeviceDiscoveryError("bluetoothctl is not installed; cannot start discovery") from exc

    def end_discovery(self) -> None:
        process = self._scan_process
        self._scan_process = None
        if process is None:
            return
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()


def _list_bluetoothctl_devices(commands: Sequence[Sequence[str]]) -> list[Endpoint]:
    seen: set[str] = set()
    endpoints: list[Endpoint] = []
    command_errors: list[str] = []
    succeeded = False

    for cmd in commands:
        result = _run_discovery_command(cmd)
        if result is None:
            continue
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if stderr:
                command_errors.append(f"{' '.join(cmd)} -> {stderr}")
            continue

        succeeded = True
        for line in result.stdout.splitlines():
            match = _DEVICE_LINE_RE.match(line.strip())
            if not match:
                continue
            address = match.group(1).upper()
            if address in seen:
                continue
            seen.add(address)
            endpoints.append(Endpoint(address=address, name=_device_name(match.group(2), address)))
        if endpoints:
            return endpoints

    if command_errors and not succeeded:
        joined = " | ".join(command_errors)
        raise DeviceDiscoveryError(
            f"Bluetooth discovery failed. Ensure a working D-Bus/BlueZ session. Details: {joined}"
        )
    return endpoints


def _device_name(raw: str | None, address: str) -> str | None:
    if raw is None:
        return None
    name = raw.strip()
    # bluetoothctl prints the address with dashes when a device has no name.
    if not name or name.upper() == address.replace(":", "-"):
        return None
    return name


def _run_discovery_command(cmd: Sequence[str]) -> subprocess.CompletedProcess[str] | None:
    try:
        return subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError:
        return None
