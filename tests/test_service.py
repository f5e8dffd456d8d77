from __future__ import annotations

from collections.abc import Iterator

import pytest
from fakes import FakeTransport, wait_for

from heaterctl.core.errors import DeviceSelectionError, ProfileLoadError, TransportUnavailableError
from heaterctl.core.model import Command, ConnectionState, Endpoint
from heaterctl.core.service import HeaterService


@pytest.fixture
def service(transport: FakeTransport) -> Iterator[HeaterService]:
    service = HeaterService(transport=transport)
    service.directory.scan_duration_s = 0.01
    yield service
    service.close()


def test_service_uses_profile_settings(service: HeaterService, transport: FakeTransport) -> None:
    assert service.profile.id == "webasto"
    assert transport.calls[0] == "check"
    assert [p.id for p in service.list_profiles()] == ["webasto"]


def test_scan_returns_filtered_candidates(service: HeaterService) -> None:
    assert [e.address for e in service.scan()] == ["AA:BB:CC:DD:EE:01", "00:12:34:56:78:9A"]


def test_resolve_by_name_hint(service: HeaterService) -> None:
    endpoint = service.resolve_endpoint("webasto")
    assert endpoint == Endpoint(address="AA:BB:CC:DD:EE:01", name="Webasto-Heater")


def test_resolve_by_partial_address(service: HeaterService) -> None:
    assert service.resolve_endpoint("00:12").address == "00:12:34:56:78:9A"


def test_full_address_skips_scan(service: HeaterService, transport: FakeTransport) -> None:
    endpoint = service.resolve_endpoint("ff:ff:ff:00:00:02")
    assert endpoint == Endpoint(address="FF:FF:FF:00:00:02")
    assert "begin" not in transport.calls


def test_ambiguous_hint_requires_choice(service: HeaterService) -> None:
    with pytest.raises(DeviceSelectionError, match="Multiple candidate heaters"):
        service.resolve_endpoint(None)


def test_unmatched_hint(service: HeaterService) -> None:
    with pytest.raises(DeviceSelectionError, match="No heater found matching 'phone'"):
        service.resolve_endpoint("phone")


def test_no_candidates(transport: FakeTransport) -> None:
    transport.paired = []
    with HeaterService(transport=transport) as service:
        service.directory.scan_duration_s = 0.01
        with pytest.raises(DeviceSelectionError, match="No heater found"):
            service.resolve_endpoint(None)


def test_connect_send_and_snapshot(service: HeaterService, transport: FakeTransport) -> None:
    transport.preload = ["TEMP:22\rVOLT:12.5\r", "STATUS:2\rERROR:1\r"]
    endpoint = service.resolve_endpoint("webasto")

    assert service.connect(endpoint).result(timeout=2) is True
    assert service.state is ConnectionState.CONNECTED
    assert service.send(Command.ERRORS).result(timeout=2) is True

    assert wait_for(lambda: service.telemetry().error is not None)
    view = service.telemetry()
    assert view.state is ConnectionState.CONNECTED
    assert view.temperature == "22"
    assert view.voltage == "12.5"
    assert view.status is not None and view.status.label == "Running"
    assert view.error is not None and view.error.label == "Overheat"
    assert transport.streams[0].written == [b"ATERRORS\r\n"]

    service.disconnect()
    assert service.state is ConnectionState.IDLE


def test_transport_unavailable_is_fatal(transport: FakeTransport, monkeypatch: pytest.MonkeyPatch) -> None:
    def unavailable() -> None:
        raise TransportUnavailableError("no bluetooth")

    monkeypatch.setattr(transport, "check_available", unavailable)
    with pytest.raises(TransportUnavailableError):
        HeaterService(transport=transport)


def test_unknown_profile(transport: FakeTransport) -> None:
    with pytest.raises(ProfileLoadError):
        HeaterService(transport=transport, profile_id="nope")


def test_close_releases_link_when_scan_cleanup_fails(
    transport: FakeTransport, monkeypatch: pytest.MonkeyPatch
) -> None:
    service = HeaterService(transport=transport)
    service.directory.scan_duration_s = 60
    service.scan(wait=False)
    assert service.connect(Endpoint(address="00:12:34:56:78:9A")).result(timeout=2) is True

    def broken() -> None:
        raise RuntimeError("bluetoothctl hung")

    monkeypatch.setattr(transport, "end_discovery", broken)
    with pytest.raises(RuntimeError):
        service.close()

    assert service.state is ConnectionState.IDLE
    assert transport.streams[0].closed
