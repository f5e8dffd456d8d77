from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeTransport, RecordingSink

from heaterctl.core.model import Endpoint


@pytest.fixture(autouse=True)
def isolated_profile_dirs(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(
        paired=[
            Endpoint(address="AA:BB:CC:DD:EE:01", name="Webasto-Heater"),
            Endpoint(address="00:12:34:56:78:9A", name=None),
            Endpoint(address="FF:FF:FF:00:00:01", name="Phone"),
        ]
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
