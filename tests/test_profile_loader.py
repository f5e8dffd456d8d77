from __future__ import annotations

from pathlib import Path

import pytest

from heaterctl.core.errors import ProfileLoadError, ProfileValidationError
from heaterctl.core.profile_loader import load_profiles


def _write_profile(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def test_load_packaged_profile() -> None:
    loaded = load_profiles()
    assert "webasto" in loaded.profiles
    profile = loaded.get("webasto")
    assert profile.match.name_contains == ("Webasto", "WB")
    assert profile.match.address_prefix == ("00:12:",)
    assert profile.transport.service_uuid == "00001101-0000-1000-8000-00805F9B34FB"
    assert profile.transport.channel == 1
    assert profile.transport.read_size == 1024
    assert profile.scan_duration_s == 10.0
    assert loaded.warnings == ()


def test_unknown_profile_id() -> None:
    with pytest.raises(ProfileLoadError, match="Available: webasto"):
        load_profiles().get("missing")


def test_user_profile_override_packaged(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "heaterctl" / "profiles" / "override.yaml",
        """
id: webasto
name: Workshop adapter
match:
  name_contains: ["Thermo Top"]
transport:
  type: rfcomm
  service_uuid: "00001101-0000-1000-8000-00805f9b34fb"
  channel: 3
discovery:
  duration_s: 2.5
""",
    )

    loaded = load_profiles()
    profile = loaded.profiles["webasto"]
    assert profile.name == "Workshop adapter"
    assert profile.match.address_prefix == ()
    assert profile.transport.channel == 3
    assert profile.transport.service_uuid == "00001101-0000-1000-8000-00805F9B34FB"
    assert profile.scan_duration_s == 2.5
    assert any("overrides" in warning for warning in loaded.warnings)


def test_data_dir_profiles_are_loaded(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "data" / "heaterctl" / "profiles" / "eber.yml",
        """
id: eberspaecher
name: Eberspaecher EasyScan
match:
  address_prefix: ["aa:bb:cc"]
transport:
  type: rfcomm
  service_uuid: "00001101-0000-1000-8000-00805F9B34FB"
""",
    )

    profile = load_profiles().get("eberspaecher")
    assert profile.match.address_prefix == ("AA:BB:CC",)
    assert profile.transport.channel == 1


def test_invalid_uuid_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "heaterctl" / "profiles" / "bad.yaml",
        """
id: bad_uuid
name: Bad UUID
match:
  name_contains: ["Bad"]
transport:
  type: rfcomm
  service_uuid: "not-a-uuid"
""",
    )

    with pytest.raises(ProfileValidationError, match="service_uuid"):
        load_profiles()


def test_missing_required_keys_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "heaterctl" / "profiles" / "missing.yaml",
        """
id: missing
name: Missing
match:
  name_contains: ["Missing"]
""",
    )

    with pytest.raises(ProfileValidationError, match="Schema validation failed"):
        load_profiles()


def test_unsupported_transport_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "heaterctl" / "profiles" / "ble.yaml",
        """
id: ble_only
name: BLE only
match:
  name_contains: ["BLE"]
transport:
  type: ble
  service_uuid: "0000ffe0-0000-1000-8000-00805f9b34fb"
""",
    )

    with pytest.raises(ProfileValidationError, match="transport.type"):
        load_profiles()


def test_empty_match_rules_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "heaterctl" / "profiles" / "nomatch.yaml",
        """
id: nomatch
name: No match
match: {}
transport:
  type: rfcomm
  service_uuid: "00001101-0000-1000-8000-00805F9B34FB"
""",
    )

    with pytest.raises(ProfileValidationError, match="name_contains or address_prefix"):
        load_profiles()


def test_bad_address_prefix_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "heaterctl" / "profiles" / "prefix.yaml",
        """
id: prefix
name: Prefix
match:
  address_prefix: ["00-12-"]
transport:
  type: rfcomm
  service_uuid: "00001101-0000-1000-8000-00805F9B34FB"
""",
    )

    with pytest.raises(ProfileValidationError, match="address prefix"):
        load_profiles()


def test_duplicate_yaml_keys_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "heaterctl" / "profiles" / "dup.yaml",
        """
id: dup
name: Duplicate
name: Duplicate again
match:
  name_contains: ["Duplicate"]
transport:
  type: rfcomm
  service_uuid: "00001101-0000-1000-8000-00805F9B34FB"
""",
    )

    with pytest.raises(ProfileValidationError, match="Duplicate key"):
        load_profiles()


def test_bool_like_tokens_stay_strings(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "heaterctl" / "profiles" / "tokens.yaml",
        """
id: tokens
name: Tokens
match:
  name_contains: [ON, Yes]
transport:
  type: rfcomm
  service_uuid: "00001101-0000-1000-8000-00805F9B34FB"
""",
    )

    assert load_profiles().get("tokens").match.name_contains == ("ON", "Yes")
