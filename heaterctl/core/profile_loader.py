"""Profile loading and validation for YAML-based heater profiles."""

from __future__ import annotations

import json
import logging
import os
import re
import uuid
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from heaterctl.core.errors import ProfileLoadError, ProfileValidationError
from heaterctl.core.model import MatchRules, Profile, TransportSpec

_ADDRESS_PREFIX_RE = re.compile(r"^([0-9A-F]{2}:){0,5}[0-9A-F]{0,2}$")
DEFAULT_PROFILE_ID = "webasto"
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


UniqueKeyLoader.yaml_implicit_resolvers = {
    key: list(value) for key, value in yaml.SafeLoader.yaml_implicit_resolvers.items()
}

# "ON"/"OFF"/"YES" must stay strings: they are plausible name tokens.
for first_char, mappings in list(UniqueKeyLoader.yaml_implicit_resolvers.items()):
    UniqueKeyLoader.yaml_implicit_resolvers[first_char] = [
        (tag, regexp)
        for tag, regexp in mappings
        if tag != "tag:yaml.org,2002:bool"
    ]


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ProfileValidationError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, Profile]
    warnings: tuple[str, ...]

    def get(self, profile_id: str) -> Profile:
        profile = self.profiles.get(profile_id)
        if profile is None:
            available = ", ".join(sorted(self.profiles)) or "<none>"
            raise ProfileLoadError(f"Unknown profile '{profile_id}'. Available: {available}")
        return profile


def _load_schema_validator() -> Any:
    schema_text = resources.files("heaterctl.schemas").joinpath("profile.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _profile_dirs() -> tuple[Path, Path]:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    xdg_data = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local/share"))
    return xdg_config / "heaterctl/profiles", xdg_data / "heaterctl/profiles"


def _read_yaml(path: Path | Traversable) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileLoadError(f"Could not read profile file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ProfileValidationError(f"Profile file {path} must contain a mapping at root")
    return loaded


def _normalize_address_prefix(prefix: str, *, context: str) -> str:
    normalized = prefix.strip().upper()
    if not normalized or not _ADDRESS_PREFIX_RE.match(normalized):
        raise ProfileValidationError(f"{context} must be a colon-separated hex address prefix")
    return normalized


def _normalize_uuid(value: str, *, context: str) -> str:
    try:
        return str(uuid.UUID(value.strip())).upper()
    except ValueError as exc:
        raise ProfileValidationError(f"{context} must be a 128-bit UUID string") from exc


def _build_profile(doc: dict[str, Any], source: Path | Traversable) -> Profile:
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise ProfileValidationError(f"Schema validation failed for {source}{where}: {exc.message}") from exc

    match = doc["match"]
    transport = doc["transport"]
    if not match.get("name_contains") and not match.get("address_prefix"):
        raise ProfileValidationError(
            f"Profile '{doc['id']}' in {source} must define name_contains or address_prefix"
        )

    return Profile(
        id=doc["id"],
        name=doc["name"],
        match=MatchRules(
            name_contains=tuple(match.get("name_contains", [])),
            address_prefix=tuple(
                _normalize_address_prefix(p, context=f"{doc['id']}.match.address_prefix")
                for p in match.get("address_prefix", [])
            ),
        ),
        transport=TransportSpec(
            type=transport["type"],
            service_uuid=_normalize_uuid(
                transport["service_uuid"],
                context=f"{doc['id']}.transport.service_uuid",
            ),
            channel=int(transport.get("channel", 1)),
            read_size=int(transport.get("read_size", 1024)),
        ),
        scan_duration_s=float(doc.get("discovery", {}).get("duration_s", 10.0)),
    )


def _iter_packaged_profile_paths() -> list[Traversable]:
    profile_root = resources.files("heaterctl.profiles")
    return [item for item in profile_root.iterdir() if item.name.endswith((".yml", ".yaml"))]


def _iter_user_profile_paths() -> list[Path]:
    paths: list[Path] = []
    for directory in _profile_dirs():
        if not directory.exists() or not directory.is_dir():
            continue
        paths.extend(sorted(p for p in directory.iterdir() if p.suffix in {".yml", ".yaml"}))
    return paths


def load_profiles() -> LoadedProfiles:
    profiles: dict[str, Profile] = {}
    warnings: list[str] = []

    for path in sorted(_iter_packaged_profile_paths(), key=lambda p: p.name):
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        profiles[profile.id] = profile

    for path in _iter_user_profile_paths():
        doc = _read_yaml(path)
        profile = _build_profile(doc, path)
        if profile.id in profiles:
            warning = f"User profile '{profile.id}' overrides packaged profile"
            LOGGER.warning(warning)
            warnings.append(warning)
        profiles[profile.id] = profile

    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
