"""Endpoint filtering for the heater device family."""

from __future__ import annotations

from collections.abc import Iterable

from heaterctl.core.model import Endpoint, MatchRules

DEFAULT_MATCH = MatchRules(name_contains=("Webasto", "WB"), address_prefix=("00:12:",))


def _address_prefix_match(address: str, rules: MatchRules) -> bool:
    upper_address = address.upper()
    return any(upper_address.startswith(prefix.upper()) for prefix in rules.address_prefix)


def _name_contains_match(name: str | None, rules: MatchRules) -> bool:
    if not name:
        return False
    lower_name = name.lower()
    return any(token.lower() in lower_name for token in rules.name_contains)


def is_candidate(endpoint: Endpoint, rules: MatchRules = DEFAULT_MATCH) -> bool:
    return _name_contains_match(endpoint.name, rules) or _address_prefix_match(endpoint.address, rules)


def list_candidates(
    endpoints: Iterable[Endpoint],
    rules: MatchRules = DEFAULT_MATCH,
) -> list[Endpoint]:
    return [endpoint for endpoint in endpoints if is_candidate(endpoint, rules)]
