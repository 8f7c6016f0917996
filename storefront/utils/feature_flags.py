"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "legacy_created_by_ownership",
    "public_listing_enabled",
]


class FeatureFlagValues(TypedDict):
    legacy_created_by_ownership: bool
    public_listing_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "legacy_created_by_ownership": FeatureFlagDefinition("LEGACY_CREATED_BY_OWNERSHIP", False),
    "public_listing_enabled": FeatureFlagDefinition("STOREFRONT_PUBLIC_LISTING", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    """Return whether the supplied feature flag evaluates to true."""
    return get_feature_flags()[flag]


def legacy_created_by_ownership_enabled() -> bool:
    """Honor collections.created_by as a secondary merchant ownership predicate."""
    return is_feature_enabled("legacy_created_by_ownership")


def public_listing_enabled() -> bool:
    """List visible collections to callers without access."""
    return is_feature_enabled("public_listing_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
