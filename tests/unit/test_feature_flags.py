from storefront.utils.feature_flags import (
    get_feature_flags,
    is_feature_enabled,
    legacy_created_by_ownership_enabled,
    public_listing_enabled,
    refresh_feature_flag_cache,
)


def test_defaults():
    flags = get_feature_flags()
    assert flags["legacy_created_by_ownership"] is False
    assert flags["public_listing_enabled"] is True


def test_env_overrides_after_refresh(monkeypatch):
    assert get_feature_flags()["legacy_created_by_ownership"] is False
    monkeypatch.setenv("LEGACY_CREATED_BY_OWNERSHIP", "yes")
    monkeypatch.setenv("STOREFRONT_PUBLIC_LISTING", "off")
    # Cached until refreshed
    assert legacy_created_by_ownership_enabled() is False
    refresh_feature_flag_cache()
    assert legacy_created_by_ownership_enabled() is True
    assert public_listing_enabled() is False
    assert is_feature_enabled("legacy_created_by_ownership")


def test_unrecognized_value_keeps_default(monkeypatch):
    monkeypatch.setenv("LEGACY_CREATED_BY_OWNERSHIP", "maybe")
    refresh_feature_flag_cache()
    assert legacy_created_by_ownership_enabled() is False
