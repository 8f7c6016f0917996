import uuid
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from storefront.api.permissions import authorize_wallet_order_access, effective_access_level, has_access
from storefront.services.identity import ANONYMOUS, Principal, WalletIdentity, WalletVerification
from storefront.utils.feature_flags import refresh_feature_flag_cache
from storefront.utils.resources import ResourceRef

LEVELS = ("view", "edit")


def _refs(market):
    return [
        ResourceRef.collection(market["collection"].id),
        ResourceRef.category(market["category"].id),
        ResourceRef.product(market["product"].id),
    ]


def test_no_role_ownership_or_grant_denies_everything(db_session, marketplace, as_principal):
    for principal in (ANONYMOUS, as_principal(marketplace["user"]), as_principal(marketplace["merchant_b"])):
        for ref in _refs(marketplace):
            for level in LEVELS:
                assert has_access(db_session, principal, ref, level) is False


def test_admin_allowed_everywhere(db_session, marketplace, as_principal):
    admin = as_principal(marketplace["admin"])
    for ref in _refs(marketplace) + [ResourceRef.product(uuid.uuid4())]:
        for level in LEVELS:
            assert has_access(db_session, admin, ref, level) is True


def test_owner_edits_nested_resources_without_grants(db_session, marketplace, as_principal, category_factory, product_factory):
    owner = as_principal(marketplace["merchant_a"])
    extra_category = category_factory(marketplace["collection"])
    extra_product = product_factory(extra_category)
    for ref in _refs(marketplace) + [ResourceRef.category(extra_category.id), ResourceRef.product(extra_product.id)]:
        assert has_access(db_session, owner, ref, "edit") is True


def test_user_role_owner_is_symmetric(db_session, user_factory, collection_factory, category_factory, as_principal):
    plain = user_factory(role="user")
    collection = collection_factory(plain)
    category = category_factory(collection)
    assert has_access(db_session, as_principal(plain), ResourceRef.category(category.id), "edit") is True


def test_view_grant_never_satisfies_edit(db_session, marketplace, grant_factory, as_principal):
    user = marketplace["user"]
    for ref in _refs(marketplace):
        grant_factory(user, ref, level="view")
    principal = as_principal(user)
    for ref in _refs(marketplace):
        assert has_access(db_session, principal, ref, "view") is True
        assert has_access(db_session, principal, ref, "edit") is False


def test_collection_grant_covers_descendants(db_session, marketplace, grant_factory, as_principal):
    user = marketplace["user"]
    grant_factory(user, ResourceRef.collection(marketplace["collection"].id), level="view")
    principal = as_principal(user)
    assert has_access(db_session, principal, ResourceRef.category(marketplace["category"].id), "view")
    assert has_access(db_session, principal, ResourceRef.product(marketplace["product"].id), "view")


def test_leaf_grant_does_not_cover_ancestors(db_session, marketplace, grant_factory, as_principal):
    user = marketplace["user"]
    grant_factory(user, ResourceRef.product(marketplace["product"].id), level="edit")
    principal = as_principal(user)
    assert has_access(db_session, principal, ResourceRef.product(marketplace["product"].id), "edit")
    assert not has_access(db_session, principal, ResourceRef.category(marketplace["category"].id), "view")
    assert not has_access(db_session, principal, ResourceRef.collection(marketplace["collection"].id), "view")


def test_highest_level_wins(db_session, marketplace, grant_factory, as_principal):
    user = marketplace["user"]
    grant_factory(user, ResourceRef.product(marketplace["product"].id), level="view")
    grant_factory(user, ResourceRef.collection(marketplace["collection"].id), level="edit")
    assert has_access(db_session, as_principal(user), ResourceRef.product(marketplace["product"].id), "edit")


def test_grant_on_other_collection_does_not_leak(db_session, marketplace, grant_factory, collection_factory, as_principal):
    other = collection_factory(marketplace["merchant_b"])
    grant_factory(marketplace["user"], ResourceRef.collection(other.id), level="edit")
    assert not has_access(db_session, as_principal(marketplace["user"]), ResourceRef.product(marketplace["product"].id), "view")


def test_revoking_grant_removes_access(db_session, marketplace, grant_factory, as_principal):
    from storefront.db.repositories import grants as grant_repo

    user = marketplace["user"]
    ref = ResourceRef.collection(marketplace["collection"].id)
    grant_factory(user, ref, level="edit")
    principal = as_principal(user)
    assert has_access(db_session, principal, ref, "edit")
    grant_repo.delete_grant(db_session, user.id, ref)
    assert not has_access(db_session, principal, ref, "view")


def test_revoking_grant_keeps_owner_and_admin_access(db_session, marketplace, grant_factory, as_principal):
    from storefront.db.repositories import grants as grant_repo

    ref = ResourceRef.collection(marketplace["collection"].id)
    for account in (marketplace["merchant_a"], marketplace["admin"]):
        grant_factory(account, ref, level="view")
        grant_repo.delete_grant(db_session, account.id, ref)
        assert has_access(db_session, as_principal(account), ref, "edit")


def test_unresolvable_resource_denies_non_admin(db_session, marketplace, grant_factory, as_principal):
    principal = as_principal(marketplace["merchant_a"])
    assert not has_access(db_session, principal, ResourceRef.category(uuid.uuid4()), "view")


def test_invalid_inputs_deny(db_session, marketplace, as_principal):
    principal = as_principal(marketplace["merchant_a"])
    ref = ResourceRef.collection(marketplace["collection"].id)
    assert has_access(db_session, None, ref, "view") is False
    assert has_access(db_session, principal, None, "view") is False
    assert has_access(db_session, principal, ref, "owner") is False


def test_store_error_resolves_to_deny(db_session, marketplace, as_principal, caplog):
    principal = as_principal(marketplace["merchant_a"])
    ref = ResourceRef.collection(marketplace["collection"].id)
    with patch(
        "storefront.api.permissions.load_ancestor_collection",
        side_effect=OperationalError("SELECT", {}, Exception("db down")),
    ):
        with caplog.at_level("ERROR", logger="storefront.access"):
            assert has_access(db_session, principal, ref, "view") is False
    assert "denying" in caplog.text


def test_effective_access_level(db_session, marketplace, grant_factory, as_principal):
    user = marketplace["user"]
    ref = ResourceRef.category(marketplace["category"].id)
    assert effective_access_level(db_session, as_principal(user), ref) is None
    grant_factory(user, ref, level="view")
    assert effective_access_level(db_session, as_principal(user), ref) == "view"
    assert effective_access_level(db_session, as_principal(marketplace["merchant_a"]), ref) == "edit"


class TestLegacyCreatedBy:
    @pytest.fixture
    def legacy_collection(self, marketplace, user_factory, collection_factory, category_factory):
        owner = user_factory(role="merchant")
        collection = collection_factory(owner, created_by=marketplace["merchant_b"])
        category = category_factory(collection)
        return collection, category

    def test_ignored_by_default(self, db_session, marketplace, legacy_collection, as_principal):
        _, category = legacy_collection
        assert not has_access(db_session, as_principal(marketplace["merchant_b"]), ResourceRef.category(category.id), "edit")

    def test_honored_for_merchants_when_enabled(self, db_session, marketplace, legacy_collection, as_principal, monkeypatch):
        monkeypatch.setenv("LEGACY_CREATED_BY_OWNERSHIP", "true")
        refresh_feature_flag_cache()
        _, category = legacy_collection
        assert has_access(db_session, as_principal(marketplace["merchant_b"]), ResourceRef.category(category.id), "edit")

    def test_not_honored_for_plain_users(self, db_session, marketplace, user_factory, collection_factory, as_principal, monkeypatch):
        monkeypatch.setenv("LEGACY_CREATED_BY_OWNERSHIP", "true")
        refresh_feature_flag_cache()
        creator = marketplace["user"]
        collection = collection_factory(marketplace["merchant_a"], created_by=creator)
        assert not has_access(db_session, as_principal(creator), ResourceRef.collection(collection.id), "view")


# Scenarios

def test_scenario_a_admin_reads_and_edits_anything(db_session, marketplace, as_principal):
    admin = as_principal(marketplace["admin"])
    assert all(has_access(db_session, admin, ref, level) for ref in _refs(marketplace) for level in LEVELS)


def test_scenario_b_other_merchant_denied(db_session, marketplace, as_principal):
    merchant_b = as_principal(marketplace["merchant_b"])
    assert not has_access(db_session, merchant_b, ResourceRef.collection(marketplace["collection"].id), "view")


def test_scenario_c_view_grant_on_category_cannot_edit_product(db_session, marketplace, grant_factory, as_principal):
    user = marketplace["user"]
    grant_factory(user, ResourceRef.category(marketplace["category"].id), level="view")
    assert not has_access(db_session, as_principal(user), ResourceRef.product(marketplace["product"].id), "edit")


def test_scenario_d_collection_edit_grant_covers_new_product(db_session, marketplace, grant_factory, product_factory, category_factory, as_principal):
    user = marketplace["user"]
    grant_factory(user, ResourceRef.collection(marketplace["collection"].id), level="edit")
    new_category = category_factory(marketplace["collection"])
    new_product = product_factory(new_category)
    assert has_access(db_session, as_principal(user), ResourceRef.product(new_product.id), "edit")


class TestWalletOrderAccess:
    WALLET = "0xC0FFEE"

    def _header_principal(self, verified: bool):
        wallet = WalletIdentity(self.WALLET, "token", WalletVerification.header) if verified else None
        return Principal(user_id=None, role="anonymous", wallet=wallet)

    def test_scenario_e_token_required(self, db_session, marketplace, order_factory):
        from storefront.services.identity import RequestContext, resolve_principal

        order = order_factory(self.WALLET, collection=marketplace["collection"])
        accept = lambda address, token: token == "valid"
        with_token = resolve_principal(
            RequestContext(header_wallet_address=self.WALLET, header_wallet_token="valid"), token_verifier=accept
        )
        without_token = resolve_principal(
            RequestContext(header_wallet_address=self.WALLET), token_verifier=accept
        )
        assert authorize_wallet_order_access(db_session, with_token, order) is True
        assert authorize_wallet_order_access(db_session, without_token, order) is False

    def test_claim_verified_wallet_allowed(self, db_session, marketplace, order_factory, as_principal):
        order = order_factory(self.WALLET, collection=marketplace["collection"])
        principal = as_principal(marketplace["user"], wallet=self.WALLET)
        assert authorize_wallet_order_access(db_session, principal, order)

    def test_other_wallet_denied(self, db_session, marketplace, order_factory, as_principal):
        order = order_factory(self.WALLET, collection=marketplace["collection"])
        principal = as_principal(marketplace["user"], wallet="0xOTHER")
        assert not authorize_wallet_order_access(db_session, principal, order)

    def test_collection_viewers_and_admin_allowed(self, db_session, marketplace, order_factory, grant_factory, as_principal):
        order = order_factory(self.WALLET, collection=marketplace["collection"])
        assert authorize_wallet_order_access(db_session, as_principal(marketplace["admin"]), order)
        assert authorize_wallet_order_access(db_session, as_principal(marketplace["merchant_a"]), order)
        assert not authorize_wallet_order_access(db_session, as_principal(marketplace["merchant_b"]), order)
        grant_factory(marketplace["merchant_b"], ResourceRef.collection(marketplace["collection"].id), level="view")
        assert authorize_wallet_order_access(db_session, as_principal(marketplace["merchant_b"]), order)

    def test_order_without_collection(self, db_session, marketplace, order_factory, as_principal):
        order = order_factory(self.WALLET)
        assert not authorize_wallet_order_access(db_session, as_principal(marketplace["merchant_a"]), order)
        assert authorize_wallet_order_access(db_session, self._header_principal(True), order)
        assert not authorize_wallet_order_access(db_session, self._header_principal(False), order)
        assert not authorize_wallet_order_access(db_session, None, order)
