import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.db import models
from storefront.db.repositories import grants as grant_repo
from storefront.utils.resources import ResourceRef


def test_upsert_creates_then_updates_in_place(db_session, marketplace):
    user, admin = marketplace["user"], marketplace["admin"]
    ref = ResourceRef.category(marketplace["category"].id)

    first = grant_repo.upsert_grant(db_session, user_id=user.id, resource=ref, access_level="view", granted_by=None)
    second = grant_repo.upsert_grant(db_session, user_id=user.id, resource=ref, access_level="edit", granted_by=admin.id)

    assert first.id == second.id
    assert second.access_level == "edit"
    assert second.granted_by == admin.id
    assert db_session.query(models.AccessGrant).filter_by(user_id=user.id).count() == 1


def test_grant_slots_match_resource(db_session, marketplace):
    user = marketplace["user"]
    ref = ResourceRef.product(marketplace["product"].id)
    grant = grant_repo.upsert_grant(db_session, user_id=user.id, resource=ref, access_level="view", granted_by=None)
    assert grant.collection_id is None
    assert grant.category_id is None
    assert grant.product_id == marketplace["product"].id
    assert grant.resource_key == ref.resource_key
    assert grant_repo.grant_resource(grant) == ref


def test_unique_key_rejects_raw_duplicates(db_session, marketplace):
    user = marketplace["user"]
    ref = ResourceRef.collection(marketplace["collection"].id)
    grant_repo.upsert_grant(db_session, user_id=user.id, resource=ref, access_level="view", granted_by=None)
    db_session.add(models.AccessGrant(
        user_id=user.id,
        collection_id=marketplace["collection"].id,
        access_level="edit",
        resource_key=ref.resource_key,
    ))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_check_constraint_requires_single_slot(db_session, marketplace):
    db_session.add(models.AccessGrant(
        user_id=marketplace["user"].id,
        collection_id=marketplace["collection"].id,
        category_id=marketplace["category"].id,
        access_level="view",
        resource_key="bogus",
    ))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()


def test_delete_missing_grant_is_noop(db_session, marketplace):
    ref = ResourceRef.collection(marketplace["collection"].id)
    assert grant_repo.delete_grant(db_session, marketplace["user"].id, ref) is False


def test_delete_existing_grant(db_session, marketplace):
    user = marketplace["user"]
    ref = ResourceRef.collection(marketplace["collection"].id)
    grant_repo.upsert_grant(db_session, user_id=user.id, resource=ref, access_level="view", granted_by=None)
    assert grant_repo.delete_grant(db_session, user.id, ref) is True
    assert grant_repo.get_grant(db_session, user.id, ref) is None


def test_grants_within_collection_cover_nested_resources(db_session, marketplace, grant_factory, user_factory, collection_factory):
    user = marketplace["user"]
    other_collection = collection_factory(marketplace["merchant_b"])
    grant_factory(user, ResourceRef.collection(marketplace["collection"].id))
    grant_factory(user, ResourceRef.category(marketplace["category"].id))
    grant_factory(user, ResourceRef.product(marketplace["product"].id), level="edit")
    grant_factory(user, ResourceRef.collection(other_collection.id))

    grants = grant_repo.get_grants_within_collection(db_session, marketplace["collection"].id)
    assert len(grants) == 3
    assert {grant_repo.grant_resource(g).kind.value for g in grants} == {"collection", "category", "product"}


def test_grants_cascade_with_resource(db_session, marketplace, grant_factory):
    user = marketplace["user"]
    grant_factory(user, ResourceRef.product(marketplace["product"].id))
    db_session.delete(db_session.get(models.Product, marketplace["product"].id))
    db_session.commit()
    assert grant_repo.get_grants_for_user(db_session, user.id) == []


def test_get_grants_for_resources_ignores_other_users(db_session, marketplace, grant_factory):
    ref = ResourceRef.collection(marketplace["collection"].id)
    grant_factory(marketplace["merchant_b"], ref, level="edit")
    assert grant_repo.get_grants_for_resources(db_session, marketplace["user"].id, [ref]) == []
    assert grant_repo.get_grants_for_resources(db_session, marketplace["user"].id, []) == []
    assert grant_repo.get_grants_for_resources(db_session, uuid.uuid4(), [ref]) == []
