import os
import uuid

import pytest
from sqlalchemy.orm import Session

# Deterministic secrets for the wallet token verifier and the payment channel
os.environ.setdefault("WALLET_TOKEN_SECRET", "test-wallet-secret")
os.environ.setdefault("SERVICE_ROLE_KEY", "test-service-key")

from storefront.db.database import SessionLocal, engine
from storefront.db import models
from storefront.db.repositories import grants as grant_repo
from storefront.services.identity import Principal, WalletIdentity, WalletVerification
from storefront.utils.feature_flags import refresh_feature_flag_cache
from storefront.utils.resources import ResourceRef
from storefront.utils.roles import normalize_profile_role


@pytest.fixture(scope="session", autouse=True)
def create_schema_once():
    """Create all tables once per test session (SQLite in-memory)."""
    models.Base.metadata.create_all(bind=engine)
    yield
    models.Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def clean_data():
    """Delete all rows between tests without dropping metadata."""
    yield
    connection = engine.connect()
    trans = connection.begin()
    for table in reversed(models.Base.metadata.sorted_tables):
        connection.execute(table.delete())
    trans.commit()
    connection.close()


@pytest.fixture(autouse=True)
def _feature_flags(monkeypatch):
    monkeypatch.delenv("LEGACY_CREATED_BY_OWNERSHIP", raising=False)
    monkeypatch.delenv("STOREFRONT_PUBLIC_LISTING", raising=False)
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def user_factory(db_session: Session):
    def _create(email: str = None, role: str = "user", display_name: str = None):
        email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
        user = models.User(email=email, display_name=display_name or email.split("@")[0], role=role)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _create


@pytest.fixture
def collection_factory(db_session: Session):
    def _create(owner, name: str = None, visible: bool = False, created_by=None):
        collection = models.Collection(
            name=name or f"Collection {uuid.uuid4().hex[:6]}",
            owner_user_id=owner.id,
            created_by=created_by.id if created_by is not None else None,
            visible=visible,
        )
        db_session.add(collection)
        db_session.commit()
        db_session.refresh(collection)
        return collection
    return _create


@pytest.fixture
def category_factory(db_session: Session):
    def _create(collection, name: str = None):
        category = models.Category(collection_id=collection.id, name=name or f"Category {uuid.uuid4().hex[:6]}")
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category
    return _create


@pytest.fixture
def product_factory(db_session: Session):
    def _create(category, name: str = None):
        product = models.Product(category_id=category.id, name=name or f"Product {uuid.uuid4().hex[:6]}")
        db_session.add(product)
        db_session.commit()
        db_session.refresh(product)
        return product
    return _create


@pytest.fixture
def order_factory(db_session: Session):
    def _create(wallet_address: str, collection=None, product=None, status: str = "draft"):
        order = models.Order(
            wallet_address=wallet_address,
            collection_id=collection.id if collection is not None else None,
            product_id=product.id if product is not None else None,
            status=status,
        )
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)
        return order
    return _create


@pytest.fixture
def grant_factory(db_session: Session):
    """Write a grant straight to the store, bypassing the admin gate."""
    def _create(user, resource: ResourceRef, level: str = "view", granted_by=None):
        return grant_repo.upsert_grant(
            db_session,
            user_id=user.id,
            resource=resource,
            access_level=level,
            granted_by=granted_by.id if granted_by is not None else None,
        )
    return _create


def principal_for(user, wallet: str = None, verified_by: WalletVerification = WalletVerification.claim) -> Principal:
    identity = None
    if wallet:
        identity = WalletIdentity(address=wallet, token=None, verified_by=verified_by)
    return Principal(
        user_id=user.id,
        role=normalize_profile_role(user.role),
        wallet=identity,
        email=user.email,
    )


@pytest.fixture
def as_principal():
    return principal_for


@pytest.fixture
def marketplace(user_factory, collection_factory, category_factory, product_factory):
    """Admin, two merchants and a plain user; merchant A owns a private collection tree."""
    admin = user_factory("admin@example.com", role="admin")
    merchant_a = user_factory("merchant.a@example.com", role="merchant")
    merchant_b = user_factory("merchant.b@example.com", role="merchant")
    shopper = user_factory("shopper@example.com", role="user")
    collection = collection_factory(merchant_a, name="Tour Merch", visible=False)
    category = category_factory(collection, name="Shirts")
    product = product_factory(category, name="Black Tee")
    return {
        "admin": admin,
        "merchant_a": merchant_a,
        "merchant_b": merchant_b,
        "user": shopper,
        "collection": collection,
        "category": category,
        "product": product,
    }
