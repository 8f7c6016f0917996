"""
Access grant repository functions.

Persistence for explicit per-user grants. Callers are trusted internal
components; the admin gate lives in the access service.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from storefront.db import models
from storefront.utils.resources import ResourceRef

_NATIVE_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _resource_filter(query, resource: ResourceRef):
    return query.filter(models.AccessGrant.resource_key == resource.resource_key)


def get_grant(db: Session, user_id: uuid.UUID, resource: ResourceRef) -> Optional[models.AccessGrant]:
    q = db.query(models.AccessGrant).filter(models.AccessGrant.user_id == user_id)
    return _resource_filter(q, resource).first()


def upsert_grant(
    db: Session,
    *,
    user_id: uuid.UUID,
    resource: ResourceRef,
    access_level: str,
    granted_by: Optional[uuid.UUID],
    commit: bool = True,
) -> models.AccessGrant:
    """Insert a grant, or update level and granter of the existing one.

    Uses the dialect's INSERT ... ON CONFLICT on (user_id, resource_key) so
    concurrent grants for the same pair never produce two rows.
    ``commit=False`` flushes into the caller's transaction instead.
    """
    collection_id, category_id, product_id = resource.slots()
    now = models.now_utc()
    insert_fn = _NATIVE_UPSERT_DIALECTS.get(db.get_bind().dialect.name)

    if insert_fn is not None:
        stmt = insert_fn(models.AccessGrant).values(
            id=uuid.uuid4(),
            user_id=user_id,
            collection_id=collection_id,
            category_id=category_id,
            product_id=product_id,
            access_level=access_level,
            granted_by=granted_by,
            resource_key=resource.resource_key,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "resource_key"],
            set_={
                "access_level": stmt.excluded.access_level,
                "granted_by": stmt.excluded.granted_by,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        db.execute(stmt)
        if commit:
            db.commit()
        grant = get_grant(db, user_id, resource)
        # The statement bypasses the identity map; reload a row loaded earlier
        db.refresh(grant)
        return grant

    # Other dialects: read-then-write, unique constraint still guards duplicates
    grant = get_grant(db, user_id, resource)
    if grant is None:
        grant = models.AccessGrant(
            user_id=user_id,
            collection_id=collection_id,
            category_id=category_id,
            product_id=product_id,
            access_level=access_level,
            granted_by=granted_by,
            resource_key=resource.resource_key,
        )
        db.add(grant)
    else:
        grant.access_level = access_level
        grant.granted_by = granted_by
        grant.updated_at = now
    if commit:
        db.commit()
    else:
        db.flush()
    db.refresh(grant)
    return grant


def delete_grant(db: Session, user_id: uuid.UUID, resource: ResourceRef, *, commit: bool = True) -> bool:
    grant = get_grant(db, user_id, resource)
    if not grant:
        return False
    db.delete(grant)
    if commit:
        db.commit()
    else:
        db.flush()
    return True


def get_grants_for_user(db: Session, user_id: uuid.UUID) -> List[models.AccessGrant]:
    return (
        db.query(models.AccessGrant)
        .filter(models.AccessGrant.user_id == user_id)
        .order_by(models.AccessGrant.created_at)
        .all()
    )


def get_grants_for_resources(
    db: Session, user_id: uuid.UUID, resources: Sequence[ResourceRef]
) -> List[models.AccessGrant]:
    """Return the user's grants matching any of ``resources`` (point lookups on the key)."""
    keys = [r.resource_key for r in resources if r is not None]
    if not keys:
        return []
    return (
        db.query(models.AccessGrant)
        .filter(
            models.AccessGrant.user_id == user_id,
            models.AccessGrant.resource_key.in_(keys),
        )
        .all()
    )


def get_grants_within_collection(db: Session, collection_id: uuid.UUID) -> List[models.AccessGrant]:
    """Grants on a collection or on any category/product beneath it."""
    category_ids = db.query(models.Category.id).filter(models.Category.collection_id == collection_id)
    product_ids = db.query(models.Product.id).filter(models.Product.category_id.in_(category_ids))
    return (
        db.query(models.AccessGrant)
        .filter(
            or_(
                models.AccessGrant.collection_id == collection_id,
                models.AccessGrant.category_id.in_(category_ids),
                models.AccessGrant.product_id.in_(product_ids),
            )
        )
        .order_by(models.AccessGrant.created_at.desc())
        .all()
    )


def get_collection_ids_with_grant(db: Session, user_id: uuid.UUID) -> List[uuid.UUID]:
    """Collections on which the user holds a collection-level grant."""
    rows = (
        db.query(models.AccessGrant.collection_id)
        .filter(
            models.AccessGrant.user_id == user_id,
            models.AccessGrant.collection_id.isnot(None),
        )
        .all()
    )
    return [r.collection_id for r in rows]


def grant_resource(grant: models.AccessGrant) -> ResourceRef:
    return ResourceRef.from_slots(grant.collection_id, grant.category_id, grant.product_id)
