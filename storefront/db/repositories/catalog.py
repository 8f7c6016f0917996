"""
Catalog read functions.

Catalog writes belong to the catalog service; this module only exposes the
lookups that access checks and enforcement points need.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.db import models


def get_collection(db: Session, collection_id: uuid.UUID) -> Optional[models.Collection]:
    return db.query(models.Collection).filter(models.Collection.id == collection_id).first()


def get_category(db: Session, category_id: uuid.UUID) -> Optional[models.Category]:
    return db.query(models.Category).filter(models.Category.id == category_id).first()


def get_product(db: Session, product_id: uuid.UUID) -> Optional[models.Product]:
    return db.query(models.Product).filter(models.Product.id == product_id).first()


def get_collections(
    db: Session,
    *,
    collection_ids: Optional[Sequence[uuid.UUID]] = None,
    include_visible: bool = False,
    skip: int = 0,
    limit: int = 100,
) -> List[models.Collection]:
    """List collections, optionally narrowed before pagination.

    ``collection_ids=None`` lists everything; otherwise only the given ids,
    plus visible collections when ``include_visible`` is set.
    """
    q = db.query(models.Collection)
    if collection_ids is not None:
        clauses = []
        if collection_ids:
            clauses.append(models.Collection.id.in_(list(collection_ids)))
        if include_visible:
            clauses.append(models.Collection.visible.is_(True))
        if not clauses:
            return []
        q = q.filter(or_(*clauses))
    return (
        q.order_by(models.Collection.created_at, models.Collection.id)
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_collection_ids_owned_by(db: Session, user_id: uuid.UUID, *, include_created_by: bool = False) -> List[uuid.UUID]:
    q = db.query(models.Collection.id).filter(models.Collection.owner_user_id == user_id)
    ids = [r.id for r in q.all()]
    if include_created_by:
        legacy = db.query(models.Collection.id).filter(models.Collection.created_by == user_id).all()
        ids.extend(r.id for r in legacy if r.id not in ids)
    return ids


def set_collection_owner(db: Session, collection: models.Collection, owner_user_id: uuid.UUID) -> models.Collection:
    """Point the collection at a new owner; the caller commits."""
    collection.owner_user_id = owner_user_id
    db.flush()
    return collection
