"""
Hierarchy resolution for the catalog tree.

Every category and product belongs to exactly one collection. All
authorization paths resolve the owning collection through this module
instead of joining the tables ad hoc.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy.orm import Session

from storefront.db import models
from storefront.errors import HierarchyResolutionFailure
from storefront.utils.resources import ResourceKind, ResourceRef

logger = logging.getLogger("storefront.hierarchy")


def _report_orphan(ref: ResourceRef, missing: str) -> None:
    failure = HierarchyResolutionFailure(f"{ref} has no resolvable {missing}")
    logger.warning("hierarchy_integrity: %s", failure)


def _collection_exists(db: Session, collection_id) -> bool:
    return db.query(models.Collection.id).filter(models.Collection.id == collection_id).first() is not None


def resolve_ancestor_collection(db: Session, ref: Optional[ResourceRef]) -> Optional[uuid.UUID]:
    """Return the id of the collection that owns ``ref``.

    Returns None when the resource does not exist or its chain is broken.
    A node that exists but points at a missing parent is logged as a data
    integrity problem; callers still only see None.
    """
    if ref is None:
        return None

    if ref.kind is ResourceKind.collection:
        return ref.id if _collection_exists(db, ref.id) else None

    if ref.kind is ResourceKind.category:
        row = (
            db.query(models.Category.collection_id)
            .filter(models.Category.id == ref.id)
            .first()
        )
        if row is None:
            return None
        if row.collection_id is None or not _collection_exists(db, row.collection_id):
            _report_orphan(ref, "collection")
            return None
        return row.collection_id

    if ref.kind is ResourceKind.product:
        row = (
            db.query(models.Product.category_id)
            .filter(models.Product.id == ref.id)
            .first()
        )
        if row is None:
            return None
        category = (
            db.query(models.Category.collection_id)
            .filter(models.Category.id == row.category_id)
            .first()
        )
        if category is None:
            _report_orphan(ref, "category")
            return None
        if category.collection_id is None or not _collection_exists(db, category.collection_id):
            _report_orphan(ref, "collection")
            return None
        return category.collection_id

    return None


def load_ancestor_collection(db: Session, ref: Optional[ResourceRef]) -> Optional[models.Collection]:
    collection_id = resolve_ancestor_collection(db, ref)
    if collection_id is None:
        return None
    return db.query(models.Collection).filter(models.Collection.id == collection_id).first()
