"""
Catalog read endpoints.

Reads are filtered by the decision engine: visible collections (and what
lies beneath them) form the public storefront; anything else needs view
access. Denied single reads look exactly like missing ones.
"""
from typing import List, Optional
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.db.database import get_db
from storefront.db import models, schemas
from storefront.db.hierarchy import load_ancestor_collection
from storefront.db.repositories import catalog as catalog_repo
from storefront.api.deps import get_principal
from storefront.api.permissions import has_access, readable_collection_ids
from storefront.errors import NotFound
from storefront.services.identity import Principal
from storefront.utils.feature_flags import public_listing_enabled
from storefront.utils.resources import ResourceRef
from storefront.utils.roles import ACCESS_VIEW

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _publicly_listed(collection: Optional[models.Collection]) -> bool:
    return collection is not None and bool(collection.visible) and public_listing_enabled()


def _readable(db: Session, principal: Principal, resource: ResourceRef) -> bool:
    if _publicly_listed(load_ancestor_collection(db, resource)):
        return True
    return has_access(db, principal, resource, ACCESS_VIEW)


@router.get("/collections", response_model=List[schemas.Collection])
def list_collections(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    # Narrow in the query so pages are not emptied by the filter below
    collections = catalog_repo.get_collections(
        db,
        collection_ids=None if principal.is_admin else readable_collection_ids(db, principal),
        include_visible=public_listing_enabled(),
        skip=skip,
        limit=limit,
    )
    return [
        c for c in collections
        if _publicly_listed(c) or has_access(db, principal, ResourceRef.collection(c.id), ACCESS_VIEW)
    ]


@router.get("/collections/{collection_id}", response_model=schemas.Collection)
def get_collection(
    collection_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    collection = catalog_repo.get_collection(db, collection_id)
    if collection is None or not _readable(db, principal, ResourceRef.collection(collection_id)):
        raise NotFound("Collection not found")
    return collection


@router.get("/categories/{category_id}", response_model=schemas.Category)
def get_category(
    category_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    category = catalog_repo.get_category(db, category_id)
    if category is None or not _readable(db, principal, ResourceRef.category(category_id)):
        raise NotFound("Category not found")
    return category


@router.get("/products/{product_id}", response_model=schemas.Product)
def get_product(
    product_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    product = catalog_repo.get_product(db, product_id)
    if product is None or not _readable(db, principal, ResourceRef.product(product_id)):
        raise NotFound("Product not found")
    return product
