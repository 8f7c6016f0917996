"""
Access management API endpoints.

Grant and revoke per-resource access, inspect who can reach a collection,
and transfer collection ownership. Every mutation is re-authorized by
AccessService at the moment it runs.
"""
from typing import List
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from storefront.db.database import get_db
from storefront.db import schemas
from storefront.api.deps import require_principal
from storefront.services.access_service import AccessService
from storefront.services.identity import Principal
from storefront.utils.resources import ResourceRef

router = APIRouter(prefix="/access", tags=["access"])


def _resource_from_payload(payload: schemas.GrantTarget) -> ResourceRef:
    return ResourceRef.from_slots(payload.collection_id, payload.category_id, payload.product_id)


@router.post("/grants", response_model=schemas.Grant, status_code=status.HTTP_200_OK)
def upsert_grant(
    payload: schemas.GrantUpsert,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    service = AccessService(db)
    return service.upsert_grant(principal, payload.user_id, _resource_from_payload(payload), payload.access_level)


@router.delete("/grants")
def revoke_grant(
    payload: schemas.GrantRevoke,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    service = AccessService(db)
    removed = service.revoke_grant(principal, payload.user_id, _resource_from_payload(payload))
    return {"revoked": removed}


@router.get("/users/{user_id}", response_model=List[schemas.UserAccessEntry])
def list_user_access(
    user_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    return AccessService(db).list_user_access(principal, user_id)


@router.get("/collections/{collection_id}", response_model=schemas.CollectionAccessDetails)
def collection_access_details(
    collection_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    return AccessService(db).collection_access_details(principal, collection_id)


@router.post("/collections/{collection_id}/transfer-ownership", response_model=schemas.Collection)
def transfer_ownership(
    collection_id: uuid.UUID,
    payload: schemas.OwnershipTransfer,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    return AccessService(db).transfer_ownership(
        principal,
        collection_id,
        payload.new_owner_user_id,
        preserve_previous_owner_access=payload.preserve_previous_owner_access,
    )
