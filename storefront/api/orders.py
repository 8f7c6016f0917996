"""
Order endpoints.

Order reads go through authorize_wallet_order_access; status changes go
through the lifecycle guard on the fulfillment channel (signed-in callers)
or the payment channel (service key).
"""
from typing import List
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront.db.database import get_db
from storefront.db import models, schemas
from storefront.db.repositories import orders as order_repo
from storefront.api.deps import get_principal, require_principal, require_system_identity
from storefront.api.permissions import authorize_wallet_order_access, readable_collection_ids
from storefront.errors import NotFound
from storefront.services.identity import Principal
from storefront.services.order_lifecycle import OrderLifecycleService, SystemIdentity

router = APIRouter(prefix="/orders", tags=["orders"])
system_router = APIRouter(prefix="/system/orders", tags=["orders"])


def _load_order(db: Session, order_id: uuid.UUID) -> models.Order:
    order = order_repo.get_order(db, order_id)
    if order is None:
        raise NotFound("Order not found")
    return order


@router.get("", response_model=List[schemas.Order])
def list_orders(
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    candidates = order_repo.get_orders_visible_to(
        db,
        wallet_address=principal.wallet_address,
        collection_ids=readable_collection_ids(db, principal),
        all_orders=principal.is_admin,
        skip=skip,
        limit=limit,
    )
    # Candidate query narrows; the decision engine has the final word
    return [o for o in candidates if authorize_wallet_order_access(db, principal, o)]


@router.get("/{order_id}", response_model=schemas.Order)
def get_order(
    order_id: uuid.UUID,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
):
    order = _load_order(db, order_id)
    if not authorize_wallet_order_access(db, principal, order):
        raise NotFound("Order not found")
    return order


@router.post("/{order_id}/status", response_model=schemas.Order)
def change_order_status(
    order_id: uuid.UUID,
    payload: schemas.OrderStatusChange,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    order = _load_order(db, order_id)
    service = OrderLifecycleService(db)
    return service.apply_fulfillment_transition(principal, order, payload.status, from_status=payload.from_status)


@system_router.post("/{order_id}/status", response_model=schemas.Order)
def change_order_status_as_system(
    order_id: uuid.UUID,
    payload: schemas.OrderStatusChange,
    db: Session = Depends(get_db),
    system: SystemIdentity = Depends(require_system_identity),
):
    order = _load_order(db, order_id)
    service = OrderLifecycleService(db)
    return service.apply_payment_transition(system, order, payload.status, from_status=payload.from_status)
