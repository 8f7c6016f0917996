"""
Order repository functions.

Order business fields are owned by the fulfilment workflow; this module
covers the reads used for authorization and the status write performed by
the lifecycle guard.
"""
from __future__ import annotations

import uuid
from typing import List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Session

from storefront.db import models


def get_order(db: Session, order_id: uuid.UUID) -> Optional[models.Order]:
    return db.query(models.Order).filter(models.Order.id == order_id).first()


def get_orders_visible_to(
    db: Session,
    *,
    wallet_address: Optional[str] = None,
    collection_ids: Sequence[uuid.UUID] = (),
    all_orders: bool = False,
    skip: int = 0,
    limit: int = 100,
) -> List[models.Order]:
    """List orders matching a verified wallet or any of the given collections."""
    q = db.query(models.Order)
    if not all_orders:
        clauses = []
        if wallet_address:
            clauses.append(models.Order.wallet_address == wallet_address)
        if collection_ids:
            clauses.append(models.Order.collection_id.in_(list(collection_ids)))
        if not clauses:
            return []
        q = q.filter(or_(*clauses))
    return q.order_by(models.Order.created_at.desc(), models.Order.id).offset(skip).limit(limit).all()


def set_order_status(db: Session, order: models.Order, status: str) -> models.Order:
    """Write the new status; the caller owns the transaction."""
    order.status = status
    order.updated_at = models.now_utc()
    db.flush()
    return order
