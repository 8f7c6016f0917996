"""
Order status state machine with separately privileged channels.

The payment channel is reserved for the trusted backend (a SystemIdentity
obtained from the service key); the fulfillment channel is gated by edit
access on the order's collection. Transition validation always runs first,
so no caller can force an edge outside its channel.
"""
from __future__ import annotations

import hmac
import logging
import os
from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional, Tuple

from sqlalchemy.orm import Session

from storefront import audit
from storefront.audit import AuditStatus
from storefront.api.permissions import has_access
from storefront.db import models
from storefront.db.repositories import orders as order_repo
from storefront.errors import AuthenticationMissing, AuthorizationDenied, InvalidTransition
from storefront.services.identity import Principal
from storefront.utils.resources import ResourceRef
from storefront.utils.roles import ACCESS_EDIT

logger = logging.getLogger("storefront.orders")

STATUS_DRAFT = "draft"
STATUS_PENDING_PAYMENT = "pending_payment"
STATUS_CONFIRMED = "confirmed"
STATUS_SHIPPED = "shipped"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"

ORDER_STATUSES: FrozenSet[str] = frozenset({
    STATUS_DRAFT,
    STATUS_PENDING_PAYMENT,
    STATUS_CONFIRMED,
    STATUS_SHIPPED,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
})

CHANNEL_PAYMENT = "payment"
CHANNEL_FULFILLMENT = "fulfillment"

PAYMENT_TRANSITIONS: FrozenSet[Tuple[str, str]] = frozenset({
    (STATUS_DRAFT, STATUS_PENDING_PAYMENT),
    (STATUS_PENDING_PAYMENT, STATUS_CONFIRMED),
    (STATUS_PENDING_PAYMENT, STATUS_CANCELLED),
    (STATUS_DRAFT, STATUS_CANCELLED),
})

FULFILLMENT_STATUSES: FrozenSet[str] = frozenset({
    STATUS_CONFIRMED,
    STATUS_SHIPPED,
    STATUS_DELIVERED,
    STATUS_CANCELLED,
})

# Every pair among the fulfillment states, same-state no-ops included
FULFILLMENT_TRANSITIONS: FrozenSet[Tuple[str, str]] = frozenset(
    (a, b) for a in FULFILLMENT_STATUSES for b in FULFILLMENT_STATUSES
)

CHANNEL_TRANSITIONS: Dict[str, FrozenSet[Tuple[str, str]]] = {
    CHANNEL_PAYMENT: PAYMENT_TRANSITIONS,
    CHANNEL_FULFILLMENT: FULFILLMENT_TRANSITIONS,
}

CAPABILITY_FULFILL_ORDER = "fulfill_order"


def validate_order_transition(order, from_status: Optional[str], to_status: Optional[str], channel: str) -> None:
    """Raise InvalidTransition unless ``from_status -> to_status`` is allowed on ``channel``.

    ``from_status`` must also match the order's current status when an
    order is given; this guards against acting on a stale read.
    """
    allowed = CHANNEL_TRANSITIONS.get(channel)
    if allowed is None:
        raise InvalidTransition(from_status, to_status, channel, "unknown channel")
    if from_status not in ORDER_STATUSES or to_status not in ORDER_STATUSES:
        raise InvalidTransition(from_status, to_status, channel, "unknown status")
    current = getattr(order, "status", None) if order is not None else from_status
    if current != from_status:
        raise InvalidTransition(from_status, to_status, channel, f"order is currently {current}")
    if (from_status, to_status) not in allowed:
        raise InvalidTransition(from_status, to_status, channel)


@dataclass(frozen=True)
class SystemIdentity:
    """Trusted backend caller for the payment channel."""
    name: str = "payment-backend"


def _service_role_key() -> Optional[str]:
    value = os.getenv("SERVICE_ROLE_KEY", "")
    return value or None


def authenticate_service_key(presented: Optional[str]) -> Optional[SystemIdentity]:
    """Return a SystemIdentity when ``presented`` matches SERVICE_ROLE_KEY."""
    expected = _service_role_key()
    if not expected or not presented:
        return None
    if not hmac.compare_digest(expected.encode("utf-8"), presented.encode("utf-8")):
        return None
    return SystemIdentity()


class OrderLifecycleService:
    """Applies validated status changes inside the caller's transaction."""

    def __init__(self, db: Session):
        self.db = db

    def _apply(self, order: models.Order, to_status: str, channel: str, actor_user_id=None) -> models.Order:
        from_status = order.status
        order_repo.set_order_status(self.db, order, to_status)
        audit.log_order(
            self.db,
            actor_user_id=actor_user_id,
            order=order,
            from_status=from_status,
            to_status=to_status,
            channel=channel,
            commit=False,
        )
        self.db.commit()
        self.db.refresh(order)
        logger.info("order %s %s -> %s via %s", order.id, from_status, to_status, channel)
        return order

    def apply_payment_transition(
        self,
        system: Optional[SystemIdentity],
        order: models.Order,
        to_status: str,
        from_status: Optional[str] = None,
    ) -> models.Order:
        if not isinstance(system, SystemIdentity):
            raise AuthenticationMissing("Payment transitions require the service identity")
        expected = order.status if from_status is None else from_status
        validate_order_transition(order, expected, to_status, CHANNEL_PAYMENT)
        return self._apply(order, to_status, CHANNEL_PAYMENT)

    def apply_fulfillment_transition(
        self,
        principal: Optional[Principal],
        order: models.Order,
        to_status: str,
        from_status: Optional[str] = None,
    ) -> models.Order:
        if principal is None or principal.user_id is None:
            raise AuthenticationMissing("Authentication required")
        expected = order.status if from_status is None else from_status
        validate_order_transition(order, expected, to_status, CHANNEL_FULFILLMENT)

        allowed = order.collection_id is not None and has_access(
            self.db, principal, ResourceRef.collection(order.collection_id), ACCESS_EDIT
        )
        if not allowed:
            logger.warning("fulfillment denied order=%s user=%s", order.id, principal.user_id)
            audit.log_order(
                self.db,
                actor_user_id=principal.user_id,
                order=order,
                from_status=order.status,
                to_status=to_status,
                channel=CHANNEL_FULFILLMENT,
                status=AuditStatus.FAILURE,
                reason=CAPABILITY_FULFILL_ORDER,
            )
            raise AuthorizationDenied(CAPABILITY_FULFILL_ORDER)
        return self._apply(order, to_status, CHANNEL_FULFILLMENT, actor_user_id=principal.user_id)
