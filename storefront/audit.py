"""
Audit logging helpers and enums.

Centralized helpers to persist normalized audit records with consistent
schema; includes convenience wrappers per target type.
"""
from __future__ import annotations
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from storefront.db import schemas
from storefront.db.repositories import audits as audit_repo


class AuditAction(str, Enum):
    # Grants
    GRANT_UPSERT = "grant_upsert"
    GRANT_REVOKE = "grant_revoke"
    # Collections
    OWNERSHIP_TRANSFER = "ownership_transfer"
    # Orders
    ORDER_STATUS_CHANGE = "order_status_change"
    # Denied privileged mutations
    ACCESS_DENIED = "access_denied"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID] = None,
    collection_id: Optional[uuid.UUID] = None,
    reason: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    commit: bool = True,
):
    """Central audit logging helper.

    ``commit=False`` flushes the row into the caller's transaction instead
    of committing it, so a status change and its audit row land together.
    """
    # Persist plain string values, not Enum reprs
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        reason=reason,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(
        db,
        audit_log=audit_log,
        actor_user_id=actor_user_id,
        collection_id=collection_id,
        commit=commit,
    )


def to_schema(log_row) -> schemas.AuditLog:
    """Serialize an AuditLog row; the ORM attribute is ``metadata_json``."""
    return schemas.AuditLog(
        id=log_row.id,
        action_type=log_row.action_type,
        status=log_row.status,
        target_type=log_row.target_type,
        target_id=log_row.target_id,
        reason=log_row.reason,
        metadata=log_row.metadata_json,
        collection_id=log_row.collection_id,
        actor_user_id=log_row.actor_user_id,
        created_at=log_row.created_at,
    )


__all__ = ["AuditAction", "AuditStatus", "log", "to_schema"]


# Convenience wrappers. Keep collection_id explicit.
def log_grant(db: Session, *, actor_user_id: Optional[uuid.UUID], collection_id: Optional[uuid.UUID], user_id: uuid.UUID, resource, action: AuditAction, access_level: Optional[str] = None, status: AuditStatus | str = AuditStatus.SUCCESS, reason: Optional[str] = None, commit: bool = True):
    metadata: Dict[str, Any] = {"user_id": str(user_id), "resource": resource.as_dict()}
    if access_level:
        metadata["access_level"] = access_level
    return log(
        db,
        action=action,
        status=status,
        target_type=resource.kind.value,
        target_id=resource.id,
        actor_user_id=actor_user_id,
        collection_id=collection_id,
        reason=reason,
        metadata=metadata,
        commit=commit,
    )


def log_order(db: Session, *, actor_user_id: Optional[uuid.UUID], order, from_status: str, to_status: str, channel: str, status: AuditStatus | str = AuditStatus.SUCCESS, reason: Optional[str] = None, commit: bool = True):
    return log(
        db,
        action=AuditAction.ORDER_STATUS_CHANGE,
        status=status,
        target_type="order",
        target_id=order.id,
        actor_user_id=actor_user_id,
        collection_id=order.collection_id,
        reason=reason,
        metadata={"from_status": from_status, "to_status": to_status, "channel": channel},
        commit=commit,
    )


__all__.extend(["log_grant", "log_order"])
