"""
Audit log API endpoints.

Query audit logs; restricted to administrators.
"""
from typing import Optional, List
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from storefront import audit
from storefront.db.database import get_db
from storefront.db import schemas
from storefront.db.repositories import audits as audit_repo
from storefront.api.deps import require_principal
from storefront.errors import AuthorizationDenied
from storefront.services.identity import Principal

router = APIRouter(prefix="/audit-logs", tags=["audits"])


@router.get("", response_model=List[schemas.AuditLog])
def list_audit_logs(
    collection_id: Optional[uuid.UUID] = None,
    user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    status: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_principal),
):
    if not principal.is_admin:
        raise AuthorizationDenied("view_audit_logs")

    logs = audit_repo.get_audit_logs(
        db,
        collection_id=collection_id,
        user_id=user_id,
        action_type=action_type,
        status=status,
        skip=skip,
        limit=limit,
    )
    return [audit.to_schema(log) for log in logs]
