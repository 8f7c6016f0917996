"""
Grant management and collection ownership.

The only code paths allowed to change who can access a collection. Every
mutation re-checks the caller at mutation time and raises on failure;
denials are written to the audit trail before the error propagates.
"""
from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront import audit
from storefront.audit import AuditAction, AuditStatus
from storefront.db import models, schemas
from storefront.db.hierarchy import resolve_ancestor_collection
from storefront.db.repositories import catalog as catalog_repo
from storefront.db.repositories import grants as grant_repo
from storefront.db.repositories import users as user_repo
from storefront.errors import (
    AuthenticationMissing,
    AuthorizationDenied,
    InvalidGrantRequest,
    NotFound,
)
from storefront.services.identity import Principal
from storefront.utils.resources import ResourceKind, ResourceRef
from storefront.utils.roles import ACCESS_EDIT, OWNER_ROLES, is_valid_access_level

logger = logging.getLogger("storefront.access")

CAPABILITY_MANAGE_GRANTS = "manage_grants"
CAPABILITY_TRANSFER_OWNERSHIP = "transfer_ownership"
CAPABILITY_VIEW_USER_ACCESS = "view_user_access"
CAPABILITY_VIEW_COLLECTION_ACCESS = "view_collection_access"

# Sort order for user access listings
_KIND_ORDER = {ResourceKind.collection: 0, ResourceKind.category: 1, ResourceKind.product: 2}


class AccessService:
    """Admin-gated grant store operations plus the access read models."""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------
    def _deny(self, principal: Optional[Principal], capability: str, target_type: str, target_id=None, collection_id=None):
        logger.warning(
            "denied %s for user=%s role=%s",
            capability,
            getattr(principal, "user_id", None),
            getattr(principal, "role", None),
        )
        audit.log(
            self.db,
            action=AuditAction.ACCESS_DENIED,
            status=AuditStatus.FAILURE,
            target_type=target_type,
            target_id=target_id,
            actor_user_id=getattr(principal, "user_id", None),
            collection_id=collection_id,
            reason=capability,
        )
        raise AuthorizationDenied(capability)

    def _require_identity(self, principal: Optional[Principal]) -> Principal:
        if principal is None or principal.user_id is None:
            raise AuthenticationMissing("Authentication required")
        return principal

    def _require_admin(self, principal: Optional[Principal], capability: str, target_type: str, target_id=None, collection_id=None) -> Principal:
        principal = self._require_identity(principal)
        if not principal.is_admin:
            self._deny(principal, capability, target_type, target_id, collection_id)
        return principal

    # ------------------------------------------------------------------
    # Grant store
    # ------------------------------------------------------------------
    def _validate_grant_target(self, user_id: uuid.UUID, resource: Optional[ResourceRef]) -> uuid.UUID:
        if not isinstance(resource, ResourceRef):
            raise InvalidGrantRequest("A collection, category or product id is required")
        collection_id = resolve_ancestor_collection(self.db, resource)
        if collection_id is None:
            raise InvalidGrantRequest(f"{resource} does not identify an existing resource")
        if user_repo.get_user(self.db, user_id) is None:
            raise NotFound(f"User {user_id} not found")
        return collection_id

    def upsert_grant(self, admin: Optional[Principal], user_id: uuid.UUID, resource: Optional[ResourceRef], level: str) -> models.AccessGrant:
        """Create or update the grant for (user, resource)."""
        target_id = getattr(resource, "id", None)
        admin = self._require_admin(admin, CAPABILITY_MANAGE_GRANTS, "grant", target_id)
        if not is_valid_access_level(level):
            raise InvalidGrantRequest(f"Invalid access level '{level}'. Allowed: edit, view")
        collection_id = self._validate_grant_target(user_id, resource)

        # Grant and audit row commit together
        try:
            grant = grant_repo.upsert_grant(
                self.db,
                user_id=user_id,
                resource=resource,
                access_level=level,
                granted_by=admin.user_id,
                commit=False,
            )
            audit.log_grant(
                self.db,
                actor_user_id=admin.user_id,
                collection_id=collection_id,
                user_id=user_id,
                resource=resource,
                action=AuditAction.GRANT_UPSERT,
                access_level=level,
                commit=False,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(grant)
        logger.info("grant %s on %s to user=%s by admin=%s", level, resource, user_id, admin.user_id)
        return grant

    def revoke_grant(self, admin: Optional[Principal], user_id: uuid.UUID, resource: Optional[ResourceRef]) -> bool:
        """Delete the grant for (user, resource). Missing grants are a no-op."""
        target_id = getattr(resource, "id", None)
        admin = self._require_admin(admin, CAPABILITY_MANAGE_GRANTS, "grant", target_id)
        if not isinstance(resource, ResourceRef):
            raise InvalidGrantRequest("A collection, category or product id is required")

        collection_id = resolve_ancestor_collection(self.db, resource)
        try:
            removed = grant_repo.delete_grant(self.db, user_id, resource, commit=False)
            if removed:
                audit.log_grant(
                    self.db,
                    actor_user_id=admin.user_id,
                    collection_id=collection_id,
                    user_id=user_id,
                    resource=resource,
                    action=AuditAction.GRANT_REVOKE,
                    commit=False,
                )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        if removed:
            logger.info("revoked grant on %s from user=%s by admin=%s", resource, user_id, admin.user_id)
        return removed

    def lookup_grants(self, user_id: uuid.UUID) -> List[models.AccessGrant]:
        return grant_repo.get_grants_for_user(self.db, user_id)

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------
    def transfer_ownership(
        self,
        admin: Optional[Principal],
        collection_id: uuid.UUID,
        new_owner_user_id: uuid.UUID,
        preserve_previous_owner_access: bool = True,
    ) -> models.Collection:
        """Hand a collection to another merchant or admin.

        With ``preserve_previous_owner_access`` the previous owner keeps an
        edit grant on the collection; without it they lose access entirely
        unless some other grant applies.
        """
        admin = self._require_admin(
            admin, CAPABILITY_TRANSFER_OWNERSHIP, "collection", collection_id, collection_id
        )
        collection = catalog_repo.get_collection(self.db, collection_id)
        if collection is None:
            raise NotFound(f"Collection {collection_id} not found")
        new_owner = user_repo.get_user(self.db, new_owner_user_id)
        if new_owner is None:
            raise NotFound(f"User {new_owner_user_id} not found")
        if new_owner.role not in OWNER_ROLES:
            raise InvalidGrantRequest("New owner must be a merchant or admin")
        previous_owner_id = collection.owner_user_id
        if previous_owner_id == new_owner_user_id:
            raise InvalidGrantRequest("User already owns this collection")

        # Owner change, grant and audit row commit together
        try:
            catalog_repo.set_collection_owner(self.db, collection, new_owner_user_id)
            if preserve_previous_owner_access:
                grant_repo.upsert_grant(
                    self.db,
                    user_id=previous_owner_id,
                    resource=ResourceRef.collection(collection_id),
                    access_level=ACCESS_EDIT,
                    granted_by=admin.user_id,
                    commit=False,
                )
            audit.log(
                self.db,
                action=AuditAction.OWNERSHIP_TRANSFER,
                target_type="collection",
                target_id=collection_id,
                actor_user_id=admin.user_id,
                collection_id=collection_id,
                metadata={
                    "previous_owner_user_id": str(previous_owner_id),
                    "new_owner_user_id": str(new_owner_user_id),
                    "preserve_previous_owner_access": preserve_previous_owner_access,
                },
                commit=False,
            )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info(
            "collection %s transferred from %s to %s by admin=%s (previous owner keeps access: %s)",
            collection_id, previous_owner_id, new_owner_user_id, admin.user_id, preserve_previous_owner_access,
        )
        self.db.refresh(collection)
        return collection

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------
    def _content_name(self, resource: ResourceRef) -> Optional[str]:
        if resource.kind is ResourceKind.collection:
            row = catalog_repo.get_collection(self.db, resource.id)
        elif resource.kind is ResourceKind.category:
            row = catalog_repo.get_category(self.db, resource.id)
        else:
            row = catalog_repo.get_product(self.db, resource.id)
        return row.name if row is not None else None

    def list_user_access(self, principal: Optional[Principal], user_id: uuid.UUID) -> List[schemas.UserAccessEntry]:
        """Grants held by ``user_id``; visible to admins and the user themself."""
        principal = self._require_identity(principal)
        if not principal.is_admin and principal.user_id != user_id:
            self._deny(principal, CAPABILITY_VIEW_USER_ACCESS, "user", user_id)

        entries = []
        for grant in grant_repo.get_grants_for_user(self.db, user_id):
            resource = grant_repo.grant_resource(grant)
            entries.append(
                (
                    _KIND_ORDER[resource.kind],
                    schemas.UserAccessEntry(
                        content_id=resource.id,
                        content_type=resource.kind.value,
                        content_name=self._content_name(resource),
                        access_type=grant.access_level,
                    ),
                )
            )
        entries.sort(key=lambda item: (item[0], item[1].content_name or ""))
        return [entry for _, entry in entries]

    def collection_access_details(self, principal: Optional[Principal], collection_id: uuid.UUID) -> schemas.CollectionAccessDetails:
        """Owner and grants of a collection; visible to admins and the owner."""
        principal = self._require_identity(principal)
        collection = catalog_repo.get_collection(self.db, collection_id)
        if collection is None:
            raise NotFound(f"Collection {collection_id} not found")
        if not principal.is_admin and collection.owner_user_id != principal.user_id:
            self._deny(principal, CAPABILITY_VIEW_COLLECTION_ACCESS, "collection", collection_id, collection_id)

        grants = grant_repo.get_grants_within_collection(self.db, collection_id)
        return schemas.CollectionAccessDetails(
            collection_id=collection.id,
            collection_name=collection.name,
            owner_id=collection.owner_user_id,
            access_users=[schemas.Grant.model_validate(g) for g in grants],
        )
