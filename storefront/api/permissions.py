"""
Authorization decisions for catalog resources and storefront orders.

Key helpers:
- has_access(db, principal, resource, required)
- authorize_wallet_order_access(db, principal, order)
- effective_access_level(db, principal, resource)
- readable_collection_ids(db, principal)

Neither decision raises: missing data, unresolvable hierarchy and store
errors all resolve to deny.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.db import models
from storefront.db.hierarchy import load_ancestor_collection
from storefront.db.repositories import catalog as catalog_repo
from storefront.db.repositories import grants as grant_repo
from storefront.errors import InvalidGrantRequest
from storefront.services.identity import Principal
from storefront.utils.feature_flags import legacy_created_by_ownership_enabled
from storefront.utils.resources import ResourceKind, ResourceRef
from storefront.utils.roles import (
    ACCESS_EDIT,
    ACCESS_VIEW,
    highest_access_level,
    is_valid_access_level,
    level_satisfies,
)

logger = logging.getLogger("storefront.access")


def _owns(principal: Principal, collection: models.Collection) -> bool:
    return principal.user_id is not None and collection.owner_user_id == principal.user_id


def _owns_legacy(principal: Principal, collection: models.Collection) -> bool:
    if not legacy_created_by_ownership_enabled():
        return False
    if not principal.is_merchant or principal.user_id is None:
        return False
    return collection.created_by is not None and collection.created_by == principal.user_id


def _granted_level(db: Session, principal: Principal, resource: ResourceRef, collection: models.Collection) -> Optional[str]:
    if principal.user_id is None:
        return None
    lookups = [resource]
    if resource.kind is not ResourceKind.collection:
        lookups.append(ResourceRef.collection(collection.id))
    grants = grant_repo.get_grants_for_resources(db, principal.user_id, lookups)
    return highest_access_level(*(g.access_level for g in grants))


def _decide(db: Session, principal: Principal, resource: ResourceRef, required: str) -> bool:
    if principal.is_admin:
        return True

    collection = load_ancestor_collection(db, resource)
    if collection is None:
        logger.debug("deny %s: no ancestor collection", resource)
        return False

    if _owns(principal, collection):
        return True

    level = _granted_level(db, principal, resource, collection)
    if level is not None:
        if level_satisfies(level, required):
            return True
        logger.debug("deny %s: grant %s does not satisfy %s", resource, level, required)

    if _owns_legacy(principal, collection):
        logger.debug("allow %s via legacy created_by user=%s", resource, principal.user_id)
        return True

    return False


def has_access(db: Session, principal: Optional[Principal], resource: Optional[ResourceRef], required: str = ACCESS_VIEW) -> bool:
    """Return whether ``principal`` may act on ``resource`` at ``required`` level.

    Resolution order, first match wins: admin, unresolvable ancestor (deny),
    collection owner, highest grant on the resource or its collection,
    legacy created_by ownership when enabled, deny.
    """
    if principal is None or resource is None or not is_valid_access_level(required):
        return False
    try:
        allowed = _decide(db, principal, resource, required)
    except SQLAlchemyError:
        logger.exception("access decision failed for %s; denying", resource)
        db.rollback()
        return False
    logger.debug(
        "has_access user=%s role=%s resource=%s required=%s -> %s",
        principal.user_id, principal.role, resource, required, allowed,
    )
    return allowed


def effective_access_level(db: Session, principal: Optional[Principal], resource: ResourceRef) -> Optional[str]:
    """Return the strongest level the principal holds on ``resource``, or None."""
    if has_access(db, principal, resource, ACCESS_EDIT):
        return ACCESS_EDIT
    if has_access(db, principal, resource, ACCESS_VIEW):
        return ACCESS_VIEW
    return None


def authorize_wallet_order_access(db: Session, principal: Optional[Principal], order: Optional[models.Order]) -> bool:
    """Return whether ``principal`` may see ``order``.

    Allowed for admins, for a verified wallet matching the order's wallet,
    or for anyone with view access to the order's collection.
    """
    if principal is None or order is None:
        return False
    if principal.is_admin:
        return True
    # Only verified wallets are attached to a principal
    if principal.wallet is not None and order.wallet_address and principal.wallet.address == order.wallet_address:
        return True
    if order.collection_id is None:
        return False
    try:
        resource = ResourceRef.collection(order.collection_id)
    except InvalidGrantRequest:
        return False
    return has_access(db, principal, resource, ACCESS_VIEW)


def readable_collection_ids(db: Session, principal: Optional[Principal]) -> List[uuid.UUID]:
    """Collections a non-admin principal can view, for narrowing list queries.

    Mirrors has_access on a Collection: ownership, a collection-level grant,
    and legacy created_by ownership for merchants while the flag is on.
    Admins see everything and should not be narrowed by this list.
    """
    if principal is None or principal.user_id is None:
        return []
    ids = catalog_repo.get_collection_ids_owned_by(
        db,
        principal.user_id,
        include_created_by=legacy_created_by_ownership_enabled() and principal.is_merchant,
    )
    for collection_id in grant_repo.get_collection_ids_with_grant(db, principal.user_id):
        if collection_id not in ids:
            ids.append(collection_id)
    return ids
