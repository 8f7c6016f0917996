"""
API dependency helpers.

Provides dependency-resolved identity (request context, principal, system
identity) for routes.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from storefront.api.auth import get_or_create_user, resolve_identity_from_headers, resolve_wallet_headers
from storefront.db.database import get_db
from storefront.errors import AuthenticationMissing
from storefront.services.identity import Principal, RequestContext, resolve_principal
from storefront.services.order_lifecycle import SystemIdentity, authenticate_service_key
from storefront.utils.wallet_tokens import WalletTokenVerifier, verify_wallet_token

# Contract:
# get_request_context never fails; requests without proxy identity headers
# become anonymous. Routes that need a signed-in caller use require_principal.


def get_request_context(
    db: Session = Depends(get_db),
    x_auth_request_user: Optional[str] = Header(default=None),
    x_auth_request_email: Optional[str] = Header(default=None),
    x_forwarded_user: Optional[str] = Header(default=None),
    x_forwarded_email: Optional[str] = Header(default=None),
    x_auth_request_wallet: Optional[str] = Header(default=None),
    x_wallet_address: Optional[str] = Header(default=None),
    x_wallet_auth_token: Optional[str] = Header(default=None),
) -> RequestContext:
    name, email = resolve_identity_from_headers(
        x_auth_request_user=x_auth_request_user,
        x_auth_request_email=x_auth_request_email,
        x_forwarded_user=x_forwarded_user,
        x_forwarded_email=x_forwarded_email,
    )
    user = get_or_create_user(db, email=email, display_name=name) if email else None
    wallet_address, wallet_token = resolve_wallet_headers(x_wallet_address, x_wallet_auth_token)
    return RequestContext(
        user=user,
        # The proxy only forwards the wallet claim for signed-in sessions
        session_wallet=x_auth_request_wallet if user is not None else None,
        header_wallet_address=wallet_address,
        header_wallet_token=wallet_token,
    )


def get_wallet_token_verifier() -> WalletTokenVerifier:
    return verify_wallet_token


def get_principal(
    ctx: RequestContext = Depends(get_request_context),
    verifier: WalletTokenVerifier = Depends(get_wallet_token_verifier),
) -> Principal:
    return resolve_principal(ctx, token_verifier=verifier)


def require_principal(principal: Principal = Depends(get_principal)) -> Principal:
    if principal.user_id is None:
        raise AuthenticationMissing("Authentication required")
    return principal


def require_system_identity(
    x_service_key: Optional[str] = Header(default=None, alias="X-Service-Key"),
) -> SystemIdentity:
    system = authenticate_service_key(x_service_key)
    if system is None:
        raise AuthenticationMissing("Valid service key required")
    return system
