"""
Identity resolution for storefront requests.

Turns the pre-extracted identity channels of a request (session profile,
session wallet claim, wallet header pair) into a Principal. Only verified
wallets are ever attached to a principal.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from storefront.utils.roles import ROLE_ADMIN, ROLE_ANONYMOUS, ROLE_MERCHANT, normalize_profile_role
from storefront.utils.wallet_tokens import WalletTokenVerifier, verify_wallet_token

logger = logging.getLogger("storefront.identity")


class WalletVerification(str, Enum):
    header = "header"
    claim = "claim"


@dataclass(frozen=True)
class WalletIdentity:
    address: str
    token: Optional[str]
    verified_by: WalletVerification


@dataclass(frozen=True)
class Principal:
    user_id: Optional[uuid.UUID]
    role: str
    wallet: Optional[WalletIdentity] = None
    email: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_merchant(self) -> bool:
        return self.role == ROLE_MERCHANT

    @property
    def is_anonymous(self) -> bool:
        return self.role == ROLE_ANONYMOUS or self.user_id is None

    @property
    def wallet_address(self) -> Optional[str]:
        return self.wallet.address if self.wallet else None


ANONYMOUS = Principal(user_id=None, role=ROLE_ANONYMOUS)


@dataclass
class RequestContext:
    """Identity channels extracted from a request by the API layer.

    ``user`` is the authenticated profile row (anything with ``id``, ``role``
    and ``email``) or None when the request carries no session.
    """
    user: Any = None
    session_wallet: Optional[str] = None
    header_wallet_address: Optional[str] = None
    header_wallet_token: Optional[str] = None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _header_wallet(ctx: RequestContext, verifier: WalletTokenVerifier) -> Optional[WalletIdentity]:
    address = _clean(ctx.header_wallet_address)
    token = _clean(ctx.header_wallet_token)
    if not address:
        return None
    if not token:
        logger.debug("wallet header without token ignored address=%s", address)
        return None
    if not verifier(address, token):
        logger.info("wallet header token rejected address=%s", address)
        return None
    return WalletIdentity(address=address, token=token, verified_by=WalletVerification.header)


def _claim_wallet(ctx: RequestContext) -> Optional[WalletIdentity]:
    # Only honored alongside an authenticated session
    if ctx.user is None:
        return None
    address = _clean(ctx.session_wallet)
    if not address:
        return None
    return WalletIdentity(address=address, token=None, verified_by=WalletVerification.claim)


def resolve_principal(ctx: RequestContext, token_verifier: Optional[WalletTokenVerifier] = None) -> Principal:
    """Build the Principal for a request.

    The verifier's answer is taken as ground truth; the default checks
    signed ``WALLET_AUTH_`` tokens. When both wallet channels verify and
    disagree, the session claim wins.
    """
    verifier = token_verifier or verify_wallet_token
    header_wallet = _header_wallet(ctx, verifier)
    claim_wallet = _claim_wallet(ctx)

    wallet = claim_wallet or header_wallet
    if claim_wallet and header_wallet and claim_wallet.address != header_wallet.address:
        logger.info(
            "wallet channels disagree, using session claim claim=%s header=%s",
            claim_wallet.address,
            header_wallet.address,
        )

    user = ctx.user
    if user is None:
        return Principal(user_id=None, role=ROLE_ANONYMOUS, wallet=wallet)
    return Principal(
        user_id=user.id,
        role=normalize_profile_role(getattr(user, "role", None)),
        wallet=wallet,
        email=getattr(user, "email", None),
    )
