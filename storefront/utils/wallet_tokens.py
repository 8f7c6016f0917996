"""
Wallet auth token issuing and verification for the storefront header channel.

Responsibilities:
- Issue tokens of the form: WALLET_AUTH_<unix_ts>_<hex signature>
- Sign "<address>:<ts>" with HMAC-SHA256 under WALLET_TOKEN_SECRET
- Verify a token against the address it claims to authenticate, with
  constant-time comparison and a maximum token age
"""
from __future__ import annotations

import hashlib
import hmac
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

TOKEN_PREFIX = "WALLET_AUTH_"
DEFAULT_MAX_AGE_SECONDS = 86400
# Longest issued-at timestamp accepted, in digits
MAX_TIMESTAMP_DIGITS = 12

# (address, token) -> verified
WalletTokenVerifier = Callable[[str, str], bool]


@dataclass(frozen=True)
class ParsedWalletToken:
    issued_at: int
    signature: str


def _secret() -> Optional[bytes]:
    raw = os.getenv("WALLET_TOKEN_SECRET", "")
    if not raw:
        return None
    return raw.encode("utf-8")


def _max_age_seconds() -> int:
    raw = os.getenv("WALLET_TOKEN_MAX_AGE_SECONDS")
    if not raw:
        return DEFAULT_MAX_AGE_SECONDS
    try:
        return max(0, int(raw))
    except ValueError:
        return DEFAULT_MAX_AGE_SECONDS


def _sign(secret: bytes, address: str, issued_at: int) -> str:
    message = f"{address}:{issued_at}".encode("utf-8")
    return hmac.new(secret, message, hashlib.sha256).hexdigest()


def parse_wallet_token(token: str) -> Optional[ParsedWalletToken]:
    """Parse a token string into its timestamp and signature.

    Returns None if format is invalid.
    """
    if not token or not token.startswith(TOKEN_PREFIX):
        return None
    body = token[len(TOKEN_PREFIX):]
    idx = body.find("_")
    if idx <= 0:
        return None
    ts_part = body[:idx]
    signature = body[idx + 1:]
    # ASCII digits only: str.isdigit also accepts superscripts that int() rejects
    if not ts_part.isascii() or not ts_part.isdigit() or len(ts_part) > MAX_TIMESTAMP_DIGITS:
        return None
    if not signature:
        return None
    return ParsedWalletToken(issued_at=int(ts_part), signature=signature)


def issue_wallet_token(address: str, *, issued_at: Optional[int] = None) -> str:
    """Mint a token proving control of ``address``.

    Called by the wallet sign-in flow once the wallet signature was checked.
    """
    secret = _secret()
    if secret is None:
        raise RuntimeError("WALLET_TOKEN_SECRET is not configured")
    if not address:
        raise ValueError("Wallet address is required")
    ts = int(time.time()) if issued_at is None else int(issued_at)
    return f"{TOKEN_PREFIX}{ts}_{_sign(secret, address, ts)}"


def verify_wallet_token(address: str, token: str, *, now: Optional[float] = None) -> bool:
    """Return True only if ``token`` was issued for ``address`` and is not expired."""
    if not address or not token:
        return False
    secret = _secret()
    if secret is None:
        return False
    parsed = parse_wallet_token(token)
    if parsed is None:
        return False
    current = time.time() if now is None else now
    age = current - parsed.issued_at
    if age < 0 or age > _max_age_seconds():
        return False
    expected = _sign(secret, address, parsed.issued_at)
    return hmac.compare_digest(expected, parsed.signature)
