"""
Authentication helpers and identity extraction.

Parses trusted proxy headers, normalizes emails and wallet addresses, and
upserts user profiles while supporting admin elevation via environment
configuration.
"""
import os
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from storefront.db import models
from storefront.db.repositories import users as user_repo
from storefront.utils.roles import ROLE_ADMIN, ROLE_USER


def _normalize_email(email: Optional[str]) -> Optional[str]:
    if not email:
        return None
    return email.strip().lower()


def _normalize_header_value(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def _normalize_list_env(var_name: str) -> set:
    raw = os.getenv(var_name, "")
    values = set()
    for entry in raw.split(","):
        cleaned = entry.strip().strip('"').strip("'")
        if cleaned:
            values.add(cleaned.lower())
    return values


def _admin_emails() -> set:
    return _normalize_list_env("ADMIN_EMAILS")


def resolve_identity_from_headers(
    x_auth_request_user: Optional[str],
    x_auth_request_email: Optional[str],
    x_forwarded_user: Optional[str],
    x_forwarded_email: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    user = x_auth_request_user or x_forwarded_user
    email = _normalize_email(x_auth_request_email or x_forwarded_email)
    return user, email


def resolve_wallet_headers(
    x_wallet_address: Optional[str],
    x_wallet_auth_token: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    """Return the (address, token) header pair with blanks dropped."""
    return _normalize_header_value(x_wallet_address), _normalize_header_value(x_wallet_auth_token)


def get_or_create_user(db: Session, email: str, display_name: Optional[str] = None) -> models.User:
    user = user_repo.get_user_by_email(db, email)
    was_new = False
    if not user:
        user = models.User(
            email=email,
            display_name=display_name or email.split("@")[0],
            role=ROLE_USER,
        )
        db.add(user)
        was_new = True

    admins = _admin_emails()
    if was_new:
        if email in admins:
            user.role = ROLE_ADMIN
        db.flush()
        db.commit()
        db.refresh(user)
        return user

    # Existing users might predate a new ADMIN_EMAILS value; promote them when necessary.
    if email in admins and user.role != ROLE_ADMIN:
        user.role = ROLE_ADMIN
        db.commit()
        db.refresh(user)
    return user
