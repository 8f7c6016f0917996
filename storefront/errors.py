"""Domain-level exceptions for access control and order lifecycle.

Decision functions never raise these for a plain "no"; they are raised by
mutation paths (grant management, ownership transfer, order transitions)
and translated to HTTP responses by handlers registered in api.main.
"""

from __future__ import annotations

from typing import Optional


class AccessError(Exception):
    """Base class for access-control errors."""


class AuthenticationMissing(AccessError):
    """Raised when a privileged action is attempted without an identity."""


class AuthorizationDenied(AccessError):
    """Raised when the caller lacks the capability a mutation requires."""

    def __init__(self, capability: str, message: Optional[str] = None):
        self.capability = capability
        super().__init__(message or f"Permission denied: {capability} required")


class InvalidGrantRequest(AccessError):
    """Raised for malformed grant input (bad level, missing or ambiguous resource)."""


class HierarchyResolutionFailure(AccessError):
    """A category or product without a resolvable ancestor collection.

    Only logged; callers see the same outcome as "not found".
    """


class NotFound(AccessError):
    """Raised when the target of a mutation does not exist."""


class InvalidTransition(AccessError):
    """Raised when an order status change is outside the channel's allowed edges."""

    def __init__(self, from_status: Optional[str], to_status: Optional[str], channel: str, reason: Optional[str] = None):
        self.from_status = from_status
        self.to_status = to_status
        self.channel = channel
        detail = f"Invalid order status transition from {from_status} to {to_status} via {channel} channel"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(detail)


__all__ = [
    "AccessError",
    "AuthenticationMissing",
    "AuthorizationDenied",
    "InvalidGrantRequest",
    "HierarchyResolutionFailure",
    "NotFound",
    "InvalidTransition",
]
