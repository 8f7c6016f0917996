"""
Role and access-level utilities for marketplace principals.

Profile roles decide the first branch of every authorization decision;
access levels rank explicit grants so the engine can compare them.
"""

from typing import Dict, FrozenSet, Optional


# Central role constants to ensure consistency across the codebase
ROLE_ADMIN = "admin"
ROLE_MERCHANT = "merchant"
ROLE_USER = "user"
ROLE_ANONYMOUS = "anonymous"

# Roles allowed to own a collection (ownership transfer target check)
OWNER_ROLES: FrozenSet[str] = frozenset({ROLE_ADMIN, ROLE_MERCHANT})

ACCESS_VIEW = "view"
ACCESS_EDIT = "edit"

# Higher rank satisfies every requirement of a lower rank
ACCESS_LEVEL_RANK: Dict[str, int] = {
    ACCESS_VIEW: 1,
    ACCESS_EDIT: 2,
}

ALLOWED_ACCESS_LEVELS = set(ACCESS_LEVEL_RANK.keys())


def normalize_profile_role(role: Optional[str]) -> str:
    """Map a stored profile role to a principal role.

    Anything that is not admin or merchant resolves to plain user.
    """
    value = (role or "").strip().lower()
    if value in (ROLE_ADMIN, ROLE_MERCHANT):
        return value
    return ROLE_USER


def is_valid_access_level(level) -> bool:
    """Return True if the provided level is one of the supported grant levels."""
    return isinstance(level, str) and level in ALLOWED_ACCESS_LEVELS


def access_level_rank(level: Optional[str]) -> int:
    """Return the rank of a level; unknown or missing levels rank 0."""
    return ACCESS_LEVEL_RANK.get(level, 0)


def highest_access_level(*levels: Optional[str]) -> Optional[str]:
    """Return the strongest level among the arguments, or None if none is valid."""
    best = None
    for level in levels:
        if access_level_rank(level) > access_level_rank(best):
            best = level
    return best


def level_satisfies(granted: Optional[str], required: str) -> bool:
    """Return True when a granted level meets the required level."""
    if access_level_rank(required) == 0:
        return False
    return access_level_rank(granted) >= access_level_rank(required)
