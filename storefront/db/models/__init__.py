"""
Domain-split SQLAlchemy models.

Exposes `Base`, `now_utc`, and all ORM classes from one import point.
"""

from .base import Base, now_utc  # re-export

# Domain models
from .users import User
from .catalog import Collection, Category, Product
from .grants import AccessGrant
from .orders import Order
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    # users
    "User",
    # catalog
    "Collection",
    "Category",
    "Product",
    # access
    "AccessGrant",
    # orders
    "Order",
    # audit
    "AuditLog",
]
