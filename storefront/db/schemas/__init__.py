"""
Domain-split Pydantic schemas with a single import point.
"""

from .users import UserBase, UserCreate, User
from .catalog import Collection, Category, Product
from .grants import (
    GrantTarget,
    GrantUpsert,
    GrantRevoke,
    Grant,
    UserAccessEntry,
    CollectionAccessDetails,
    OwnershipTransfer,
)
from .orders import Order, OrderStatusChange
from .audits import AuditLogBase, AuditLogCreate, AuditLog

__all__ = [
    "UserBase",
    "UserCreate",
    "User",
    "Collection",
    "Category",
    "Product",
    "GrantTarget",
    "GrantUpsert",
    "GrantRevoke",
    "Grant",
    "UserAccessEntry",
    "CollectionAccessDetails",
    "OwnershipTransfer",
    "Order",
    "OrderStatusChange",
    "AuditLogBase",
    "AuditLogCreate",
    "AuditLog",
]
