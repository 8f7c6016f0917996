"""
Resource reference helpers for the catalog hierarchy.

A ResourceRef names exactly one node of Collection -> Category -> Product.
Grants persist the reference as three optional id slots plus a normalized
key in which unset slots carry a fixed sentinel, so ordinary unique
constraints can compare rows without NULL semantics getting in the way.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from storefront.errors import InvalidGrantRequest

# Canonical kind values used in API payloads and audit metadata
KIND_COLLECTION = "collection"
KIND_CATEGORY = "category"
KIND_PRODUCT = "product"

# Stored in place of NULL inside the normalized key
RESOURCE_SLOT_SENTINEL = "00000000-0000-0000-0000-000000000000"


class ResourceKind(str, Enum):
    collection = KIND_COLLECTION
    category = KIND_CATEGORY
    product = KIND_PRODUCT


def _coerce_uuid(value) -> Optional[uuid.UUID]:
    if value is None or value == "":
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError, AttributeError):
        raise InvalidGrantRequest(f"Invalid resource id: {value!r}")


@dataclass(frozen=True)
class ResourceRef:
    kind: ResourceKind
    id: uuid.UUID

    def __post_init__(self):
        # Normalize plain strings passed by callers
        if not isinstance(self.kind, ResourceKind):
            try:
                object.__setattr__(self, "kind", ResourceKind(self.kind))
            except ValueError:
                raise InvalidGrantRequest(f"Unknown resource kind: {self.kind!r}")
        coerced = _coerce_uuid(self.id)
        if coerced is None:
            raise InvalidGrantRequest("Resource id is required")
        object.__setattr__(self, "id", coerced)

    @classmethod
    def collection(cls, collection_id) -> "ResourceRef":
        return cls(ResourceKind.collection, collection_id)

    @classmethod
    def category(cls, category_id) -> "ResourceRef":
        return cls(ResourceKind.category, category_id)

    @classmethod
    def product(cls, product_id) -> "ResourceRef":
        return cls(ResourceKind.product, product_id)

    @classmethod
    def from_slots(cls, collection_id=None, category_id=None, product_id=None) -> "ResourceRef":
        """Build a reference from three optional id slots.

        Exactly one slot must be set; anything else is an invalid request.
        """
        slots = [
            (ResourceKind.collection, _coerce_uuid(collection_id)),
            (ResourceKind.category, _coerce_uuid(category_id)),
            (ResourceKind.product, _coerce_uuid(product_id)),
        ]
        present = [(kind, value) for kind, value in slots if value is not None]
        if not present:
            raise InvalidGrantRequest("A collection, category or product id is required")
        if len(present) > 1:
            raise InvalidGrantRequest("Only one of collection_id, category_id or product_id may be set")
        kind, value = present[0]
        return cls(kind, value)

    def slots(self) -> Tuple[Optional[uuid.UUID], Optional[uuid.UUID], Optional[uuid.UUID]]:
        """Return (collection_id, category_id, product_id) with unset slots as None."""
        return (
            self.id if self.kind is ResourceKind.collection else None,
            self.id if self.kind is ResourceKind.category else None,
            self.id if self.kind is ResourceKind.product else None,
        )

    @property
    def resource_key(self) -> str:
        return normalized_resource_key(*self.slots())

    def as_dict(self) -> dict:
        return {"kind": self.kind.value, "id": str(self.id)}

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


def normalized_resource_key(collection_id=None, category_id=None, product_id=None) -> str:
    """Join the three slots into the key stored on grants.

    Unset slots are written as RESOURCE_SLOT_SENTINEL.
    """
    parts = []
    for value in (collection_id, category_id, product_id):
        parts.append(str(value) if value is not None else RESOURCE_SLOT_SENTINEL)
    return ":".join(parts)
