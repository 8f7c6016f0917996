import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class GrantTarget(BaseModel):
    """Three optional resource slots; exactly one must be set."""
    user_id: uuid.UUID
    collection_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    product_id: uuid.UUID | None = None


class GrantUpsert(GrantTarget):
    # Plain string so an unknown level reaches the service and fails as InvalidGrantRequest
    access_level: str


class GrantRevoke(GrantTarget):
    pass


class Grant(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    collection_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    product_id: uuid.UUID | None = None
    access_level: str
    granted_by: uuid.UUID | None = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserAccessEntry(BaseModel):
    content_id: uuid.UUID
    content_type: str
    content_name: str | None = None
    access_type: str


class CollectionAccessDetails(BaseModel):
    collection_id: uuid.UUID
    collection_name: str
    owner_id: uuid.UUID
    access_users: list[Grant]


class OwnershipTransfer(BaseModel):
    new_owner_user_id: uuid.UUID
    preserve_previous_owner_access: bool = True
