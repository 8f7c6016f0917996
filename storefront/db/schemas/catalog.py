import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class Collection(BaseModel):
    id: uuid.UUID
    name: str
    owner_user_id: uuid.UUID
    visible: bool
    created_at: datetime | None = None
    model_config = ConfigDict(from_attributes=True)


class Category(BaseModel):
    id: uuid.UUID
    collection_id: uuid.UUID
    name: str
    model_config = ConfigDict(from_attributes=True)


class Product(BaseModel):
    id: uuid.UUID
    category_id: uuid.UUID
    name: str
    model_config = ConfigDict(from_attributes=True)
