import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict


class Order(BaseModel):
    id: uuid.UUID
    product_id: uuid.UUID | None = None
    collection_id: uuid.UUID | None = None
    wallet_address: str
    status: str
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class OrderStatusChange(BaseModel):
    status: str
    # Optimistic check: the status the caller believes the order is in
    from_status: str | None = None
