import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Order(Base):
    __tablename__ = 'orders'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='SET NULL'), nullable=True)
    collection_id = Column(UUID(as_uuid=True), ForeignKey('collections.id', ondelete='SET NULL'), nullable=True)
    wallet_address = Column(String(128), nullable=False)
    # 'draft'|'pending_payment'|'confirmed'|'shipped'|'delivered'|'cancelled'
    status = Column(String(20), nullable=False, default='draft')
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_orders_wallet_address', 'wallet_address'),
        Index('idx_orders_collection_id', 'collection_id'),
        CheckConstraint(
            "status in ('draft','pending_payment','confirmed','shipped','delivered','cancelled')",
            name='ck_orders_status',
        ),
    )
