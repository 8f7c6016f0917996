import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class AccessGrant(Base):
    """Explicit per-user grant on exactly one collection, category or product."""

    __tablename__ = 'collection_access'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    collection_id = Column(UUID(as_uuid=True), ForeignKey('collections.id', ondelete='CASCADE'), nullable=True)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='CASCADE'), nullable=True)
    product_id = Column(UUID(as_uuid=True), ForeignKey('products.id', ondelete='CASCADE'), nullable=True)
    access_level = Column(String(10), nullable=False)  # 'view'|'edit'
    granted_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    # "<collection>:<category>:<product>" with the nil UUID for unset slots
    resource_key = Column(String(110), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('user_id', 'resource_key', name='uq_collection_access_user_resource'),
        CheckConstraint("access_level in ('view','edit')", name='ck_collection_access_level'),
        CheckConstraint(
            "(CASE WHEN collection_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN category_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN product_id IS NULL THEN 0 ELSE 1 END) = 1",
            name='ck_collection_access_single_resource',
        ),
        Index('idx_collection_access_user_id', 'user_id'),
        Index('idx_collection_access_collection_id', 'collection_id'),
        Index('idx_collection_access_category_id', 'category_id'),
        Index('idx_collection_access_product_id', 'product_id'),
    )
