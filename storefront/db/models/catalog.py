import uuid
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base, now_utc


class Collection(Base):
    __tablename__ = 'collections'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    # Canonical ownership field
    owner_user_id = Column(UUID(as_uuid=True), ForeignKey('users.id'), nullable=False)
    # Legacy creator column, only consulted when LEGACY_CREATED_BY_OWNERSHIP is on
    created_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    visible = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    categories = relationship(
        "Category", back_populates="collection", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index('idx_collections_owner_user_id', 'owner_user_id'),
    )


class Category(Base):
    __tablename__ = 'categories'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    collection_id = Column(UUID(as_uuid=True), ForeignKey('collections.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    collection = relationship("Collection", back_populates="categories")
    products = relationship(
        "Product", back_populates="category", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        Index('idx_categories_collection_id', 'collection_id'),
    )


class Product(Base):
    __tablename__ = 'products'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    category_id = Column(UUID(as_uuid=True), ForeignKey('categories.id', ondelete='CASCADE'), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc)

    category = relationship("Category", back_populates="products")

    __table_args__ = (
        Index('idx_products_category_id', 'category_id'),
    )
