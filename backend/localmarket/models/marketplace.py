"""
Marketplace models: products, reviews, orders, advertisements, watchlist.

These are plain CRUD records; the only rule enforced by the schema is one
watchlist entry per (user, product) pair.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from localmarket.database import Base, DocumentMixin
from localmarket.models.enums import ModerationStatus, OrderStatus


class Product(DocumentMixin, Base):
    __tablename__ = "products"

    vendor_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    vendor_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    market_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ModerationStatus.PENDING.value, index=True
    )
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class Review(DocumentMixin, Base):
    __tablename__ = "reviews"

    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class Order(DocumentMixin, Base):
    __tablename__ = "orders"

    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    buyer_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_price: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=OrderStatus.PENDING.value, index=True
    )
    accepted_by_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    accepted_by_role: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)


class Advertisement(DocumentMixin, Base):
    __tablename__ = "advertisements"

    vendor_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=ModerationStatus.PENDING.value
    )
    feedback: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class WatchlistItem(DocumentMixin, Base):
    __tablename__ = "watchlist"

    user_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_email", "product_id", name="uq_watchlist_user_product"),
    )
