"""
Parcel and tracking-event models.

Lifecycle of a parcel:
    1. Created by a user (delivery_status='not_collected', payment_status='unpaid')
    2. Paid (payment_status='paid', paid_at set)
    3. Assigned to an active rider (delivery_status='rider_assigned')
    4. Picked up (delivery_status='in_transit', picked_at set)
    5. Delivered (delivery_status='delivered', delivered_at set)
    6. Cashed out once by the assigned rider (cashout_status='cashed_out')

Every status change also appends a TrackingEvent; the tracking log is
append-only and keyed by the human-readable tracking_id.
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from localmarket.database import Base, DocumentMixin
from localmarket.models.enums import DeliveryStatus, PaymentStatus


class Parcel(DocumentMixin, Base):
    __tablename__ = "parcels"

    tracking_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    parcel_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    cost: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    sender_region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    sender_district: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    receiver_region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    receiver_district: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    delivery_status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=DeliveryStatus.NOT_COLLECTED.value
    )
    payment_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=PaymentStatus.UNPAID.value
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    assigned_rider_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    assigned_rider_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    assigned_rider_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    picked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Guard field for the at-most-once rider payout
    cashout_status: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    cashed_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_parcels_created_at", "created_at"),
        Index("idx_parcels_delivery_status", "delivery_status"),
    )


class TrackingEvent(DocumentMixin, Base):
    """One append-only status/location record; `created_at` is the event timestamp."""

    __tablename__ = "tracking_events"

    tracking_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    parcel_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(64), nullable=False)
    location: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    updated_by: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
