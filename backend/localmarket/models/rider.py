"""Delivery riders: an application record plus an availability flag."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from localmarket.database import Base, DocumentMixin
from localmarket.models.enums import RiderStatus, RiderWorkStatus


class Rider(DocumentMixin, Base):
    """
    A courier.

    `status` tracks the application (pending → active | rejected, active →
    inactive). `work_status` is the availability used for assignment:
    `busy` while a parcel is assigned and not yet delivered.
    """

    __tablename__ = "riders"

    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    district: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=RiderStatus.PENDING.value, index=True
    )
    work_status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=RiderWorkStatus.AVAILABLE.value
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
