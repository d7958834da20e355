"""Role-addressed mailbox messages."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from localmarket.database import Base, DocumentMixin
from localmarket.models.enums import NotificationStatus


class Notification(DocumentMixin, Base):
    __tablename__ = "notifications"

    message: Mapped[str] = mapped_column(Text, nullable=False)
    from_role: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    to_role: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    to_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    parcel_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=NotificationStatus.UNREAD.value
    )
    read_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
