"""User accounts. The email is the identity key shared with the identity provider."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from localmarket.database import Base, DocumentMixin
from localmarket.models.enums import Role


class User(DocumentMixin, Base):
    """
    A registered account.

    `role` is checked by the authorization interceptor; anything stored
    outside the `Role` enumeration is treated as a plain user.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    photo_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
