from typing import Optional

from pydantic import BaseModel, Field

from localmarket.models.enums import Role
from localmarket.schemas.common import DocumentIn, Email


class UserCreate(DocumentIn):
    """Registration body. A `role` sent by the client is ignored."""

    email: Email
    name: Optional[str] = Field(default=None, max_length=255)
    photo_url: Optional[str] = Field(default=None, max_length=1024)


class RoleResponse(BaseModel):
    role: Role


class RoleUpdate(BaseModel):
    role: Role
