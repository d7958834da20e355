from typing import Optional

from pydantic import BaseModel, Field

from localmarket.models.enums import Role
from localmarket.schemas.common import DocumentIn, Email


class NotificationCreate(DocumentIn):
    message: str = Field(min_length=1)
    to_role: Role
    from_role: Optional[Role] = None
    to_email: Optional[Email] = None
    parcel_id: Optional[str] = None


class ReadAllResponse(BaseModel):
    updated: int
