from typing import Optional

from pydantic import BaseModel, Field

from localmarket.schemas.common import Email


class ContactMessage(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: Email
    subject: Optional[str] = Field(default=None, max_length=255)
    message: str = Field(min_length=1, max_length=10_000)
