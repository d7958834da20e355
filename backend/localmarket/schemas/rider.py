from typing import Optional

from pydantic import BaseModel, Field, model_validator

from localmarket.models.enums import RiderStatus, RiderWorkStatus
from localmarket.schemas.common import DocumentIn


class RiderCreate(DocumentIn):
    """Rider application. The applicant's email comes from the bearer token."""

    name: str = Field(min_length=1, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    region: Optional[str] = Field(default=None, max_length=100)
    district: str = Field(min_length=1, max_length=100)


class RiderUpdate(BaseModel):
    status: Optional[RiderStatus] = None
    work_status: Optional[RiderWorkStatus] = None

    @model_validator(mode="after")
    def require_one_field(self) -> "RiderUpdate":
        if self.status is None and self.work_status is None:
            raise ValueError("status or work_status is required")
        return self
