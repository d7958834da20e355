from typing import Optional

from pydantic import BaseModel, Field, model_validator

from localmarket.models.enums import DeliveryStatus, PaymentStatus
from localmarket.schemas.common import DocumentIn, Email


class ParcelCreate(DocumentIn):
    """
    New parcel. Only the creator and the cost are required; sender/receiver
    names, phone numbers and addresses travel as loose document fields.
    """

    created_by: Email
    cost: float = Field(ge=0)
    title: Optional[str] = Field(default=None, max_length=255)
    parcel_type: Optional[str] = Field(default=None, max_length=32)
    weight: Optional[float] = Field(default=None, ge=0)
    sender_region: Optional[str] = Field(default=None, max_length=100)
    sender_district: Optional[str] = Field(default=None, max_length=100)
    receiver_region: Optional[str] = Field(default=None, max_length=100)
    receiver_district: Optional[str] = Field(default=None, max_length=100)
    tracking_id: Optional[str] = Field(default=None, min_length=4, max_length=64)


class CreatedParcelResponse(BaseModel):
    inserted_id: str
    tracking_id: str


class ParcelPatch(BaseModel):
    """Admin generic status patch; at least one field required."""

    delivery_status: Optional[DeliveryStatus] = None
    payment_status: Optional[PaymentStatus] = None

    @model_validator(mode="after")
    def require_one_field(self) -> "ParcelPatch":
        if self.delivery_status is None and self.payment_status is None:
            raise ValueError("delivery_status or payment_status is required")
        return self


class ParcelStatusUpdate(BaseModel):
    """Rider-driven delivery progress."""

    delivery_status: DeliveryStatus
    location: Optional[str] = Field(default=None, max_length=255)
    note: Optional[str] = None


class AssignRiderRequest(BaseModel):
    rider_id: str = Field(min_length=1)


class StatusCount(BaseModel):
    status: str
    count: int


class TrackingEventCreate(DocumentIn):
    tracking_id: str = Field(min_length=1, max_length=64)
    parcel_id: Optional[str] = None
    status: str = Field(min_length=1, max_length=64)
    location: Optional[str] = Field(default=None, max_length=255)
    note: Optional[str] = None
