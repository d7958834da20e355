from typing import Optional

from pydantic import BaseModel, Field, field_validator

from localmarket.models.enums import ModerationStatus, OrderStatus
from localmarket.schemas.common import DocumentIn


class ProductCreate(DocumentIn):
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)
    market_name: Optional[str] = Field(default=None, max_length=255)
    vendor_name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=1024)


class ProductUpdate(DocumentIn):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[float] = Field(default=None, ge=0)
    market_name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=1024)

    @field_validator("name", "price")
    @classmethod
    def not_null(cls, value):
        # May be omitted, but never cleared
        if value is None:
            raise ValueError("cannot be null")
        return value


class ModerationUpdate(BaseModel):
    """Admin decision on a product or advertisement."""

    status: ModerationStatus
    feedback: Optional[str] = None


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None
    user_name: Optional[str] = Field(default=None, max_length=255)


class OrderCreate(DocumentIn):
    product_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class AdvertisementCreate(DocumentIn):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    image_url: Optional[str] = Field(default=None, max_length=1024)


class WatchlistCreate(BaseModel):
    product_id: str = Field(min_length=1)
