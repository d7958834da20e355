from typing import Optional

from pydantic import BaseModel, Field

from localmarket.schemas.common import DocumentIn


class PaymentIntentRequest(BaseModel):
    amount_in_cents: int = Field(gt=0, description="Amount in the smallest currency unit")
    parcel_id: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    client_secret: str
    payment_intent_id: str


class PaymentCreate(DocumentIn):
    """
    A completed payment reported by the client after the gateway confirmed it.
    The payer email defaults to the caller.
    """

    parcel_id: str = Field(min_length=1)
    amount: float = Field(gt=0)
    transaction_id: str = Field(min_length=1, max_length=255)
    payment_method: str = Field(default="card", max_length=64)
