"""
Payment Route Handlers
======================

Flow seen from the frontend:
    1. POST /create-payment-intent  → client_secret from the payment gateway
    2. Card confirmed in the browser with that secret
    3. POST /payments               → parcel marked paid, payment stored,
                                      admins notified
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from localmarket.auth.identity import Identity
from localmarket.auth.policy import current_identity
from localmarket.dependencies import get_payment_service
from localmarket.schemas.common import ErrorResponse, InsertedResponse, to_documents
from localmarket.schemas.payment import (
    PaymentCreate,
    PaymentIntentRequest,
    PaymentIntentResponse,
)
from localmarket.services.payment_service import PaymentService

router = APIRouter(tags=["Payments"])


@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    responses={500: {"description": "Payment gateway failure", "model": ErrorResponse}},
    summary="Create a card payment intent",
)
async def create_payment_intent(
    body: PaymentIntentRequest,
    caller: Identity = Depends(current_identity),
    service: PaymentService = Depends(get_payment_service),
) -> PaymentIntentResponse:
    intent = await service.create_intent(body, caller)
    return PaymentIntentResponse(client_secret=intent.client_secret, payment_intent_id=intent.id)


@router.get(
    "/payments",
    responses={403: {"description": "Email is not the caller's", "model": ErrorResponse}},
    summary="Caller's payment history, newest first",
)
async def payment_history(
    email: Optional[str] = Query(default=None, description="Must be the caller's own email"),
    caller: Identity = Depends(current_identity),
    service: PaymentService = Depends(get_payment_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.payment_history(caller, email))


@router.post(
    "/payments",
    response_model=InsertedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"description": "Parcel not found", "model": ErrorResponse}},
    summary="Record a confirmed payment",
)
async def record_payment(
    body: PaymentCreate,
    caller: Identity = Depends(current_identity),
    service: PaymentService = Depends(get_payment_service),
) -> InsertedResponse:
    payment = await service.record_payment(body, caller)
    return InsertedResponse(inserted_id=str(payment.id))
