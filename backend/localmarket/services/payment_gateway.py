"""
LocalMarket Backend: Payment Gateway Adapter
=============================================

What:  Creates card payment intents with the external payment provider.
How:   `PaymentGateway` is the abstract contract; `StripePaymentGateway` calls
       the Stripe SDK. The SDK is synchronous, so each call runs in FastAPI's
       threadpool to keep the event loop free.
Who:   Used by PaymentService for POST /create-payment-intent.

Failure handling:
    Any Stripe error (card, auth, network, rate limit) is logged with its
    type and re-raised as ExternalServiceError → 500 with a generic message.
    There is no retry: the client decides whether to try again.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import stripe
from fastapi.concurrency import run_in_threadpool

from localmarket.config import Settings, settings as default_settings
from localmarket.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_secret: str


class PaymentGateway(ABC):
    """Contract for the payment provider."""

    @abstractmethod
    async def create_intent(
        self,
        amount_in_cents: int,
        currency: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PaymentIntent:
        """
        Create a card payment intent.

        Returns:
            PaymentIntent whose client_secret the frontend confirms with.

        Raises:
            ExternalServiceError: the provider rejected the call or is unreachable.
        """
        ...


class StripePaymentGateway(PaymentGateway):
    def __init__(self, secret_key: str):
        self.secret_key = secret_key

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "StripePaymentGateway":
        config = config or default_settings
        return cls(secret_key=config.stripe_secret_key)

    async def create_intent(
        self,
        amount_in_cents: int,
        currency: str,
        metadata: Optional[Dict[str, str]] = None,
    ) -> PaymentIntent:
        if not self.secret_key:
            raise ExternalServiceError(
                service="payment_gateway",
                message="Payment gateway is not configured.",
            )

        try:
            intent = await run_in_threadpool(
                stripe.PaymentIntent.create,
                api_key=self.secret_key,
                amount=amount_in_cents,
                currency=currency,
                payment_method_types=["card"],
                metadata=metadata or {},
            )
        except stripe.StripeError as e:
            logger.error("Stripe payment intent failed: %s", type(e).__name__)
            raise ExternalServiceError(
                service="payment_gateway",
                context={"error_type": type(e).__name__, "amount": amount_in_cents},
            )

        logger.info("Created payment intent %s for %d %s", intent.id, amount_in_cents, currency)
        return PaymentIntent(id=intent.id, client_secret=intent.client_secret)
