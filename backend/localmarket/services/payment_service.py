"""
LocalMarket Backend: Payment Service
=====================================

What:  Payment intents (delegated to the gateway), payment history, and
       recording a confirmed payment against a parcel.
Who:   Called by POST /create-payment-intent and the /payments routes.

Recording a payment (POST /payments) is one transaction:
    1. parcel.payment_status = paid, paid_at stamped
    2. payment record inserted
    3. admin notification inserted
    4. commit, then broadcast the notification

Recording is not idempotent: reporting the same transaction twice stores
two payment records.
"""

import logging
from typing import List, Optional

from localmarket.auth.identity import Identity
from localmarket.config import settings
from localmarket.database import utcnow
from localmarket.exceptions import AuthorizationError
from localmarket.identifiers import parse_optional_id
from localmarket.models.enums import PaymentStatus, Role
from localmarket.models.payment import Payment
from localmarket.repositories import UnitOfWork
from localmarket.schemas.payment import PaymentCreate, PaymentIntentRequest
from localmarket.services.common import fetch_or_404
from localmarket.services.notification_service import NotificationService
from localmarket.services.payment_gateway import PaymentGateway, PaymentIntent

logger = logging.getLogger(__name__)


class PaymentService:
    def __init__(
        self,
        uow: UnitOfWork,
        gateway: PaymentGateway,
        notifications: NotificationService,
        currency: Optional[str] = None,
    ):
        self.uow = uow
        self.gateway = gateway
        self.notifications = notifications
        self.currency = currency or settings.payment_currency

    async def create_intent(self, body: PaymentIntentRequest, caller: Identity) -> PaymentIntent:
        parcel_id = parse_optional_id(body.parcel_id, "parcel_id")
        metadata = {"email": caller.email}
        if parcel_id is not None:
            metadata["parcel_id"] = str(parcel_id)
        return await self.gateway.create_intent(body.amount_in_cents, self.currency, metadata)

    async def payment_history(self, caller: Identity, email: Optional[str] = None) -> List[Payment]:
        if email and email.strip().lower() != caller.email:
            raise AuthorizationError(message="You can only view your own payments")
        return await self.uow.payments.for_email(caller.email)

    async def record_payment(self, body: PaymentCreate, caller: Identity) -> Payment:
        parcel = await fetch_or_404(self.uow.parcels, body.parcel_id, "parcel")
        now = utcnow()

        await self.uow.parcels.update(
            parcel,
            {"payment_status": PaymentStatus.PAID.value, "paid_at": now, "updated_at": now},
        )
        fields = body.declared_fields()
        fields.update(parcel_id=parcel.id, email=caller.email, paid_at=now)
        payment = await self.uow.payments.add(self.uow.payments.build(fields, body.loose_fields()))

        notification = await self.notifications.stage(
            message=f"Payment of {body.amount:.2f} received for parcel {parcel.tracking_id}",
            to_role=Role.ADMIN,
            from_role=Role.USER,
            parcel_id=parcel.id,
        )
        await self.uow.commit()
        await self.notifications.publish(notification)
        logger.info("Payment %s recorded for parcel %s", payment.transaction_id, parcel.tracking_id)
        return payment
