"""
LocalMarket Backend: Order Service
===================================

What:  Buyers order approved products; admins and riders accept and advance
       orders; buyers can cancel while an order is still pending.

The order snapshots the product name and computes `total_price` from the
product's price at ordering time.
"""

import logging
from typing import List, Optional

from localmarket.auth.identity import Identity
from localmarket.database import utcnow
from localmarket.exceptions import ValidationError
from localmarket.models.enums import ModerationStatus, OrderStatus
from localmarket.models.marketplace import Order
from localmarket.repositories import UnitOfWork
from localmarket.schemas.marketplace import OrderCreate, OrderStatusUpdate
from localmarket.services.common import fetch_or_404, require_owner

logger = logging.getLogger(__name__)


class OrderService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def place_order(self, body: OrderCreate, caller: Identity) -> Order:
        product = await fetch_or_404(self.uow.products, body.product_id, "product")
        if product.status != ModerationStatus.APPROVED.value:
            raise ValidationError(message="Product is not available for ordering", field="product_id")

        fields = {
            "product_id": product.id,
            "product_name": product.name,
            "buyer_email": caller.email,
            "quantity": body.quantity,
            "total_price": round(product.price * body.quantity, 2),
            "status": OrderStatus.PENDING.value,
        }
        order = await self.uow.orders.add(self.uow.orders.build(fields, body.loose_fields()))
        await self.uow.commit()
        logger.info("Order %s placed by %s", order.id, caller.email)
        return order

    async def my_orders(self, caller: Identity) -> List[Order]:
        return await self.uow.orders.list_filtered(buyer_email=caller.email)

    async def all_orders(self, status: Optional[OrderStatus] = None) -> List[Order]:
        return await self.uow.orders.list_filtered(
            status=OrderStatus(status).value if status else None,
        )

    async def set_status(self, order_id: str, body: OrderStatusUpdate) -> Order:
        order = await fetch_or_404(self.uow.orders, order_id, "order")
        await self.uow.orders.update(order, {"status": OrderStatus(body.status).value})
        await self.uow.commit()
        return order

    async def accept(self, order_id: str, caller: Identity) -> Order:
        order = await fetch_or_404(self.uow.orders, order_id, "order")
        if order.status != OrderStatus.PENDING.value:
            raise ValidationError(message=f"Order is already '{order.status}'", field="status")

        role = await self.uow.users.role_of(caller.email)
        await self.uow.orders.update(
            order,
            {
                "status": OrderStatus.ACCEPTED.value,
                "accepted_by_email": caller.email,
                "accepted_by_role": role.value,
                "accepted_at": utcnow(),
            },
        )
        await self.uow.commit()
        logger.info("Order %s accepted by %s (%s)", order.id, caller.email, role.value)
        return order

    async def cancel(self, order_id: str, caller: Identity) -> None:
        order = await fetch_or_404(self.uow.orders, order_id, "order")
        require_owner(order.buyer_email, caller.email, "order")
        if order.status != OrderStatus.PENDING.value:
            raise ValidationError(message="Only pending orders can be cancelled", field="status")
        await self.uow.orders.delete_by_id(order.id)
        await self.uow.commit()
