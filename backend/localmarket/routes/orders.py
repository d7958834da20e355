"""Marketplace order routes: buyers order and cancel, admins and riders fulfil."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from localmarket.auth.identity import Identity
from localmarket.auth.policy import current_identity
from localmarket.dependencies import get_order_service
from localmarket.models.enums import OrderStatus
from localmarket.schemas.common import DeletedResponse, ErrorResponse, InsertedResponse, to_documents
from localmarket.schemas.marketplace import OrderCreate, OrderStatusUpdate
from localmarket.services.order_service import OrderService

router = APIRouter(tags=["Orders"])

NOT_FOUND = {404: {"description": "Order not found", "model": ErrorResponse}}


@router.post(
    "/orders",
    response_model=InsertedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Product not orderable", "model": ErrorResponse}},
    summary="Order an approved product",
)
async def place_order(
    body: OrderCreate,
    caller: Identity = Depends(current_identity),
    service: OrderService = Depends(get_order_service),
) -> InsertedResponse:
    order = await service.place_order(body, caller)
    return InsertedResponse(inserted_id=str(order.id))


@router.get("/orders", summary="Caller's orders")
async def my_orders(
    caller: Identity = Depends(current_identity),
    service: OrderService = Depends(get_order_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.my_orders(caller))


@router.delete(
    "/orders/{order_id}",
    response_model=DeletedResponse,
    responses=NOT_FOUND,
    summary="Cancel own pending order",
)
async def cancel_order(
    order_id: str,
    caller: Identity = Depends(current_identity),
    service: OrderService = Depends(get_order_service),
) -> DeletedResponse:
    await service.cancel(order_id, caller)
    return DeletedResponse(deleted_count=1)


@router.get("/admin/orders", summary="All orders (admin)")
async def all_orders(
    status: Optional[OrderStatus] = Query(default=None),
    service: OrderService = Depends(get_order_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.all_orders(status))


@router.patch("/orders/{order_id}/status", responses=NOT_FOUND, summary="Set order status (admin)")
async def set_order_status(
    order_id: str,
    body: OrderStatusUpdate,
    service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    order = await service.set_status(order_id, body)
    return order.to_document()


@router.patch("/orders/{order_id}/accept", responses=NOT_FOUND, summary="Accept a pending order")
async def accept_order(
    order_id: str,
    caller: Identity = Depends(current_identity),
    service: OrderService = Depends(get_order_service),
) -> Dict[str, Any]:
    order = await service.accept(order_id, caller)
    return order.to_document()
