"""
Parcel Route Handlers
=====================

What:  Booking, listing, admin patches, rider assignment, rider progress, and
       the rider's own parcel lists.
Who:   Sender dashboard (book/list/delete), admin dashboard (assign, counts,
       patch), rider app (status progress, assigned/completed lists).

Routes are thin: parse HTTP, call ParcelService, return documents.
`/parcels/delivery-status-counts` is declared before `/parcels/{parcel_id}`
so the literal path wins.
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from localmarket.auth.identity import Identity
from localmarket.auth.policy import current_identity
from localmarket.dependencies import get_parcel_service
from localmarket.models.enums import PaymentStatus
from localmarket.schemas.common import DeletedResponse, ErrorResponse, to_documents
from localmarket.schemas.parcel import (
    AssignRiderRequest,
    CreatedParcelResponse,
    ParcelCreate,
    ParcelPatch,
    ParcelStatusUpdate,
    StatusCount,
)
from localmarket.services.parcel_service import ParcelService


router = APIRouter(tags=["Parcels"])

NOT_FOUND = {404: {"description": "Parcel not found", "model": ErrorResponse}}


@router.get("/parcels", summary="List parcels, newest first")
async def list_parcels(
    email: Optional[str] = Query(default=None, description="Creator email"),
    delivery_status: Optional[str] = Query(
        default=None,
        description="One status or a comma separated set, e.g. 'rider_assigned,in_transit'",
    ),
    payment_status: Optional[PaymentStatus] = Query(default=None),
    district: Optional[str] = Query(default=None, description="Sender or receiver district"),
    search: Optional[str] = Query(default=None, description="Partial title or tracking ID"),
    service: ParcelService = Depends(get_parcel_service),
) -> List[Dict[str, Any]]:
    parcels = await service.list_parcels(
        email=email,
        delivery_status=delivery_status,
        payment_status=payment_status,
        district=district,
        search=search,
    )
    return to_documents(parcels)


@router.post(
    "/parcels",
    response_model=CreatedParcelResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Invalid parcel", "model": ErrorResponse}},
    summary="Book a parcel",
)
async def create_parcel(
    body: ParcelCreate,
    service: ParcelService = Depends(get_parcel_service),
) -> CreatedParcelResponse:
    parcel = await service.create_parcel(body)
    return CreatedParcelResponse(inserted_id=str(parcel.id), tracking_id=parcel.tracking_id)


@router.get(
    "/parcels/delivery-status-counts",
    response_model=List[StatusCount],
    summary="Parcel count per delivery status (admin)",
)
async def delivery_status_counts(
    service: ParcelService = Depends(get_parcel_service),
) -> List[StatusCount]:
    return await service.status_counts()


@router.get("/parcels/{parcel_id}", responses=NOT_FOUND, summary="Get one parcel")
async def get_parcel(
    parcel_id: str,
    service: ParcelService = Depends(get_parcel_service),
) -> Dict[str, Any]:
    parcel = await service.get_parcel(parcel_id)
    return parcel.to_document()


@router.delete(
    "/parcels/{parcel_id}",
    response_model=DeletedResponse,
    responses=NOT_FOUND,
    summary="Delete a parcel (creator or admin)",
)
async def delete_parcel(
    parcel_id: str,
    caller: Identity = Depends(current_identity),
    service: ParcelService = Depends(get_parcel_service),
) -> DeletedResponse:
    await service.delete_parcel(parcel_id, caller)
    return DeletedResponse(deleted_count=1)


@router.patch("/parcels/{parcel_id}", responses=NOT_FOUND, summary="Set delivery/payment status (admin)")
async def patch_parcel(
    parcel_id: str,
    body: ParcelPatch,
    caller: Identity = Depends(current_identity),
    service: ParcelService = Depends(get_parcel_service),
) -> Dict[str, Any]:
    parcel = await service.patch_parcel(parcel_id, body, caller)
    return parcel.to_document()


@router.patch(
    "/parcels/{parcel_id}/status",
    responses={
        **NOT_FOUND,
        400: {"description": "Transition not allowed", "model": ErrorResponse},
        403: {"description": "Parcel assigned to another rider", "model": ErrorResponse},
    },
    summary="Advance delivery progress (assigned rider)",
)
async def update_delivery_status(
    parcel_id: str,
    body: ParcelStatusUpdate,
    caller: Identity = Depends(current_identity),
    service: ParcelService = Depends(get_parcel_service),
) -> Dict[str, Any]:
    parcel = await service.update_delivery_status(parcel_id, body, caller)
    return parcel.to_document()


@router.patch(
    "/parcels/{parcel_id}/assign-rider",
    responses={
        **NOT_FOUND,
        400: {"description": "Parcel not assignable or rider not active", "model": ErrorResponse},
    },
    summary="Assign an active rider (admin)",
)
async def assign_rider(
    parcel_id: str,
    body: AssignRiderRequest,
    service: ParcelService = Depends(get_parcel_service),
) -> Dict[str, Any]:
    parcel = await service.assign_rider(parcel_id, body)
    return parcel.to_document()


# ── Rider views ───────────────────────────────────────────────────────────
@router.get("/rider/parcels", summary="Caller's parcels still in delivery")
async def rider_parcels(
    caller: Identity = Depends(current_identity),
    service: ParcelService = Depends(get_parcel_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.rider_parcels(caller))


@router.get("/rider/completed-parcels", summary="Caller's delivered parcels")
async def rider_completed_parcels(
    caller: Identity = Depends(current_identity),
    service: ParcelService = Depends(get_parcel_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.rider_completed_parcels(caller))
