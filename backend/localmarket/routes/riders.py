"""
Rider Route Handlers
====================

What:  Rider applications, admin approval and availability lists, and the
       rider's guarded cash-out claim.

Cash-out answers (PATCH /riders/cashout/{parcel_id}):
    200  claimed now
    400  not delivered yet, or already cashed out
    403  parcel assigned to another rider
    404  no such parcel
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from localmarket.auth.identity import Identity
from localmarket.auth.policy import current_identity
from localmarket.dependencies import get_rider_service
from localmarket.models.enums import RiderStatus, RiderWorkStatus
from localmarket.schemas.common import ErrorResponse, InsertedResponse, to_documents
from localmarket.schemas.rider import RiderCreate, RiderUpdate
from localmarket.services.rider_service import RiderService

router = APIRouter(tags=["Riders"])


@router.post(
    "/riders",
    response_model=InsertedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Apply to become a rider",
)
async def apply_as_rider(
    body: RiderCreate,
    caller: Identity = Depends(current_identity),
    service: RiderService = Depends(get_rider_service),
) -> InsertedResponse:
    rider = await service.apply(body, caller)
    return InsertedResponse(inserted_id=str(rider.id))


@router.get("/riders", summary="List riders (admin)")
async def list_riders(
    status: Optional[RiderStatus] = Query(default=None),
    service: RiderService = Depends(get_rider_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.list_riders(status=status))


@router.get("/riders/pending", summary="Pending applications, oldest first (admin)")
async def pending_riders(service: RiderService = Depends(get_rider_service)) -> List[Dict[str, Any]]:
    return to_documents(await service.list_riders(status=RiderStatus.PENDING, oldest_first=True))


@router.get("/riders/active", summary="Active riders (admin)")
async def active_riders(
    search: Optional[str] = Query(default=None, description="Partial name or email"),
    service: RiderService = Depends(get_rider_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.list_riders(status=RiderStatus.ACTIVE, search=search))


@router.get("/riders/available", summary="Active riders free for assignment (admin)")
async def available_riders(
    district: Optional[str] = Query(default=None),
    service: RiderService = Depends(get_rider_service),
) -> List[Dict[str, Any]]:
    riders = await service.list_riders(
        status=RiderStatus.ACTIVE,
        work_status=RiderWorkStatus.AVAILABLE,
        district=district,
    )
    return to_documents(riders)


@router.patch(
    "/riders/cashout/{parcel_id}",
    responses={
        400: {"description": "Not delivered or already cashed out", "model": ErrorResponse},
        403: {"description": "Parcel assigned to another rider", "model": ErrorResponse},
        404: {"description": "Parcel not found", "model": ErrorResponse},
    },
    summary="Claim the payout for a delivered parcel (once)",
)
async def cash_out(
    parcel_id: str,
    caller: Identity = Depends(current_identity),
    service: RiderService = Depends(get_rider_service),
) -> Dict[str, Any]:
    parcel = await service.cash_out(parcel_id, caller)
    return parcel.to_document()


@router.patch(
    "/riders/{rider_id}",
    responses={404: {"description": "Rider not found", "model": ErrorResponse}},
    summary="Approve, reject, deactivate or change availability (admin)",
)
async def update_rider(
    rider_id: str,
    body: RiderUpdate,
    service: RiderService = Depends(get_rider_service),
) -> Dict[str, Any]:
    rider = await service.update_rider(rider_id, body)
    return rider.to_document()
