"""Vendor advertisement routes with admin moderation."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from localmarket.auth.identity import Identity
from localmarket.auth.policy import current_identity
from localmarket.dependencies import get_advertisement_service
from localmarket.models.enums import ModerationStatus
from localmarket.schemas.common import DeletedResponse, ErrorResponse, InsertedResponse, to_documents
from localmarket.schemas.marketplace import AdvertisementCreate, ModerationUpdate
from localmarket.services.advertisement_service import AdvertisementService

router = APIRouter(tags=["Advertisements"])

NOT_FOUND = {404: {"description": "Advertisement not found", "model": ErrorResponse}}


@router.post(
    "/vendor/advertisements",
    response_model=InsertedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit an advertisement",
)
async def create_advertisement(
    body: AdvertisementCreate,
    caller: Identity = Depends(current_identity),
    service: AdvertisementService = Depends(get_advertisement_service),
) -> InsertedResponse:
    ad = await service.create(body, caller)
    return InsertedResponse(inserted_id=str(ad.id))


@router.get("/vendor/advertisements", summary="Caller's advertisements")
async def vendor_advertisements(
    caller: Identity = Depends(current_identity),
    service: AdvertisementService = Depends(get_advertisement_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.vendor_ads(caller))


@router.delete(
    "/vendor/advertisements/{ad_id}",
    response_model=DeletedResponse,
    responses=NOT_FOUND,
    summary="Delete own advertisement",
)
async def delete_advertisement(
    ad_id: str,
    caller: Identity = Depends(current_identity),
    service: AdvertisementService = Depends(get_advertisement_service),
) -> DeletedResponse:
    await service.delete_own(ad_id, caller)
    return DeletedResponse(deleted_count=1)


@router.get("/advertisements", summary="Approved advertisements")
async def published_advertisements(
    service: AdvertisementService = Depends(get_advertisement_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.published())


@router.get("/admin/advertisements", summary="All advertisements (admin)")
async def all_advertisements(
    status: Optional[ModerationStatus] = Query(default=None),
    service: AdvertisementService = Depends(get_advertisement_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.all_ads(status))


@router.patch(
    "/admin/advertisements/{ad_id}/status",
    responses=NOT_FOUND,
    summary="Approve or reject an advertisement (admin)",
)
async def moderate_advertisement(
    ad_id: str,
    body: ModerationUpdate,
    service: AdvertisementService = Depends(get_advertisement_service),
) -> Dict[str, Any]:
    ad = await service.moderate(ad_id, body)
    return ad.to_document()
