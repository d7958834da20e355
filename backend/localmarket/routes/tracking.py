"""Tracking log routes. The history lookup is public so receivers can follow a parcel."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status

from localmarket.auth.identity import Identity
from localmarket.auth.policy import current_identity
from localmarket.dependencies import get_tracking_service
from localmarket.schemas.common import InsertedResponse, to_documents
from localmarket.schemas.parcel import TrackingEventCreate
from localmarket.services.tracking_service import TrackingService

router = APIRouter(tags=["Tracking"])


@router.post(
    "/tracking",
    response_model=InsertedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Append a tracking event",
)
async def append_tracking_event(
    body: TrackingEventCreate,
    caller: Identity = Depends(current_identity),
    service: TrackingService = Depends(get_tracking_service),
) -> InsertedResponse:
    event = await service.append(body, updated_by=caller.email)
    return InsertedResponse(inserted_id=str(event.id))


@router.get("/tracking/{tracking_id}", summary="Tracking history, oldest first")
async def tracking_history(
    tracking_id: str,
    service: TrackingService = Depends(get_tracking_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.history(tracking_id))
