"""Watchlist routes. Adding a product twice returns the existing entry with 200."""

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Response, status

from localmarket.auth.identity import Identity
from localmarket.auth.policy import current_identity
from localmarket.dependencies import get_watchlist_service
from localmarket.schemas.common import DeletedResponse, ErrorResponse, to_documents
from localmarket.schemas.marketplace import WatchlistCreate
from localmarket.services.watchlist_service import WatchlistService

router = APIRouter(tags=["Watchlist"])


@router.post(
    "/watchlist",
    status_code=status.HTTP_201_CREATED,
    responses={
        200: {"description": "Already on the watchlist"},
        404: {"description": "Product not found", "model": ErrorResponse},
    },
    summary="Watch a product",
)
async def add_to_watchlist(
    body: WatchlistCreate,
    response: Response,
    caller: Identity = Depends(current_identity),
    service: WatchlistService = Depends(get_watchlist_service),
) -> Dict[str, Any]:
    item, created = await service.add(body, caller)
    if not created:
        response.status_code = status.HTTP_200_OK
    return item.to_document()


@router.get("/watchlist", summary="Caller's watchlist")
async def list_watchlist(
    caller: Identity = Depends(current_identity),
    service: WatchlistService = Depends(get_watchlist_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.items(caller))


@router.delete(
    "/watchlist/{item_id}",
    response_model=DeletedResponse,
    responses={404: {"description": "Item not found", "model": ErrorResponse}},
    summary="Stop watching a product",
)
async def remove_from_watchlist(
    item_id: str,
    caller: Identity = Depends(current_identity),
    service: WatchlistService = Depends(get_watchlist_service),
) -> DeletedResponse:
    await service.remove(item_id, caller)
    return DeletedResponse(deleted_count=1)
