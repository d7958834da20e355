"""
Notification Routes
===================

HTTP:  create / list / mark read / mark all read, under the policy table.
WS:    /ws/notifications?token=<bearer token>

The WebSocket endpoint lives on its own router outside the HTTP policy
interceptor: browsers cannot set an Authorization header on a WebSocket, so
the token travels in the query string and is verified here before the socket
is accepted. Delivery is best effort (see NotificationHub).
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from localmarket.auth.identity import IdentityProvider
from localmarket.dependencies import (
    get_identity_provider,
    get_notification_hub,
    get_notification_service,
)
from localmarket.exceptions import AuthenticationError, ExternalServiceError
from localmarket.models.enums import NotificationStatus, Role
from localmarket.schemas.common import ErrorResponse, InsertedResponse, to_documents
from localmarket.schemas.notification import NotificationCreate, ReadAllResponse
from localmarket.services.notification_hub import NotificationHub
from localmarket.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notifications"])
ws_router = APIRouter(tags=["Notifications"])


@router.post(
    "/notifications",
    response_model=InsertedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a notification and push it to listeners",
)
async def create_notification(
    body: NotificationCreate,
    service: NotificationService = Depends(get_notification_service),
) -> InsertedResponse:
    notification = await service.create(body)
    return InsertedResponse(inserted_id=str(notification.id))


@router.get("/notifications", summary="List notifications, newest first")
async def list_notifications(
    to_role: Optional[Role] = Query(default=None),
    to_email: Optional[str] = Query(default=None),
    status: Optional[NotificationStatus] = Query(default=None),
    service: NotificationService = Depends(get_notification_service),
) -> List[Dict[str, Any]]:
    notifications = await service.list_notifications(to_role=to_role, to_email=to_email, status=status)
    return to_documents(notifications)


@router.patch(
    "/notifications/read-all",
    response_model=ReadAllResponse,
    summary="Mark every unread notification for a role as read",
)
async def mark_all_read(
    to_role: Role = Query(...),
    service: NotificationService = Depends(get_notification_service),
) -> ReadAllResponse:
    return ReadAllResponse(updated=await service.mark_all_read(to_role))


@router.patch(
    "/notifications/{notification_id}/read",
    responses={404: {"description": "Notification not found", "model": ErrorResponse}},
    summary="Mark one notification as read",
)
async def mark_read(
    notification_id: str,
    service: NotificationService = Depends(get_notification_service),
) -> Dict[str, Any]:
    notification = await service.mark_read(notification_id)
    return notification.to_document()


# ── Realtime stream ───────────────────────────────────────────────────────
@ws_router.websocket("/ws/notifications")
async def notification_stream(
    websocket: WebSocket,
    token: str = Query(default=""),
    provider: IdentityProvider = Depends(get_identity_provider),
    hub: NotificationHub = Depends(get_notification_hub),
) -> None:
    try:
        identity = await provider.verify(token)
    except (AuthenticationError, ExternalServiceError) as e:
        logger.info("Refused notification socket: %s", e.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await hub.connect(websocket)
    logger.info("Notification stream opened for %s", identity.email)
    try:
        while True:
            # Client messages are ignored; reading detects the disconnect
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(websocket)
        logger.info("Notification stream closed for %s", identity.email)
