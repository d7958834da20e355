"""
LocalMarket Backend: Notification Service
==========================================

What:  Stores in-app notifications and pushes them to connected listeners.
How:   `stage()` adds a notification to the current unit of work without
       committing, so workflows (rider assignment, payment recording) can
       include it in their own transaction. `publish()` broadcasts through the
       NotificationHub and must only be called after the commit succeeded.
"""

import logging
import uuid
from typing import List, Optional

from localmarket.database import utcnow
from localmarket.identifiers import parse_optional_id
from localmarket.models.enums import NotificationStatus, Role
from localmarket.models.notification import Notification
from localmarket.repositories import UnitOfWork
from localmarket.schemas.notification import NotificationCreate
from localmarket.services.common import fetch_or_404
from localmarket.services.notification_hub import NotificationHub

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, uow: UnitOfWork, hub: NotificationHub):
        self.uow = uow
        self.hub = hub

    async def stage(
        self,
        message: str,
        to_role: Role,
        from_role: Optional[Role] = None,
        to_email: Optional[str] = None,
        parcel_id: Optional[uuid.UUID] = None,
        extra: Optional[dict] = None,
    ) -> Notification:
        notification = self.uow.notifications.build(
            {
                "message": message,
                "to_role": Role(to_role).value,
                "from_role": Role(from_role).value if from_role else None,
                "to_email": to_email.lower() if to_email else None,
                "parcel_id": parcel_id,
                "status": NotificationStatus.UNREAD.value,
            },
            extra,
        )
        return await self.uow.notifications.add(notification)

    async def publish(self, notification: Notification) -> None:
        delivered = await self.hub.broadcast("notification", notification.to_document())
        logger.debug("Notification %s pushed to %d listener(s)", notification.id, delivered)

    async def create(self, body: NotificationCreate) -> Notification:
        parcel_id = parse_optional_id(body.parcel_id, "parcel_id")
        notification = await self.stage(
            message=body.message,
            to_role=body.to_role,
            from_role=body.from_role,
            to_email=body.to_email,
            parcel_id=parcel_id,
            extra=body.loose_fields(),
        )
        await self.uow.commit()
        await self.publish(notification)
        return notification

    async def list_notifications(
        self,
        to_role: Optional[Role] = None,
        to_email: Optional[str] = None,
        status: Optional[NotificationStatus] = None,
    ) -> List[Notification]:
        return await self.uow.notifications.list_filtered(
            to_role=Role(to_role).value if to_role else None,
            to_email=to_email,
            status=NotificationStatus(status).value if status else None,
        )

    async def mark_read(self, notification_id: str) -> Notification:
        notification = await fetch_or_404(self.uow.notifications, notification_id, "notification")
        await self.uow.notifications.update(
            notification,
            {"status": NotificationStatus.READ.value, "read_at": utcnow()},
        )
        await self.uow.commit()
        return notification

    async def mark_all_read(self, to_role: Role) -> int:
        updated = await self.uow.notifications.mark_all_read(Role(to_role).value, utcnow())
        await self.uow.commit()
        return updated
