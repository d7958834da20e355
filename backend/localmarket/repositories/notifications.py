from datetime import datetime
from typing import List, Optional

from sqlalchemy import update

from localmarket.models.enums import NotificationStatus
from localmarket.models.notification import Notification
from localmarket.repositories.base import Repository


class NotificationRepository(Repository[Notification]):
    model = Notification

    async def list_filtered(
        self,
        to_role: Optional[str] = None,
        to_email: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Notification]:
        criteria = []
        if to_role:
            criteria.append(Notification.to_role == to_role)
        if to_email:
            criteria.append(Notification.to_email == to_email.lower())
        if status:
            criteria.append(Notification.status == status)
        return await self.find(*criteria, order_by=[Notification.created_at.desc()])

    async def mark_all_read(self, to_role: str, now: datetime) -> int:
        result = await self.session.execute(
            update(Notification)
            .where(
                Notification.to_role == to_role,
                Notification.status == NotificationStatus.UNREAD.value,
            )
            .values(status=NotificationStatus.READ.value, read_at=now)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
