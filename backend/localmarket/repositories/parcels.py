"""
Parcel and tracking-event queries.

`mark_cashed_out` is the one conditional write in the system: a single
UPDATE whose WHERE clause includes the guard (`cashout_status IS NULL`), so
two concurrent cash-out requests for the same parcel can match at most one row.
"""

import uuid
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_, select, update

from localmarket.models.enums import CashoutStatus, DeliveryStatus
from localmarket.models.parcel import Parcel, TrackingEvent
from localmarket.repositories.base import Repository


class ParcelRepository(Repository[Parcel]):
    model = Parcel

    async def list_filtered(
        self,
        created_by: Optional[str] = None,
        delivery_statuses: Optional[Iterable[str]] = None,
        payment_status: Optional[str] = None,
        district: Optional[str] = None,
        search: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Parcel]:
        """Parcels matching every given filter, newest first."""
        criteria = []
        if created_by:
            criteria.append(Parcel.created_by == created_by.lower())
        if delivery_statuses:
            criteria.append(Parcel.delivery_status.in_(list(delivery_statuses)))
        if payment_status:
            criteria.append(Parcel.payment_status == payment_status)
        if district:
            criteria.append(
                or_(Parcel.sender_district == district, Parcel.receiver_district == district)
            )
        if search:
            criteria.append(
                or_(
                    Parcel.title.icontains(search, autoescape=True),
                    Parcel.tracking_id.icontains(search, autoescape=True),
                )
            )
        return await self.find(*criteria, order_by=[Parcel.created_at.desc()], limit=limit)

    async def assigned_to(
        self,
        rider_email: str,
        delivery_statuses: Iterable[str],
        newest_delivered_first: bool = False,
    ) -> List[Parcel]:
        order = Parcel.delivered_at.desc() if newest_delivered_first else Parcel.assigned_at.asc()
        return await self.find(
            Parcel.assigned_rider_email == rider_email,
            Parcel.delivery_status.in_(list(delivery_statuses)),
            order_by=[order],
        )

    async def count_by_delivery_status(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(Parcel.delivery_status, func.count())
            .group_by(Parcel.delivery_status)
            .order_by(Parcel.delivery_status)
        )
        return {status: int(count) for status, count in result.all()}

    async def mark_cashed_out(self, parcel_id: uuid.UUID, rider_email: str, now: datetime) -> bool:
        """
        Sets the cash-out guard if, and only if, it is not already set.

        Returns:
            True when exactly one row was updated.
        """
        result = await self.session.execute(
            update(Parcel)
            .where(
                Parcel.id == parcel_id,
                Parcel.assigned_rider_email == rider_email,
                Parcel.delivery_status == DeliveryStatus.DELIVERED.value,
                Parcel.cashout_status.is_(None),
            )
            .values(
                cashout_status=CashoutStatus.CASHED_OUT.value,
                cashed_out_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1


class TrackingRepository(Repository[TrackingEvent]):
    model = TrackingEvent

    async def history(self, tracking_id: str) -> List[TrackingEvent]:
        """Events for one tracking ID, oldest first."""
        return await self.find(
            TrackingEvent.tracking_id == tracking_id,
            order_by=[TrackingEvent.created_at.asc()],
        )
