"""
Tracking log: append-only status/location events keyed by tracking ID.

Parcel workflows append their own events through `stage()` inside their
transaction; POST /tracking lets any signed-in client append a free-form one.
"""

import uuid
from typing import List, Optional

from localmarket.identifiers import parse_optional_id
from localmarket.models.parcel import TrackingEvent
from localmarket.repositories import UnitOfWork
from localmarket.schemas.parcel import TrackingEventCreate


class TrackingService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def stage(
        self,
        tracking_id: str,
        status: str,
        parcel_id: Optional[uuid.UUID] = None,
        location: Optional[str] = None,
        note: Optional[str] = None,
        updated_by: Optional[str] = None,
        extra: Optional[dict] = None,
    ) -> TrackingEvent:
        event = self.uow.tracking.build(
            {
                "tracking_id": tracking_id,
                "parcel_id": parcel_id,
                "status": status,
                "location": location,
                "note": note,
                "updated_by": updated_by,
            },
            extra,
        )
        return await self.uow.tracking.add(event)

    async def append(self, body: TrackingEventCreate, updated_by: str) -> TrackingEvent:
        event = await self.stage(
            tracking_id=body.tracking_id,
            status=body.status,
            parcel_id=parse_optional_id(body.parcel_id, "parcel_id"),
            location=body.location,
            note=body.note,
            updated_by=updated_by,
            extra=body.loose_fields(),
        )
        await self.uow.commit()
        return event

    async def history(self, tracking_id: str) -> List[TrackingEvent]:
        return await self.uow.tracking.history(tracking_id)
