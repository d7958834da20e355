"""
LocalMarket Backend: Rider Service
===================================

What:  Rider applications, admin approval, availability, and payout claims.
Who:   Called by the /riders routes.

Approval keeps two documents in step inside one transaction:
    rider.status = active           → user.role = rider
    rider.status = rejected/inactive → user.role = user (only if it was rider)

Cash-out (PATCH /riders/cashout/{parcel_id}):
    A single conditional UPDATE claims the payout. When it matches no row the
    parcel is re-read only to explain why, so the answer is precise without
    the explanation ever deciding whether the claim succeeds.
"""

import logging
from typing import List, Optional

from localmarket.auth.identity import Identity
from localmarket.database import utcnow
from localmarket.exceptions import AuthorizationError, NotFoundError, ValidationError
from localmarket.identifiers import parse_id
from localmarket.models.enums import DeliveryStatus, RiderStatus, RiderWorkStatus, Role
from localmarket.models.parcel import Parcel
from localmarket.models.rider import Rider
from localmarket.repositories import UnitOfWork
from localmarket.schemas.rider import RiderCreate, RiderUpdate
from localmarket.services.common import fetch_or_404

logger = logging.getLogger(__name__)


class RiderService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def apply(self, body: RiderCreate, caller: Identity) -> Rider:
        fields = body.declared_fields()
        fields.update(
            email=caller.email,
            status=RiderStatus.PENDING.value,
            work_status=RiderWorkStatus.AVAILABLE.value,
        )
        rider = await self.uow.riders.add(self.uow.riders.build(fields, body.loose_fields()))
        await self.uow.commit()
        logger.info("Rider application received from %s", caller.email)
        return rider

    async def list_riders(
        self,
        status: Optional[RiderStatus] = None,
        work_status: Optional[RiderWorkStatus] = None,
        district: Optional[str] = None,
        search: Optional[str] = None,
        oldest_first: bool = False,
    ) -> List[Rider]:
        return await self.uow.riders.list_filtered(
            status=RiderStatus(status).value if status else None,
            work_status=RiderWorkStatus(work_status).value if work_status else None,
            district=district,
            search=search,
            oldest_first=oldest_first,
        )

    async def update_rider(self, rider_id: str, body: RiderUpdate) -> Rider:
        rider = await fetch_or_404(self.uow.riders, rider_id, "rider")
        now = utcnow()
        values = {"updated_at": now}

        if body.work_status is not None:
            values["work_status"] = RiderWorkStatus(body.work_status).value

        if body.status is not None:
            status = RiderStatus(body.status)
            values["status"] = status.value
            if status == RiderStatus.ACTIVE:
                values["approved_at"] = now
            await self._sync_user_role(rider.email, status)

        await self.uow.riders.update(rider, values)
        await self.uow.commit()
        logger.info("Rider %s updated: %s", rider.email, {k: v for k, v in values.items() if k != "updated_at"})
        return rider

    async def _sync_user_role(self, email: str, status: RiderStatus) -> None:
        user = await self.uow.users.get_by_email(email)
        if user is None:
            return
        if status == RiderStatus.ACTIVE:
            await self.uow.users.update(user, {"role": Role.RIDER.value})
        elif status in (RiderStatus.REJECTED, RiderStatus.INACTIVE) and user.role == Role.RIDER.value:
            await self.uow.users.update(user, {"role": Role.USER.value})

    async def cash_out(self, parcel_id: str, caller: Identity) -> Parcel:
        parcel_uuid = parse_id(parcel_id, "parcel_id")
        claimed = await self.uow.parcels.mark_cashed_out(parcel_uuid, caller.email, utcnow())

        if claimed:
            await self.uow.commit()
            parcel = await self.uow.parcels.get(parcel_uuid, refresh=True)
            logger.info("Parcel %s cashed out by %s", parcel.tracking_id, caller.email)
            return parcel

        parcel = await self.uow.parcels.get(parcel_uuid)
        if parcel is None:
            raise NotFoundError(resource="parcel", resource_id=parcel_id)
        if parcel.assigned_rider_email != caller.email:
            raise AuthorizationError(message="This parcel is not assigned to you")
        if parcel.delivery_status != DeliveryStatus.DELIVERED.value:
            raise ValidationError(message="Parcel has not been delivered yet", field="parcel_id")
        raise ValidationError(message="Parcel has already been cashed out", field="parcel_id")
