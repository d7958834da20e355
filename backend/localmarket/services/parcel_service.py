"""
LocalMarket Backend: Parcel Service (Delivery Workflow Orchestrator)
=====================================================================

What:  Parcel booking, listing, admin status patches, rider assignment and
       rider-driven delivery progress.
How:   Every workflow runs on one UnitOfWork. Each step flushes; the service
       commits once at the end and only then broadcasts notifications.
Who:   Called by the /parcels and /rider routes.

Assignment Flow (PATCH /parcels/{id}/assign-rider):
    ┌──────────────┐    ┌──────────────┐    ┌──────────────┐    ┌──────────┐
    │ Parcel       │───▶│ Rider        │───▶│ Tracking     │───▶│ Commit,  │
    │rider_assigned│    │ work: busy   │    │ event +      │    │ then push│
    │ + rider info │    │              │    │ notification │    │ to hub   │
    └──────────────┘    └──────────────┘    └──────────────┘    └──────────┘

    If any step raises, nothing was committed and the request session rolls
    back, so a parcel is never assigned to a rider that was not marked busy.

Delivery Flow (PATCH /parcels/{id}/status, assigned rider only):
    rider_assigned → in_transit   stamps picked_at
    in_transit     → delivered    stamps delivered_at, frees the rider once it
                                  carries no other active parcel
"""

import logging
import secrets
from typing import Iterable, List, Optional

from localmarket.auth.identity import Identity
from localmarket.database import utcnow
from localmarket.exceptions import AuthorizationError, ValidationError
from localmarket.identifiers import parse_id
from localmarket.models.enums import (
    RIDER_TRANSITIONS,
    DeliveryStatus,
    PaymentStatus,
    RiderStatus,
    RiderWorkStatus,
    Role,
)
from localmarket.models.parcel import Parcel
from localmarket.repositories import UnitOfWork
from localmarket.schemas.parcel import (
    AssignRiderRequest,
    ParcelCreate,
    ParcelPatch,
    ParcelStatusUpdate,
    StatusCount,
)
from localmarket.services.common import fetch_or_404
from localmarket.services.notification_service import NotificationService
from localmarket.services.tracking_service import TrackingService

logger = logging.getLogger(__name__)

ACTIVE_DELIVERY = (DeliveryStatus.RIDER_ASSIGNED.value, DeliveryStatus.IN_TRANSIT.value)

# Admin patches that take a parcel off its rider
RELEASING_STATUSES = frozenset(
    {DeliveryStatus.NOT_COLLECTED.value, DeliveryStatus.DELIVERED.value, DeliveryStatus.CANCELLED.value}
)


def generate_tracking_id() -> str:
    """Human-readable tracking ID, e.g. `PCL-20261019-3FA9C1`."""
    return f"PCL-{utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


def parse_delivery_statuses(raw: Optional[str]) -> List[str]:
    """Comma separated `delivery_status` filter; every item must be a known status."""
    if not raw:
        return []
    statuses = []
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            statuses.append(DeliveryStatus(item).value)
        except ValueError:
            raise ValidationError(
                message=f"'{item}' is not a valid delivery_status",
                field="delivery_status",
            )
    return statuses


class ParcelService:
    def __init__(self, uow: UnitOfWork, notifications: NotificationService):
        self.uow = uow
        self.notifications = notifications
        self.tracking = TrackingService(uow)

    # ── Booking and listing ───────────────────────────────────────────────
    async def create_parcel(self, body: ParcelCreate) -> Parcel:
        fields = body.declared_fields()
        tracking_id = fields.pop("tracking_id", None) or generate_tracking_id()
        if await self.uow.parcels.find_one(Parcel.tracking_id == tracking_id) is not None:
            raise ValidationError(
                message=f"Tracking ID '{tracking_id}' is already in use",
                field="tracking_id",
            )

        fields.update(
            tracking_id=tracking_id,
            delivery_status=DeliveryStatus.NOT_COLLECTED.value,
            payment_status=PaymentStatus.UNPAID.value,
        )
        parcel = await self.uow.parcels.add(self.uow.parcels.build(fields, body.loose_fields()))
        await self.tracking.stage(
            tracking_id=tracking_id,
            status="parcel_created",
            parcel_id=parcel.id,
            updated_by=parcel.created_by,
        )
        await self.uow.commit()
        logger.info("Parcel %s booked by %s", tracking_id, parcel.created_by)
        return parcel

    async def list_parcels(
        self,
        email: Optional[str] = None,
        delivery_status: Optional[str] = None,
        payment_status: Optional[PaymentStatus] = None,
        district: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Parcel]:
        return await self.uow.parcels.list_filtered(
            created_by=email,
            delivery_statuses=parse_delivery_statuses(delivery_status),
            payment_status=PaymentStatus(payment_status).value if payment_status else None,
            district=district,
            search=search,
        )

    async def get_parcel(self, parcel_id: str) -> Parcel:
        return await fetch_or_404(self.uow.parcels, parcel_id, "parcel")

    async def delete_parcel(self, parcel_id: str, caller: Identity) -> None:
        """Creator or admin only."""
        parcel = await fetch_or_404(self.uow.parcels, parcel_id, "parcel")
        if parcel.created_by != caller.email:
            if await self.uow.users.role_of(caller.email) != Role.ADMIN:
                raise AuthorizationError(message="Only the creator or an admin can delete a parcel")
        await self.uow.parcels.delete_by_id(parcel.id)
        await self.uow.commit()
        logger.info("Parcel %s deleted by %s", parcel.tracking_id, caller.email)

    async def status_counts(self) -> List[StatusCount]:
        counts = await self.uow.parcels.count_by_delivery_status()
        return [
            StatusCount(status=status.value, count=counts.get(status.value, 0))
            for status in DeliveryStatus
        ]

    # ── Status changes ────────────────────────────────────────────────────
    async def patch_parcel(self, parcel_id: str, body: ParcelPatch, caller: Identity) -> Parcel:
        """
        Admin override: any delivery or payment status, no transition check.

        Cancelling, delivering or resetting an assigned parcel takes it off the
        rider; a reset to `not_collected` also clears the assignment fields.
        """
        parcel = await fetch_or_404(self.uow.parcels, parcel_id, "parcel")
        now = utcnow()
        values = {"updated_at": now}

        if body.payment_status is not None:
            values["payment_status"] = PaymentStatus(body.payment_status).value
            if values["payment_status"] == PaymentStatus.PAID.value and parcel.paid_at is None:
                values["paid_at"] = now

        releases_rider = False
        if body.delivery_status is not None:
            values["delivery_status"] = DeliveryStatus(body.delivery_status).value
            if values["delivery_status"] == DeliveryStatus.DELIVERED.value and parcel.delivered_at is None:
                values["delivered_at"] = now
            releases_rider = (
                parcel.delivery_status in ACTIVE_DELIVERY
                and values["delivery_status"] in RELEASING_STATUSES
            )
            if values["delivery_status"] == DeliveryStatus.NOT_COLLECTED.value:
                values.update(
                    assigned_rider_id=None,
                    assigned_rider_email=None,
                    assigned_rider_name=None,
                    assigned_at=None,
                    picked_at=None,
                )

        rider_id = parcel.assigned_rider_id
        await self.uow.parcels.update(parcel, values)
        if releases_rider and rider_id is not None:
            await self._release_rider(rider_id, now)
        if "delivery_status" in values:
            await self.tracking.stage(
                tracking_id=parcel.tracking_id,
                status=values["delivery_status"],
                parcel_id=parcel.id,
                updated_by=caller.email,
            )
        await self.uow.commit()
        return parcel

    async def update_delivery_status(
        self,
        parcel_id: str,
        body: ParcelStatusUpdate,
        caller: Identity,
    ) -> Parcel:
        parcel = await fetch_or_404(self.uow.parcels, parcel_id, "parcel")
        if parcel.assigned_rider_email != caller.email:
            raise AuthorizationError(message="This parcel is not assigned to you")

        current = DeliveryStatus(parcel.delivery_status)
        target = DeliveryStatus(body.delivery_status)
        if target not in RIDER_TRANSITIONS.get(current, frozenset()):
            raise ValidationError(
                message=f"Cannot change delivery status from '{current.value}' to '{target.value}'",
                field="delivery_status",
            )

        now = utcnow()
        values = {"delivery_status": target.value, "updated_at": now}
        if target == DeliveryStatus.IN_TRANSIT:
            values["picked_at"] = now
        elif target == DeliveryStatus.DELIVERED:
            values["delivered_at"] = now
        await self.uow.parcels.update(parcel, values)

        if target == DeliveryStatus.DELIVERED and parcel.assigned_rider_id is not None:
            await self._release_rider(parcel.assigned_rider_id, now)

        await self.tracking.stage(
            tracking_id=parcel.tracking_id,
            status=target.value,
            parcel_id=parcel.id,
            location=body.location,
            note=body.note,
            updated_by=caller.email,
        )
        notification = await self.notifications.stage(
            message=f"Parcel {parcel.tracking_id} is now {target.value.replace('_', ' ')}",
            to_role=Role.USER,
            from_role=Role.RIDER,
            to_email=parcel.created_by,
            parcel_id=parcel.id,
        )
        await self.uow.commit()
        await self.notifications.publish(notification)
        logger.info("Parcel %s moved %s → %s by %s", parcel.tracking_id, current.value, target.value, caller.email)
        return parcel

    async def assign_rider(self, parcel_id: str, body: AssignRiderRequest) -> Parcel:
        # Both identifiers are checked before touching the datastore
        parse_id(parcel_id, "parcel_id")
        rider_uuid = parse_id(body.rider_id, "rider_id")

        parcel = await fetch_or_404(self.uow.parcels, parcel_id, "parcel")
        rider = await fetch_or_404(self.uow.riders, rider_uuid, "rider")

        if parcel.delivery_status != DeliveryStatus.NOT_COLLECTED.value:
            raise ValidationError(
                message=f"Parcel is '{parcel.delivery_status}', only uncollected parcels can be assigned",
                field="delivery_status",
            )
        if rider.status != RiderStatus.ACTIVE.value:
            raise ValidationError(message="Rider is not active", field="rider_id")

        now = utcnow()
        await self.uow.parcels.update(
            parcel,
            {
                "delivery_status": DeliveryStatus.RIDER_ASSIGNED.value,
                "assigned_rider_id": rider.id,
                "assigned_rider_email": rider.email,
                "assigned_rider_name": rider.name,
                "assigned_at": now,
                "updated_at": now,
            },
        )
        await self.uow.riders.update(
            rider,
            {"work_status": RiderWorkStatus.BUSY.value, "updated_at": now},
        )
        await self.tracking.stage(
            tracking_id=parcel.tracking_id,
            status=DeliveryStatus.RIDER_ASSIGNED.value,
            parcel_id=parcel.id,
            note=f"Assigned to {rider.name}",
            updated_by="admin",
        )
        notification = await self.notifications.stage(
            message=f"New parcel assigned to you: {parcel.tracking_id}",
            to_role=Role.RIDER,
            from_role=Role.ADMIN,
            to_email=rider.email,
            parcel_id=parcel.id,
        )
        await self.uow.commit()
        await self.notifications.publish(notification)
        logger.info("Parcel %s assigned to rider %s", parcel.tracking_id, rider.email)
        return parcel

    async def _release_rider(self, rider_id, now) -> None:
        """Marks the rider available unless another parcel is still on them."""
        rider = await self.uow.riders.get(rider_id)
        if rider is None:
            return
        if await self.uow.parcels.assigned_to(rider.email, ACTIVE_DELIVERY):
            return
        await self.uow.riders.update(
            rider,
            {"work_status": RiderWorkStatus.AVAILABLE.value, "updated_at": now},
        )

    # ── Rider views ───────────────────────────────────────────────────────
    async def rider_parcels(self, caller: Identity, statuses: Iterable[str] = ACTIVE_DELIVERY) -> List[Parcel]:
        return await self.uow.parcels.assigned_to(caller.email, statuses)

    async def rider_completed_parcels(self, caller: Identity) -> List[Parcel]:
        return await self.uow.parcels.assigned_to(
            caller.email,
            [DeliveryStatus.DELIVERED.value],
            newest_delivered_first=True,
        )
