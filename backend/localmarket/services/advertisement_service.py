"""Vendor advertisements with the same moderation lifecycle as products."""

from typing import List, Optional

from localmarket.auth.identity import Identity
from localmarket.models.enums import ModerationStatus
from localmarket.models.marketplace import Advertisement
from localmarket.repositories import UnitOfWork
from localmarket.schemas.marketplace import AdvertisementCreate, ModerationUpdate
from localmarket.services.common import fetch_or_404, require_owner


class AdvertisementService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def create(self, body: AdvertisementCreate, caller: Identity) -> Advertisement:
        fields = body.declared_fields()
        fields.update(vendor_email=caller.email, status=ModerationStatus.PENDING.value)
        ad = await self.uow.advertisements.add(
            self.uow.advertisements.build(fields, body.loose_fields())
        )
        await self.uow.commit()
        return ad

    async def vendor_ads(self, caller: Identity) -> List[Advertisement]:
        return await self.uow.advertisements.list_filtered(vendor_email=caller.email)

    async def delete_own(self, ad_id: str, caller: Identity) -> None:
        ad = await fetch_or_404(self.uow.advertisements, ad_id, "advertisement")
        require_owner(ad.vendor_email, caller.email, "advertisement")
        await self.uow.advertisements.delete_by_id(ad.id)
        await self.uow.commit()

    async def published(self) -> List[Advertisement]:
        return await self.uow.advertisements.list_filtered(status=ModerationStatus.APPROVED.value)

    async def all_ads(self, status: Optional[ModerationStatus] = None) -> List[Advertisement]:
        return await self.uow.advertisements.list_filtered(
            status=ModerationStatus(status).value if status else None,
        )

    async def moderate(self, ad_id: str, body: ModerationUpdate) -> Advertisement:
        ad = await fetch_or_404(self.uow.advertisements, ad_id, "advertisement")
        await self.uow.advertisements.update(
            ad,
            {"status": ModerationStatus(body.status).value, "feedback": body.feedback},
        )
        await self.uow.commit()
        return ad
