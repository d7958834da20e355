"""Per-user product watchlist. One entry per (email, product) pair."""

from typing import List, Tuple

from localmarket.auth.identity import Identity
from localmarket.models.marketplace import WatchlistItem
from localmarket.repositories import UnitOfWork
from localmarket.schemas.marketplace import WatchlistCreate
from localmarket.services.common import fetch_or_404, require_owner


class WatchlistService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def add(self, body: WatchlistCreate, caller: Identity) -> Tuple[WatchlistItem, bool]:
        """
        Returns:
            (item, created): an existing pair is returned unchanged with
            `created=False`.
        """
        product = await fetch_or_404(self.uow.products, body.product_id, "product")
        existing = await self.uow.watchlist.find_pair(caller.email, product.id)
        if existing is not None:
            return existing, False

        item = self.uow.watchlist.build(
            {"user_email": caller.email, "product_id": product.id, "product_name": product.name}
        )
        await self.uow.watchlist.add(item)
        await self.uow.commit()
        return item, True

    async def items(self, caller: Identity) -> List[WatchlistItem]:
        return await self.uow.watchlist.for_user(caller.email)

    async def remove(self, item_id: str, caller: Identity) -> None:
        item = await fetch_or_404(self.uow.watchlist, item_id, "watchlist_item")
        require_owner(item.user_email, caller.email, "watchlist item")
        await self.uow.watchlist.delete_by_id(item.id)
        await self.uow.commit()
