import uuid
from typing import List, Optional

from localmarket.models.marketplace import (
    Advertisement,
    Order,
    Product,
    Review,
    WatchlistItem,
)
from localmarket.repositories.base import Repository

PRODUCT_SORTS = {
    "newest": Product.created_at.desc(),
    "price_asc": Product.price.asc(),
    "price_desc": Product.price.desc(),
}


class ProductRepository(Repository[Product]):
    model = Product

    async def list_filtered(
        self,
        status: Optional[str] = None,
        vendor_email: Optional[str] = None,
        market: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "newest",
        limit: Optional[int] = None,
    ) -> List[Product]:
        criteria = []
        if status:
            criteria.append(Product.status == status)
        if vendor_email:
            criteria.append(Product.vendor_email == vendor_email.lower())
        if market:
            criteria.append(Product.market_name.icontains(market, autoescape=True))
        if search:
            criteria.append(Product.name.icontains(search, autoescape=True))
        return await self.find(*criteria, order_by=[PRODUCT_SORTS[sort]], limit=limit)


class ReviewRepository(Repository[Review]):
    model = Review

    async def for_product(self, product_id: uuid.UUID) -> List[Review]:
        return await self.find(Review.product_id == product_id, order_by=[Review.created_at.desc()])


class OrderRepository(Repository[Order]):
    model = Order

    async def list_filtered(
        self,
        buyer_email: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[Order]:
        criteria = []
        if buyer_email:
            criteria.append(Order.buyer_email == buyer_email.lower())
        if status:
            criteria.append(Order.status == status)
        return await self.find(*criteria, order_by=[Order.created_at.desc()])


class AdvertisementRepository(Repository[Advertisement]):
    model = Advertisement

    async def list_filtered(
        self,
        status: Optional[str] = None,
        vendor_email: Optional[str] = None,
    ) -> List[Advertisement]:
        criteria = []
        if status:
            criteria.append(Advertisement.status == status)
        if vendor_email:
            criteria.append(Advertisement.vendor_email == vendor_email.lower())
        return await self.find(*criteria, order_by=[Advertisement.created_at.desc()])


class WatchlistRepository(Repository[WatchlistItem]):
    model = WatchlistItem

    async def for_user(self, user_email: str) -> List[WatchlistItem]:
        return await self.find(
            WatchlistItem.user_email == user_email.lower(),
            order_by=[WatchlistItem.created_at.desc()],
        )

    async def find_pair(self, user_email: str, product_id: uuid.UUID) -> Optional[WatchlistItem]:
        return await self.find_one(
            WatchlistItem.user_email == user_email.lower(),
            WatchlistItem.product_id == product_id,
        )
