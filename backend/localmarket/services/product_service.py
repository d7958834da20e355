"""
LocalMarket Backend: Product Service
=====================================

What:  Vendor product listings, admin moderation, public catalogue, reviews.

Moderation lifecycle:
    created by vendor   → pending
    admin decision      → approved | rejected (optional feedback)
    edited by vendor    → pending again, feedback cleared

Only approved products appear in the public catalogue and can be ordered.
"""

import logging
from typing import List, Optional

from localmarket.auth.identity import Identity
from localmarket.database import utcnow
from localmarket.exceptions import NotFoundError
from localmarket.identifiers import parse_id
from localmarket.models.enums import ModerationStatus
from localmarket.models.marketplace import Product, Review
from localmarket.repositories import UnitOfWork
from localmarket.schemas.marketplace import (
    ModerationUpdate,
    ProductCreate,
    ProductUpdate,
    ReviewCreate,
)
from localmarket.services.common import fetch_or_404, require_owner

logger = logging.getLogger(__name__)


class ProductService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    # ── Public catalogue ──────────────────────────────────────────────────
    async def catalogue(
        self,
        search: Optional[str] = None,
        market: Optional[str] = None,
        sort: str = "newest",
        limit: Optional[int] = None,
    ) -> List[Product]:
        return await self.uow.products.list_filtered(
            status=ModerationStatus.APPROVED.value,
            market=market,
            search=search,
            sort=sort,
            limit=limit,
        )

    async def get_product(self, product_id: str) -> Product:
        return await fetch_or_404(self.uow.products, product_id, "product")

    # ── Vendor ────────────────────────────────────────────────────────────
    async def create_product(self, body: ProductCreate, caller: Identity) -> Product:
        fields = body.declared_fields()
        fields.update(vendor_email=caller.email, status=ModerationStatus.PENDING.value)
        product = await self.uow.products.add(self.uow.products.build(fields, body.loose_fields()))
        await self.uow.commit()
        logger.info("Product '%s' submitted by %s", product.name, caller.email)
        return product

    async def vendor_products(self, caller: Identity) -> List[Product]:
        return await self.uow.products.list_filtered(vendor_email=caller.email)

    async def update_own_product(self, product_id: str, body: ProductUpdate, caller: Identity) -> Product:
        product = await fetch_or_404(self.uow.products, product_id, "product")
        require_owner(product.vendor_email, caller.email, "product")

        values = body.declared_fields(exclude_unset=True)
        values.update(
            status=ModerationStatus.PENDING.value,
            feedback=None,
            updated_at=utcnow(),
        )
        await self.uow.products.update(product, values, extra=body.loose_fields())
        await self.uow.commit()
        return product

    async def delete_own_product(self, product_id: str, caller: Identity) -> None:
        product = await fetch_or_404(self.uow.products, product_id, "product")
        require_owner(product.vendor_email, caller.email, "product")
        await self.uow.products.delete_by_id(product.id)
        await self.uow.commit()

    # ── Admin ─────────────────────────────────────────────────────────────
    async def all_products(self, status: Optional[ModerationStatus] = None) -> List[Product]:
        return await self.uow.products.list_filtered(
            status=ModerationStatus(status).value if status else None,
        )

    async def moderate(self, product_id: str, body: ModerationUpdate) -> Product:
        product = await fetch_or_404(self.uow.products, product_id, "product")
        await self.uow.products.update(
            product,
            {
                "status": ModerationStatus(body.status).value,
                "feedback": body.feedback,
                "updated_at": utcnow(),
            },
        )
        await self.uow.commit()
        logger.info("Product %s moderated: %s", product.id, product.status)
        return product

    async def delete_product(self, product_id: str) -> None:
        entity_id = parse_id(product_id, "product_id")
        if not await self.uow.products.delete_by_id(entity_id):
            raise NotFoundError(resource="product", resource_id=product_id)
        await self.uow.commit()

    # ── Reviews ───────────────────────────────────────────────────────────
    async def reviews(self, product_id: str) -> List[Review]:
        product = await fetch_or_404(self.uow.products, product_id, "product")
        return await self.uow.reviews.for_product(product.id)

    async def add_review(self, product_id: str, body: ReviewCreate, caller: Identity) -> Review:
        product = await fetch_or_404(self.uow.products, product_id, "product")
        review = self.uow.reviews.build(
            {
                "product_id": product.id,
                "user_email": caller.email,
                "user_name": body.user_name or caller.claims.get("name"),
                "rating": body.rating,
                "comment": body.comment,
            }
        )
        await self.uow.reviews.add(review)
        await self.uow.commit()
        return review
