"""
Product Route Handlers
======================

Three audiences, three path prefixes:
    /products          public catalogue (approved only)
    /vendor/products   the calling vendor's own listings
    /admin/products    moderation queue and removal

Reviews live under /api/products/{product_id}/reviews.
"""

from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from localmarket.auth.identity import Identity
from localmarket.auth.policy import current_identity
from localmarket.dependencies import get_product_service
from localmarket.models.enums import ModerationStatus
from localmarket.schemas.common import DeletedResponse, ErrorResponse, InsertedResponse, to_documents
from localmarket.schemas.marketplace import (
    ModerationUpdate,
    ProductCreate,
    ProductUpdate,
    ReviewCreate,
)
from localmarket.services.product_service import ProductService

router = APIRouter(tags=["Products"])

NOT_FOUND = {404: {"description": "Product not found", "model": ErrorResponse}}


# ── Public catalogue ──────────────────────────────────────────────────────
@router.get("/products", summary="Approved products")
async def list_products(
    search: Optional[str] = Query(default=None, description="Partial product name"),
    market: Optional[str] = Query(default=None, description="Partial market name"),
    sort: Literal["newest", "price_asc", "price_desc"] = Query(default="newest"),
    limit: Optional[int] = Query(default=None, ge=1, le=200),
    service: ProductService = Depends(get_product_service),
) -> List[Dict[str, Any]]:
    products = await service.catalogue(search=search, market=market, sort=sort, limit=limit)
    return to_documents(products)


@router.get("/products/{product_id}", responses=NOT_FOUND, summary="Get one product")
async def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
) -> Dict[str, Any]:
    product = await service.get_product(product_id)
    return product.to_document()


# ── Vendor ────────────────────────────────────────────────────────────────
@router.post(
    "/vendor/products",
    response_model=InsertedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit a product for moderation",
)
async def create_product(
    body: ProductCreate,
    caller: Identity = Depends(current_identity),
    service: ProductService = Depends(get_product_service),
) -> InsertedResponse:
    product = await service.create_product(body, caller)
    return InsertedResponse(inserted_id=str(product.id))


@router.get("/vendor/products", summary="Caller's products")
async def vendor_products(
    caller: Identity = Depends(current_identity),
    service: ProductService = Depends(get_product_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.vendor_products(caller))


@router.patch("/vendor/products/{product_id}", responses=NOT_FOUND, summary="Edit own product")
async def update_own_product(
    product_id: str,
    body: ProductUpdate,
    caller: Identity = Depends(current_identity),
    service: ProductService = Depends(get_product_service),
) -> Dict[str, Any]:
    product = await service.update_own_product(product_id, body, caller)
    return product.to_document()


@router.delete(
    "/vendor/products/{product_id}",
    response_model=DeletedResponse,
    responses=NOT_FOUND,
    summary="Delete own product",
)
async def delete_own_product(
    product_id: str,
    caller: Identity = Depends(current_identity),
    service: ProductService = Depends(get_product_service),
) -> DeletedResponse:
    await service.delete_own_product(product_id, caller)
    return DeletedResponse(deleted_count=1)


# ── Admin ─────────────────────────────────────────────────────────────────
@router.get("/admin/products", summary="All products (admin)")
async def all_products(
    status: Optional[ModerationStatus] = Query(default=None),
    service: ProductService = Depends(get_product_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.all_products(status))


@router.patch(
    "/admin/products/{product_id}/status",
    responses=NOT_FOUND,
    summary="Approve or reject a product (admin)",
)
async def moderate_product(
    product_id: str,
    body: ModerationUpdate,
    service: ProductService = Depends(get_product_service),
) -> Dict[str, Any]:
    product = await service.moderate(product_id, body)
    return product.to_document()


@router.delete(
    "/admin/products/{product_id}",
    response_model=DeletedResponse,
    responses=NOT_FOUND,
    summary="Delete any product (admin)",
)
async def delete_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
) -> DeletedResponse:
    await service.delete_product(product_id)
    return DeletedResponse(deleted_count=1)


# ── Reviews ───────────────────────────────────────────────────────────────
@router.get("/api/products/{product_id}/reviews", responses=NOT_FOUND, summary="Reviews, newest first")
async def list_reviews(
    product_id: str,
    service: ProductService = Depends(get_product_service),
) -> List[Dict[str, Any]]:
    return to_documents(await service.reviews(product_id))


@router.post(
    "/api/products/{product_id}/reviews",
    response_model=InsertedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND,
    summary="Review a product",
)
async def add_review(
    product_id: str,
    body: ReviewCreate,
    caller: Identity = Depends(current_identity),
    service: ProductService = Depends(get_product_service),
) -> InsertedResponse:
    review = await service.add_review(product_id, body, caller)
    return InsertedResponse(inserted_id=str(review.id))
