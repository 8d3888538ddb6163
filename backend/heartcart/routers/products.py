"""
Product API routes: storefront listing and admin maintenance.
"""
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Query, status

from heartcart.core.database import DbSession
from heartcart.repositories.product import ProductFilters
from heartcart.routers.deps import AdminUser, OptionalUser, Store
from heartcart.schemas.common import Page
from heartcart.schemas.product import (
    ProductQuickUpdate,
    ProductResponse,
    ProductStatusUpdate,
    ProductSummary,
)
from heartcart.services.products import ProductService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=Page[ProductSummary])
async def list_products(
    session: DbSession,
    user: OptionalUser,
    category_id: Annotated[Optional[UUID], Query(alias="categoryId")] = None,
    include_subcategories: Annotated[bool, Query(alias="includeSubcategories")] = False,
    catalog_id: Annotated[Optional[UUID], Query(alias="catalogId")] = None,
    supplier_id: Annotated[Optional[UUID], Query(alias="supplierId")] = None,
    search: Optional[str] = None,
    featured: Optional[bool] = None,
    flash_deals: Annotated[Optional[bool], Query(alias="flashDeals")] = None,
    min_price: Annotated[Optional[Decimal], Query(alias="minPrice", ge=0)] = None,
    max_price: Annotated[Optional[Decimal], Query(alias="maxPrice", ge=0)] = None,
    include_inactive: Annotated[bool, Query(alias="includeInactive")] = False,
    sort: str = "display_order",
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize", description="Items per page"),
) -> Page[ProductSummary]:
    """
    List products with filters, sorting and pagination.

    Inactive products are only listed for administrators who ask for them.
    """
    filters = ProductFilters(
        catalog_id=catalog_id,
        supplier_id=supplier_id,
        search=search,
        featured=featured,
        flash_deals=flash_deals,
        min_price=min_price,
        max_price=max_price,
        active_only=not (include_inactive and user is not None and user.is_admin),
    )
    items, total = await ProductService(session).list_products(
        filters,
        category_id=category_id,
        include_subcategories=include_subcategories,
        sort=sort,
        page=page,
        page_size=page_size,
    )
    return Page[ProductSummary].build(
        [ProductSummary.model_validate(p) for p in items], total, page, page_size
    )


@router.get("/slug/{slug}", response_model=ProductResponse)
async def get_product_by_slug(slug: str, session: DbSession, user: OptionalUser) -> ProductResponse:
    product = await ProductService(session).get_by_slug(
        slug, include_inactive=user is not None and user.is_admin
    )
    return ProductResponse.model_validate(product)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: UUID, session: DbSession, user: OptionalUser) -> ProductResponse:
    product = await ProductService(session).get(
        product_id, include_inactive=user is not None and user.is_admin
    )
    return ProductResponse.model_validate(product)


@router.patch("/{product_id}", response_model=ProductResponse)
async def quick_update_product(
    product_id: UUID,
    payload: ProductQuickUpdate,
    session: DbSession,
    _: AdminUser,
) -> ProductResponse:
    """Edit simple fields of a published product without a draft."""
    service = ProductService(session)
    product = await service.get(product_id, include_inactive=True)
    product = await service.quick_update(product, payload.model_dump(exclude_unset=True))
    return ProductResponse.model_validate(product)


@router.patch("/{product_id}/status", response_model=ProductResponse)
async def set_product_status(
    product_id: UUID,
    payload: ProductStatusUpdate,
    session: DbSession,
    _: AdminUser,
) -> ProductResponse:
    service = ProductService(session)
    product = await service.get(product_id, include_inactive=True)
    product = await service.set_active(product, payload.is_active)
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: UUID,
    session: DbSession,
    store: Store,
    _: AdminUser,
) -> None:
    """Delete a product and its stored images."""
    service = ProductService(session, store)
    product = await service.get(product_id, include_inactive=True)
    await service.delete(product)
