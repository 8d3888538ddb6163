"""
Product repository for catalogue queries.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import String, case, cast, delete, or_, select
from sqlalchemy.orm import selectinload

from heartcart.models.product import Product, ProductImage
from heartcart.repositories.base import LIKE_ESCAPE, BaseRepository, contains_pattern

SORT_OPTIONS = ("display_order", "newest", "price_asc", "price_desc", "name")


@dataclass
class ProductFilters:
    """Listing filters accepted by `ProductRepository.search`."""

    category_ids: Optional[list[UUID]] = None
    catalog_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    search: Optional[str] = None
    featured: Optional[bool] = None
    flash_deals: Optional[bool] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    active_only: bool = True


class ProductRepository(BaseRepository[Product]):
    """Repository for Product model operations."""

    model = Product

    async def get_with_images(self, product_id: UUID) -> Optional[Product]:
        stmt = (
            select(Product)
            .where(Product.id == product_id)
            .options(selectinload(Product.images))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Optional[Product]:
        stmt = (
            select(Product)
            .where(Product.slug == slug)
            .options(selectinload(Product.images))
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, product_ids: list[UUID]) -> dict[UUID, Product]:
        if not product_ids:
            return {}
        result = await self.session.execute(select(Product).where(Product.id.in_(product_ids)))
        return {p.id: p for p in result.scalars().all()}

    async def slug_taken(self, slug: str, exclude_id: Optional[UUID] = None) -> bool:
        return await self._exists(Product.slug == slug, exclude_id=exclude_id)

    async def sku_taken(self, sku: str, exclude_id: Optional[UUID] = None) -> bool:
        return await self._exists(Product.sku == sku, exclude_id=exclude_id)

    async def search(
        self,
        filters: ProductFilters,
        *,
        sort: str = "display_order",
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Product], int]:
        """Filtered, sorted, paginated product listing. Returns (items, total)."""
        conditions: list[Any] = []
        effective_price = case(
            (
                (Product.sale_price.is_not(None)) & (Product.sale_price < Product.price),
                Product.sale_price,
            ),
            else_=Product.price,
        )

        if filters.active_only:
            conditions.append(Product.is_active.is_(True))
        if filters.category_ids is not None:
            conditions.append(Product.category_id.in_(filters.category_ids))
        if filters.catalog_id:
            conditions.append(Product.catalog_id == filters.catalog_id)
        if filters.supplier_id:
            conditions.append(Product.supplier_id == filters.supplier_id)
        if filters.featured is not None:
            conditions.append(Product.is_featured.is_(filters.featured))
        if filters.flash_deals:
            conditions.append(Product.is_flash_deal.is_(True))
        if filters.min_price is not None:
            conditions.append(effective_price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(effective_price <= filters.max_price)
        if filters.search:
            pattern = contains_pattern(filters.search)
            conditions.append(
                or_(
                    Product.name.ilike(pattern, escape=LIKE_ESCAPE),
                    Product.description.ilike(pattern, escape=LIKE_ESCAPE),
                    Product.brand.ilike(pattern, escape=LIKE_ESCAPE),
                    cast(Product.tags, String).ilike(pattern, escape=LIKE_ESCAPE),
                )
            )

        total = await self._count(Product, *conditions)

        ordering = {
            "display_order": (Product.display_order, Product.name),
            "newest": (Product.created_at.desc(), Product.name),
            "price_asc": (effective_price.asc(), Product.name),
            "price_desc": (effective_price.desc(), Product.name),
            "name": (Product.name,),
        }[sort]

        stmt = (
            select(Product)
            .where(*conditions)
            .order_by(*ordering)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def replace_images(
        self,
        product: Product,
        images: list[dict[str, Any]],
    ) -> list[ProductImage]:
        """Delete all image rows of the product and insert `images` in order."""
        await self.session.execute(
            delete(ProductImage).where(ProductImage.product_id == product.id)
        )
        rows = [ProductImage(product_id=product.id, **data) for data in images]
        self.session.add_all(rows)
        await self.session.flush()
        return rows

    async def list_images(self, product_id: UUID) -> list[ProductImage]:
        stmt = (
            select(ProductImage)
            .where(ProductImage.product_id == product_id)
            .order_by(ProductImage.sort_order)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
