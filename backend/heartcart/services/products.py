"""
Product service - storefront listing and admin maintenance of published products.
"""
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from heartcart.core.logging import get_logger
from heartcart.models.product import Product
from heartcart.repositories.product import SORT_OPTIONS, ProductFilters, ProductRepository
from heartcart.services.categories import CategoryService
from heartcart.services.object_store import ObjectStore, product_prefix

logger = get_logger(__name__)


class ProductService:
    """Queries and admin operations on products."""

    def __init__(self, session: AsyncSession, store: Optional[ObjectStore] = None) -> None:
        self.session = session
        self.store = store
        self.repo = ProductRepository(session)
        self.categories = CategoryService(session)

    async def list_products(
        self,
        filters: ProductFilters,
        *,
        category_id: Optional[UUID] = None,
        include_subcategories: bool = False,
        sort: str = "display_order",
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Product], int]:
        if sort not in SORT_OPTIONS:
            raise InvalidInputError(f"Unknown sort '{sort}'. Use one of: {', '.join(SORT_OPTIONS)}")
        if category_id is not None:
            filters.category_ids = (
                await self.categories.with_descendants(category_id)
                if include_subcategories
                else [category_id]
            )
        return await self.repo.search(filters, sort=sort, page=page, page_size=page_size)

    async def get(self, product_id: UUID, *, include_inactive: bool = False) -> Product:
        product = await self.repo.get_with_images(product_id)
        if not product or (not product.is_active and not include_inactive):
            raise NotFoundError("Product not found")
        return product

    async def get_by_slug(self, slug: str, *, include_inactive: bool = False) -> Product:
        product = await self.repo.get_by_slug(slug)
        if not product or (not product.is_active and not include_inactive):
            raise NotFoundError("Product not found")
        return product

    async def quick_update(self, product: Product, data: dict[str, Any]) -> Product:
        """Admin edit of simple fields without going through a draft."""
        if data.get("slug") and await self.repo.slug_taken(data["slug"], exclude_id=product.id):
            raise ConflictError(f"Another product already uses the slug '{data['slug']}'")
        if data.get("sku") and await self.repo.sku_taken(data["sku"], exclude_id=product.id):
            raise ConflictError(f"Another product already uses the SKU '{data['sku']}'")
        price = data.get("price", product.price)
        sale_price = data.get("sale_price", product.sale_price)
        if sale_price is not None and price is not None and sale_price >= price:
            raise InvalidInputError("Sale price must be less than the regular price")

        await self.repo.update(product, data)
        logger.info("Product updated", product_id=str(product.id), fields=sorted(data))
        return await self.get(product.id, include_inactive=True)

    async def set_active(self, product: Product, active: bool) -> Product:
        await self.repo.update(product, {"is_active": active})
        logger.info("Product visibility changed", product_id=str(product.id), active=active)
        return await self.get(product.id, include_inactive=True)

    async def delete(self, product: Product) -> int:
        """Delete the product and its stored images; returns objects removed."""
        product_id = product.id
        keys = [img.object_key for img in await self.repo.list_images(product_id) if img.object_key]
        await self.repo.delete(product)

        removed = 0
        if self.store is not None:
            for key in keys:
                if await self.store.delete(key):
                    removed += 1
            removed += await self.store.delete_prefix(product_prefix(product_id))
        logger.info("Product deleted", product_id=str(product_id), objects_removed=removed)
        return removed
