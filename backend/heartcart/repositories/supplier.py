"""
Supplier and catalog repositories.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update

from heartcart.models.product import Product
from heartcart.models.supplier import Catalog, Supplier
from heartcart.repositories.base import LIKE_ESCAPE, BaseRepository, contains_pattern


class SupplierRepository(BaseRepository[Supplier]):
    """Repository for Supplier model operations."""

    model = Supplier

    async def list_suppliers(
        self,
        *,
        active_only: bool = False,
        search: Optional[str] = None,
    ) -> list[Supplier]:
        """List suppliers ordered by name."""
        stmt = select(Supplier)
        if active_only:
            stmt = stmt.where(Supplier.is_active.is_(True))
        if search:
            stmt = stmt.where(Supplier.name.ilike(contains_pattern(search), escape=LIKE_ESCAPE))
        stmt = stmt.order_by(Supplier.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_products(self, supplier_id: UUID) -> int:
        return await self._count(Product, Product.supplier_id == supplier_id)


class CatalogRepository(BaseRepository[Catalog]):
    """Repository for Catalog model operations."""

    model = Catalog

    async def list_with_product_counts(
        self,
        *,
        supplier_id: Optional[UUID] = None,
        active_only: bool = False,
    ) -> list[tuple[Catalog, int]]:
        """List catalogs, newest first, each paired with its product count."""
        product_count = (
            select(func.count(Product.id))
            .where(Product.catalog_id == Catalog.id)
            .correlate(Catalog)
            .scalar_subquery()
        )
        stmt = select(Catalog, product_count.label("product_count"))
        if supplier_id:
            stmt = stmt.where(Catalog.supplier_id == supplier_id)
        if active_only:
            stmt = stmt.where(Catalog.is_active.is_(True))
        stmt = stmt.order_by(Catalog.created_at.desc(), Catalog.name)
        result = await self.session.execute(stmt)
        return [(row[0], row[1] or 0) for row in result.all()]

    async def count_products(self, catalog_id: UUID) -> int:
        return await self._count(Product, Product.catalog_id == catalog_id)

    async def detach_products(self, catalog_id: UUID) -> int:
        """Clear `catalog_id` on every product of the catalog."""
        stmt = (
            update(Product)
            .where(Product.catalog_id == catalog_id)
            .values(catalog_id=None)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0
