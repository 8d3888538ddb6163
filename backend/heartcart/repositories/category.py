"""
Category and pricing rule repositories.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select

from heartcart.models.category import Category, PricingRule
from heartcart.models.product import Product
from heartcart.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[Category]):
    """Repository for Category model operations."""

    model = Category

    async def get_by_slug(self, slug: str) -> Optional[Category]:
        return await self._first(select(Category).where(Category.slug == slug))

    async def slug_exists(self, slug: str, exclude_id: Optional[UUID] = None) -> bool:
        return await self._exists(Category.slug == slug, exclude_id=exclude_id)

    async def sibling_name_exists(
        self,
        name: str,
        parent_id: Optional[UUID],
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        """Check whether a category with this name already exists under the parent."""
        same_parent = (
            Category.parent_id.is_(None) if parent_id is None else Category.parent_id == parent_id
        )
        return await self._exists(
            func.lower(Category.name) == name.lower(),
            same_parent,
            exclude_id=exclude_id,
        )

    async def list_categories(
        self,
        *,
        active_only: bool = False,
        parent_id: Optional[UUID] = None,
        roots_only: bool = False,
    ) -> list[Category]:
        """List categories ordered by level, display order and name."""
        stmt = select(Category)
        if active_only:
            stmt = stmt.where(Category.is_active.is_(True))
        if roots_only:
            stmt = stmt.where(Category.parent_id.is_(None))
        elif parent_id:
            stmt = stmt.where(Category.parent_id == parent_id)
        stmt = stmt.order_by(Category.level, Category.display_order, Category.name)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_children(self, category_id: UUID) -> int:
        return await self._count(Category, Category.parent_id == category_id)

    async def count_products(self, category_id: UUID) -> int:
        return await self._count(Product, Product.category_id == category_id)

    async def get_parent_map(self) -> dict[UUID, Optional[UUID]]:
        """Map every category id to its parent id."""
        result = await self.session.execute(select(Category.id, Category.parent_id))
        return {row[0]: row[1] for row in result.all()}


class PricingRuleRepository(BaseRepository[PricingRule]):
    """Repository for PricingRule model operations."""

    model = PricingRule

    async def get_for_category(self, category_id: UUID) -> Optional[PricingRule]:
        return await self._first(select(PricingRule).where(PricingRule.category_id == category_id))

    async def get_default(self) -> Optional[PricingRule]:
        return await self._first(select(PricingRule).where(PricingRule.category_id.is_(None)))

    async def list_rules(self) -> list[PricingRule]:
        """List rules with the global default first."""
        stmt = select(PricingRule).order_by(
            PricingRule.category_id.is_not(None),
            PricingRule.created_at,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
