"""
Favourite and product interaction repositories.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from heartcart.models.favourite import InteractionType, ProductInteraction, UserFavourite
from heartcart.models.product import Product
from heartcart.repositories.base import BaseRepository


class FavouriteRepository(BaseRepository[UserFavourite]):
    """Repository for UserFavourite model operations."""

    model = UserFavourite

    async def get_for_user(self, user_id: UUID, product_id: UUID) -> Optional[UserFavourite]:
        stmt = select(UserFavourite).where(
            UserFavourite.user_id == user_id,
            UserFavourite.product_id == product_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_for_user(
        self,
        user_id: UUID,
        *,
        with_products: bool = False,
    ) -> list[UserFavourite]:
        stmt = (
            select(UserFavourite)
            .where(UserFavourite.user_id == user_id)
            .order_by(UserFavourite.created_at.desc())
        )
        if with_products:
            stmt = stmt.options(selectinload(UserFavourite.product)).execution_options(
                populate_existing=True
            )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_product(self, product_id: UUID) -> int:
        return await self._count(UserFavourite, UserFavourite.product_id == product_id)

    async def most_favourited(self, limit: int = 10) -> list[tuple[Product, int]]:
        """Active products ordered by how many users favourited them."""
        favourites = func.count(UserFavourite.id)
        stmt = (
            select(Product, favourites.label("favourites"))
            .join(UserFavourite, UserFavourite.product_id == Product.id)
            .where(Product.is_active.is_(True))
            .group_by(Product.id)
            .order_by(favourites.desc(), Product.name)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]


class InteractionRepository(BaseRepository[ProductInteraction]):
    """Repository for ProductInteraction model operations."""

    model = ProductInteraction

    async def count_views(self, product_id: UUID) -> int:
        return await self._count(
            ProductInteraction,
            ProductInteraction.product_id == product_id,
            ProductInteraction.interaction_type == InteractionType.VIEW.value,
        )

    async def most_viewed(self, since: datetime, limit: int = 10) -> list[tuple[Product, int]]:
        """Active products with the most views since the given time."""
        views = func.count(ProductInteraction.id)
        stmt = (
            select(Product, views.label("views"))
            .join(ProductInteraction, ProductInteraction.product_id == Product.id)
            .where(
                Product.is_active.is_(True),
                ProductInteraction.interaction_type == InteractionType.VIEW.value,
                ProductInteraction.created_at >= since,
            )
            .group_by(Product.id)
            .order_by(views.desc(), Product.name)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1]) for row in result.all()]
