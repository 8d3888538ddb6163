"""
Favourites and product interaction tracking.
"""
from datetime import timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.database import utcnow
from heartcart.core.exceptions import ConflictError, NotFoundError
from heartcart.core.logging import get_logger
from heartcart.models.favourite import InteractionType, ProductInteraction, UserFavourite
from heartcart.models.product import Product
from heartcart.repositories.favourite import FavouriteRepository, InteractionRepository
from heartcart.repositories.product import ProductRepository

logger = get_logger(__name__)


class FavouriteService:
    """Favourite lists, popularity and view tracking."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = FavouriteRepository(session)
        self.interactions = InteractionRepository(session)
        self.products = ProductRepository(session)

    async def add(self, user_id: UUID, product_id: UUID) -> UserFavourite:
        if not await self.products.get_by_id(product_id):
            raise NotFoundError("Product not found")
        if await self.repo.get_for_user(user_id, product_id):
            raise ConflictError("Product is already in favourites")
        try:
            async with self.session.begin_nested():
                favourite = await self.repo.create({"user_id": user_id, "product_id": product_id})
        except IntegrityError as e:
            raise ConflictError("Product is already in favourites") from e
        await self.record_interaction(product_id, InteractionType.FAVOURITE, user_id=user_id)
        return favourite

    async def remove(self, user_id: UUID, product_id: UUID) -> None:
        favourite = await self.repo.get_for_user(user_id, product_id)
        if not favourite:
            raise NotFoundError("Product is not in favourites")
        await self.repo.delete(favourite)
        await self.record_interaction(product_id, InteractionType.UNFAVOURITE, user_id=user_id)

    async def is_favourite(self, user_id: UUID, product_id: UUID) -> bool:
        return await self.repo.get_for_user(user_id, product_id) is not None

    async def list_for_user(self, user_id: UUID, *, with_products: bool = False) -> list[UserFavourite]:
        return await self.repo.list_for_user(user_id, with_products=with_products)

    async def count_for_product(self, product_id: UUID) -> int:
        return await self.repo.count_for_product(product_id)

    async def popular(self, limit: int = 10) -> list[tuple[Product, int]]:
        return await self.repo.most_favourited(limit)

    async def record_interaction(
        self,
        product_id: UUID,
        interaction_type: InteractionType,
        *,
        user_id: Optional[UUID] = None,
        session_id: Optional[str] = None,
        referrer: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ProductInteraction:
        interaction = await self.interactions.create(
            {
                "product_id": product_id,
                "interaction_type": interaction_type.value,
                "user_id": user_id,
                "session_id": session_id,
                "referrer": referrer,
                "user_agent": user_agent,
            }
        )
        logger.debug(
            "Interaction recorded",
            product_id=str(product_id),
            type=interaction_type.value,
        )
        return interaction

    async def view_count(self, product_id: UUID) -> int:
        return await self.interactions.count_views(product_id)

    async def most_viewed(self, days: int = 7, limit: int = 10) -> list[tuple[Product, int]]:
        since = utcnow() - timedelta(days=days)
        return await self.interactions.most_viewed(since, limit)
