"""
Cart repository.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from heartcart.models.cart import CartItem
from heartcart.repositories.base import BaseRepository


class CartRepository(BaseRepository[CartItem]):
    """Repository for CartItem model operations."""

    model = CartItem

    async def list_for_user(self, user_id: UUID) -> list[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.user_id == user_id)
            .options(selectinload(CartItem.product))
            .order_by(CartItem.created_at)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_for_user(self, item_id: UUID, user_id: UUID) -> Optional[CartItem]:
        stmt = (
            select(CartItem)
            .where(CartItem.id == item_id, CartItem.user_id == user_id)
            .options(selectinload(CartItem.product))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_product(self, user_id: UUID, product_id: UUID) -> Optional[CartItem]:
        stmt = select(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.product_id == product_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def clear(self, user_id: UUID) -> int:
        result = await self.session.execute(delete(CartItem).where(CartItem.user_id == user_id))
        return result.rowcount or 0
