"""
Cart service - line items, quantities and totals.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from heartcart.core.logging import get_logger
from heartcart.models.cart import CartItem
from heartcart.models.favourite import InteractionType
from heartcart.models.user import User
from heartcart.repositories.cart import CartRepository
from heartcart.repositories.product import ProductRepository
from heartcart.services.attributes import AttributeService, Selections, merge_selections
from heartcart.services.favourites import FavouriteService
from heartcart.services.pricing import effective_unit_price, quantize

logger = get_logger(__name__)


@dataclass
class CartSummary:
    items: list[CartItem]
    total_items: int
    subtotal: Decimal


def line_total(item: CartItem) -> Decimal:
    return quantize(Decimal(item.item_price) * item.quantity)


class CartService:
    """Shopping cart operations scoped to one user."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = CartRepository(session)
        self.products = ProductRepository(session)
        self.attributes = AttributeService(session)
        self.favourites = FavouriteService(session)

    async def get_cart(self, user: User) -> CartSummary:
        items = await self.repo.list_for_user(user.id)
        return CartSummary(
            items=items,
            total_items=sum(item.quantity for item in items),
            subtotal=quantize(sum((line_total(item) for item in items), Decimal("0"))),
        )

    async def add_item(
        self,
        user: User,
        product_id: UUID,
        quantity: int = 1,
        selections: Optional[Selections] = None,
    ) -> CartItem:
        """
        Add a product, or increase its quantity when already in the cart.

        The unit price is captured at add time.
        """
        if quantity < 1:
            raise InvalidInputError("Quantity must be at least 1")
        product = await self.products.get_by_id(product_id)
        if not product or not product.is_active:
            raise NotFoundError("Product not found")

        errors = await self.attributes.validate_selection(product, selections)
        if errors:
            raise InvalidInputError("; ".join(errors))

        existing = await self.repo.get_by_product(user.id, product_id)
        new_quantity = quantity + (existing.quantity if existing else 0)
        minimum = product.minimum_order or 1
        if new_quantity < minimum:
            raise InvalidInputError(f"Minimum order quantity for this product is {minimum}")
        if new_quantity > product.stock:
            raise ConflictError(f"Only {product.stock} in stock")

        price = effective_unit_price(product)
        if existing:
            existing.quantity = new_quantity
            existing.item_price = price
            if selections:
                existing.attribute_selections = merge_selections(existing.attribute_selections, selections)
            await self.session.flush()
            item = existing
        else:
            item = await self.repo.create(
                {
                    "user_id": user.id,
                    "product_id": product_id,
                    "quantity": new_quantity,
                    "item_price": price,
                    "attribute_selections": selections or None,
                }
            )

        await self.favourites.record_interaction(
            product_id, InteractionType.ADD_TO_CART, user_id=user.id
        )
        logger.info("Cart item added", user_id=str(user.id), product_id=str(product_id), quantity=quantity)
        return await self.repo.get_for_user(item.id, user.id)

    async def _owned(self, user: User, item_id: UUID) -> CartItem:
        item = await self.repo.get_for_user(item_id, user.id)
        if not item:
            raise NotFoundError("Cart item not found")
        return item

    async def update_quantity(self, user: User, item_id: UUID, quantity: int) -> Optional[CartItem]:
        """Set a line's quantity; zero or less removes it and returns None."""
        item = await self._owned(user, item_id)
        if quantity <= 0:
            await self.remove_item(user, item_id)
            return None
        if quantity > item.product.stock:
            raise ConflictError(f"Only {item.product.stock} in stock")
        minimum = item.product.minimum_order or 1
        if quantity < minimum:
            raise InvalidInputError(f"Minimum order quantity for this product is {minimum}")
        item.quantity = quantity
        await self.session.flush()
        return item

    async def remove_item(self, user: User, item_id: UUID) -> None:
        item = await self._owned(user, item_id)
        product_id = item.product_id
        await self.repo.delete(item)
        await self.favourites.record_interaction(
            product_id, InteractionType.REMOVE_FROM_CART, user_id=user.id
        )

    async def clear(self, user: User) -> int:
        removed = await self.repo.clear(user.id)
        logger.info("Cart cleared", user_id=str(user.id), items=removed)
        return removed
