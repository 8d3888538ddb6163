"""
Shopping cart API routes.
"""
from uuid import UUID

from fastapi import APIRouter, Response, status

from heartcart.core.database import DbSession
from heartcart.models.cart import CartItem
from heartcart.routers.deps import CurrentUser
from heartcart.schemas.cart import CartItemAdd, CartItemResponse, CartItemUpdate, CartResponse
from heartcart.schemas.common import MessageResponse
from heartcart.schemas.product import ProductSummary
from heartcart.services.cart import CartService, line_total

router = APIRouter(prefix="/cart", tags=["cart"])


def _item_response(item: CartItem) -> CartItemResponse:
    return CartItemResponse(
        id=item.id,
        product_id=item.product_id,
        quantity=item.quantity,
        item_price=float(item.item_price),
        line_total=float(line_total(item)),
        attribute_selections=item.attribute_selections,
        product=ProductSummary.model_validate(item.product),
        created_at=item.created_at,
    )


@router.get("", response_model=CartResponse)
async def get_cart(session: DbSession, user: CurrentUser) -> CartResponse:
    summary = await CartService(session).get_cart(user)
    return CartResponse(
        items=[_item_response(item) for item in summary.items],
        total_items=summary.total_items,
        subtotal=float(summary.subtotal),
    )


@router.post("/items", response_model=CartItemResponse, status_code=status.HTTP_201_CREATED)
async def add_to_cart(payload: CartItemAdd, session: DbSession, user: CurrentUser) -> CartItemResponse:
    """Add a product; an existing line for the same product grows instead."""
    item = await CartService(session).add_item(
        user,
        payload.product_id,
        quantity=payload.quantity,
        selections=payload.attribute_selections,
    )
    return _item_response(item)


@router.patch("/items/{item_id}", response_model=CartItemResponse)
async def update_cart_item(
    item_id: UUID,
    payload: CartItemUpdate,
    session: DbSession,
    user: CurrentUser,
) -> CartItemResponse | Response:
    """Set a line's quantity. Zero or less removes the line and returns 204."""
    item = await CartService(session).update_quantity(user, item_id, payload.quantity)
    if item is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _item_response(item)


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_cart_item(item_id: UUID, session: DbSession, user: CurrentUser) -> None:
    await CartService(session).remove_item(user, item_id)


@router.delete("", response_model=MessageResponse)
async def clear_cart(session: DbSession, user: CurrentUser) -> MessageResponse:
    removed = await CartService(session).clear(user)
    return MessageResponse(message="Cart cleared", count=removed)
