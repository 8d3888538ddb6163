"""
Favourites and product interaction API routes.
"""
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Header, Query, status

from heartcart.core.database import DbSession
from heartcart.core.exceptions import NotFoundError
from heartcart.models.favourite import UserFavourite
from heartcart.routers.deps import CurrentUser, OptionalUser
from heartcart.schemas.favourite import (
    FavouriteCount,
    FavouriteResponse,
    FavouriteStatus,
    InteractionCreate,
    InteractionResponse,
    ProductCount,
    ViewCount,
)
from heartcart.schemas.product import ProductSummary
from heartcart.services.favourites import FavouriteService

router = APIRouter(tags=["favourites"])


def _favourite_response(favourite: UserFavourite, with_product: bool) -> FavouriteResponse:
    return FavouriteResponse(
        id=favourite.id,
        product_id=favourite.product_id,
        created_at=favourite.created_at,
        product=ProductSummary.model_validate(favourite.product) if with_product else None,
    )


@router.get("/favourites", response_model=list[FavouriteResponse])
async def list_favourites(
    session: DbSession,
    user: CurrentUser,
    with_products: Annotated[bool, Query(alias="withProducts")] = True,
) -> list[FavouriteResponse]:
    favourites = await FavouriteService(session).list_for_user(user.id, with_products=with_products)
    return [_favourite_response(f, with_products) for f in favourites]


@router.get("/favourites/popular", response_model=list[ProductCount])
async def popular_products(
    session: DbSession,
    limit: int = Query(10, ge=1, le=50),
) -> list[ProductCount]:
    """Most favourited active products."""
    rows = await FavouriteService(session).popular(limit)
    return [ProductCount(product=ProductSummary.model_validate(p), count=n) for p, n in rows]


@router.get("/favourites/count/{product_id}", response_model=FavouriteCount)
async def favourite_count(product_id: UUID, session: DbSession) -> FavouriteCount:
    count = await FavouriteService(session).count_for_product(product_id)
    return FavouriteCount(product_id=product_id, count=count)


@router.get("/favourites/{product_id}/status", response_model=FavouriteStatus)
async def favourite_status(product_id: UUID, session: DbSession, user: CurrentUser) -> FavouriteStatus:
    is_favourite = await FavouriteService(session).is_favourite(user.id, product_id)
    return FavouriteStatus(product_id=product_id, is_favourite=is_favourite)


@router.post(
    "/favourites/{product_id}",
    response_model=FavouriteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_favourite(product_id: UUID, session: DbSession, user: CurrentUser) -> FavouriteResponse:
    favourite = await FavouriteService(session).add(user.id, product_id)
    return _favourite_response(favourite, with_product=False)


@router.delete("/favourites/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favourite(product_id: UUID, session: DbSession, user: CurrentUser) -> None:
    await FavouriteService(session).remove(user.id, product_id)


# ----------------------------------------------------------------------
# Interactions
# ----------------------------------------------------------------------


@router.post(
    "/interactions",
    response_model=InteractionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_interaction(
    payload: InteractionCreate,
    session: DbSession,
    user: OptionalUser,
    user_agent: Annotated[Optional[str], Header()] = None,
) -> InteractionResponse:
    """Record a product view or other interaction; anonymous visitors send a session id."""
    service = FavouriteService(session)
    if not await service.products.get_by_id(payload.product_id):
        raise NotFoundError("Product not found")
    interaction = await service.record_interaction(
        payload.product_id,
        payload.interaction_type,
        user_id=user.id if user else None,
        session_id=payload.session_id,
        referrer=payload.referrer,
        user_agent=user_agent,
    )
    return InteractionResponse.model_validate(interaction)


@router.get("/interactions/views/{product_id}", response_model=ViewCount)
async def product_views(product_id: UUID, session: DbSession) -> ViewCount:
    views = await FavouriteService(session).view_count(product_id)
    return ViewCount(product_id=product_id, views=views)


@router.get("/interactions/most-viewed", response_model=list[ProductCount])
async def most_viewed(
    session: DbSession,
    days: int = Query(7, ge=1, le=365),
    limit: int = Query(10, ge=1, le=50),
) -> list[ProductCount]:
    rows = await FavouriteService(session).most_viewed(days=days, limit=limit)
    return [ProductCount(product=ProductSummary.model_validate(p), count=n) for p, n in rows]
