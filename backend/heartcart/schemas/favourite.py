"""
Favourite and interaction Pydantic schemas.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from heartcart.models.favourite import InteractionType
from heartcart.schemas.common import CamelModel
from heartcart.schemas.product import ProductSummary


class FavouriteResponse(CamelModel):
    id: UUID
    product_id: UUID
    created_at: datetime
    product: Optional[ProductSummary] = None


class FavouriteStatus(CamelModel):
    product_id: UUID
    is_favourite: bool


class ProductCount(CamelModel):
    """A product paired with a count (favourites or views)."""

    product: ProductSummary
    count: int


class FavouriteCount(CamelModel):
    product_id: UUID
    count: int


class InteractionCreate(CamelModel):
    product_id: UUID
    interaction_type: InteractionType = InteractionType.VIEW
    session_id: Optional[str] = Field(None, max_length=255)
    referrer: Optional[str] = None


class InteractionResponse(CamelModel):
    id: UUID
    product_id: UUID
    interaction_type: str
    user_id: Optional[UUID] = None
    session_id: Optional[str] = None
    created_at: datetime


class ViewCount(CamelModel):
    product_id: UUID
    views: int
