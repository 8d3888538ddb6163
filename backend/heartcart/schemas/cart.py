"""
Cart Pydantic schemas.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from heartcart.schemas.common import CamelModel
from heartcart.schemas.product import ProductSummary


class CartItemAdd(CamelModel):
    product_id: UUID
    quantity: int = Field(1, ge=1)
    attribute_selections: Optional[dict[str, dict[str, int]]] = None


class CartItemUpdate(CamelModel):
    quantity: int


class CartItemResponse(CamelModel):
    id: UUID
    product_id: UUID
    quantity: int
    item_price: float
    line_total: float
    attribute_selections: Optional[dict[str, dict[str, int]]] = None
    product: ProductSummary
    created_at: datetime


class CartResponse(CamelModel):
    items: list[CartItemResponse] = Field(default_factory=list)
    total_items: int
    subtotal: float
