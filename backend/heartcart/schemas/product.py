"""
Product Pydantic schemas.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field, computed_field

from heartcart.schemas.common import CamelModel
from heartcart.services.pricing import display_pricing


class PricingInfo(CamelModel):
    """Prices as shown to shoppers."""

    display_price: float
    original_price: Optional[float] = None
    discount_percentage: int
    has_discount: bool


class ProductImageResponse(CamelModel):
    id: UUID
    url: str
    object_key: str
    alt_text: Optional[str] = None
    is_main: bool
    sort_order: int


class ProductSummary(CamelModel):
    """Listing representation of a product."""

    id: UUID
    name: str
    slug: str
    sku: Optional[str] = None
    brand: Optional[str] = None
    category_id: Optional[UUID] = None
    catalog_id: Optional[UUID] = None
    supplier_id: UUID
    price: float
    sale_price: Optional[float] = None
    discount_label: Optional[str] = None
    stock: int
    minimum_order: int
    image_url: Optional[str] = None
    is_active: bool
    is_featured: bool
    is_flash_deal: bool
    flash_deal_end: Optional[datetime] = None
    display_order: int
    rating: Optional[float] = None
    review_count: int = 0
    sold_count: int = 0

    @computed_field
    @property
    def pricing(self) -> PricingInfo:
        result = display_pricing(self.price, self.sale_price)
        return PricingInfo(
            display_price=float(result.display_price),
            original_price=float(result.original_price) if result.original_price is not None else None,
            discount_percentage=result.discount_percentage,
            has_discount=result.has_discount,
        )


class ProductResponse(ProductSummary):
    """Full product detail."""

    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    cost_price: Optional[float] = None
    minimum_price: Optional[float] = None
    compare_at_price: Optional[float] = None
    markup_percentage: Optional[int] = None
    additional_images: list[str] = Field(default_factory=list)
    weight: Optional[float] = None
    dimensions: Optional[str] = None
    free_shipping: bool = False
    special_sale_text: Optional[str] = None
    special_sale_start: Optional[datetime] = None
    special_sale_end: Optional[datetime] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    canonical_url: Optional[str] = None
    required_attribute_ids: list[str] = Field(default_factory=list)
    images: list[ProductImageResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class ProductQuickUpdate(CamelModel):
    """Admin edit of simple product fields."""

    name: Optional[str] = Field(None, min_length=1, max_length=500)
    slug: Optional[str] = Field(None, min_length=1, max_length=255)
    sku: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    brand: Optional[str] = None
    tags: Optional[list[str]] = None
    category_id: Optional[UUID] = None
    catalog_id: Optional[UUID] = None
    price: Optional[Decimal] = Field(None, gt=0)
    sale_price: Optional[Decimal] = Field(None, gt=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    minimum_price: Optional[Decimal] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    minimum_order: Optional[int] = Field(None, ge=1)
    is_featured: Optional[bool] = None
    is_flash_deal: Optional[bool] = None
    flash_deal_end: Optional[datetime] = None
    display_order: Optional[int] = None
    discount_label: Optional[str] = None


class ProductStatusUpdate(CamelModel):
    is_active: bool
