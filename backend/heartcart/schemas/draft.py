"""
Product draft Pydantic schemas.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import Field, HttpUrl, field_validator, model_validator

from heartcart.models.draft import DraftStatus
from heartcart.schemas.common import CamelModel


class BasicInfoStep(CamelModel):
    name: Optional[str] = Field(None, max_length=500)
    slug: Optional[str] = Field(None, max_length=255)
    sku: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    brand: Optional[str] = Field(None, max_length=255)
    tags: Optional[list[str]] = None
    category_id: Optional[UUID] = None
    catalog_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    supplier_url: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    stock_level: Optional[int] = Field(None, ge=0)
    minimum_order: Optional[int] = Field(None, ge=1)
    low_stock_threshold: Optional[int] = Field(None, ge=0)
    backorder_enabled: Optional[bool] = None
    weight: Optional[float] = Field(None, ge=0)
    dimensions: Optional[str] = Field(None, max_length=100)
    free_shipping: Optional[bool] = None


class PricingStep(CamelModel):
    cost_price: Optional[Decimal] = Field(None, ge=0)
    regular_price: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    on_sale: Optional[bool] = None
    markup_percentage: Optional[int] = Field(None, ge=0)
    minimum_price: Optional[Decimal] = Field(None, ge=0)
    compare_at_price: Optional[Decimal] = Field(None, ge=0)


class ImagesStep(CamelModel):
    main_image_index: Optional[int] = Field(None, ge=0)


class AttributesStep(CamelModel):
    selected_attributes: Optional[dict[str, list[str]]] = None

    @field_validator("selected_attributes")
    @classmethod
    def check_attribute_ids(cls, value: Optional[dict[str, list[str]]]) -> Optional[dict[str, list[str]]]:
        """Keys are attribute ids; normalise them to canonical UUID strings."""
        if value is None:
            return value
        normalised: dict[str, list[str]] = {}
        for key, options in value.items():
            try:
                normalised[str(UUID(key))] = list(dict.fromkeys(options))
            except ValueError as e:
                raise ValueError(f"'{key}' is not an attribute id") from e
        return normalised


class SeoStep(CamelModel):
    meta_title: Optional[str] = Field(None, max_length=255)
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    canonical_url: Optional[str] = None


class SalesPromotionsStep(CamelModel):
    discount_label: Optional[str] = Field(None, max_length=255)
    special_sale_text: Optional[str] = None
    special_sale_start: Optional[datetime] = None
    special_sale_end: Optional[datetime] = None
    is_flash_deal: Optional[bool] = None
    flash_deal_end: Optional[datetime] = None


class DraftCreate(BasicInfoStep, PricingStep, AttributesStep, SeoStep, SalesPromotionsStep):
    """Fields accepted when creating or updating a draft."""

    main_image_index: Optional[int] = Field(None, ge=0)


class DraftUpdate(DraftCreate):
    pass


# Request body for each wizard step
STEP_SCHEMAS: dict[str, type[CamelModel]] = {
    "basic-info": BasicInfoStep,
    "pricing": PricingStep,
    "images": ImagesStep,
    "attributes": AttributesStep,
    "seo": SeoStep,
    "sales-promotions": SalesPromotionsStep,
    "review": CamelModel,
}


class DraftResponse(CamelModel):
    id: UUID
    original_product_id: Optional[UUID] = None
    draft_status: str
    created_by: Optional[UUID] = None

    name: Optional[str] = None
    slug: Optional[str] = None
    sku: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    category_id: Optional[UUID] = None
    catalog_id: Optional[UUID] = None
    supplier_id: Optional[UUID] = None
    supplier_url: Optional[str] = None
    is_active: bool = True
    is_featured: bool = False

    cost_price: Optional[float] = None
    regular_price: Optional[float] = None
    sale_price: Optional[float] = None
    on_sale: bool = False
    markup_percentage: Optional[int] = None
    minimum_price: Optional[float] = None
    compare_at_price: Optional[float] = None

    image_urls: list[str] = Field(default_factory=list)
    image_object_keys: list[str] = Field(default_factory=list)
    main_image_index: int = 0

    stock_level: int = 0
    minimum_order: int = 1
    low_stock_threshold: int = 5
    backorder_enabled: bool = False
    selected_attributes: dict[str, list[str]] = Field(default_factory=dict)

    weight: Optional[float] = None
    dimensions: Optional[str] = None
    free_shipping: bool = False

    discount_label: Optional[str] = None
    special_sale_text: Optional[str] = None
    special_sale_start: Optional[datetime] = None
    special_sale_end: Optional[datetime] = None
    is_flash_deal: bool = False
    flash_deal_end: Optional[datetime] = None

    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_keywords: Optional[str] = None
    canonical_url: Optional[str] = None

    has_ai_description: bool = False
    has_ai_seo: bool = False
    ai_suggestions: dict[str, Any] = Field(default_factory=dict)

    wizard_progress: dict[str, bool] = Field(default_factory=dict)
    completed_steps: list[str] = Field(default_factory=list)
    version: int
    change_history: list[dict[str, Any]] = Field(default_factory=list)
    last_reviewer: Optional[UUID] = None
    rejection_reason: Optional[str] = None
    published_at: Optional[datetime] = None
    published_version: int = 0

    created_at: datetime
    last_modified: datetime


class DraftSummary(CamelModel):
    id: UUID
    original_product_id: Optional[UUID] = None
    draft_status: str
    name: Optional[str] = None
    slug: Optional[str] = None
    catalog_id: Optional[UUID] = None
    regular_price: Optional[float] = None
    image_urls: list[str] = Field(default_factory=list)
    main_image_index: int = 0
    completed_steps: list[str] = Field(default_factory=list)
    version: int
    created_by: Optional[UUID] = None
    created_at: datetime
    last_modified: datetime


class DraftFromProductResponse(CamelModel):
    draft: DraftResponse
    created: bool


class ValidationResponse(CamelModel):
    is_valid: bool
    errors: dict[str, list[str]] = Field(default_factory=dict)
    completed_steps: list[str] = Field(default_factory=list)


class PublishCheckResponse(ValidationResponse):
    can_publish: bool


class StatusChangeRequest(CamelModel):
    status: DraftStatus
    note: Optional[str] = Field(None, max_length=2000)

    @model_validator(mode="after")
    def check_rejection_note(self) -> "StatusChangeRequest":
        if self.status == DraftStatus.REJECTED and not (self.note or "").strip():
            raise ValueError("A note is required when rejecting a draft")
        return self


class ImageReorderRequest(CamelModel):
    order: list[int] = Field(..., min_length=1)


class RemoteImageRequest(CamelModel):
    url: HttpUrl


class TempImagesRequest(CamelModel):
    keys: list[str] = Field(..., min_length=1, description="Keys returned by /api/files/upload")


class ImageCleanupResponse(CamelModel):
    deleted: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    drafts_cleaned: int = 0


class PublishResponse(CamelModel):
    product_id: UUID
    created: bool
    images_migrated: int
    attributes_saved: int
