"""
Product draft model - editable work-in-progress copy of a product.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from heartcart.core.database import Base, JSONType, utcnow


class DraftStatus(str, Enum):
    """Workflow states of a draft."""

    DRAFT = "draft"
    IN_REVIEW = "in_review"
    READY_TO_PUBLISH = "ready_to_publish"
    PUBLISHED = "published"
    REJECTED = "rejected"


class WizardStep(str, Enum):
    """Steps of the product authoring wizard."""

    BASIC_INFO = "basic-info"
    PRICING = "pricing"
    IMAGES = "images"
    ATTRIBUTES = "attributes"
    SEO = "seo"
    SALES_PROMOTIONS = "sales-promotions"
    REVIEW = "review"


def _empty_wizard_progress() -> dict[str, bool]:
    return {step.value: False for step in WizardStep}


class ProductDraft(Base):
    """Draft of a new product, or of edits to `original_product_id`."""

    __tablename__ = "product_drafts"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    original_product_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="SET NULL"),
        index=True,
    )
    draft_status: Mapped[str] = mapped_column(
        String(30),
        default=DraftStatus.DRAFT.value,
        nullable=False,
        index=True,
    )
    created_by: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
    )

    # Basic information
    name: Mapped[Optional[str]] = mapped_column(String(500))
    slug: Mapped[Optional[str]] = mapped_column(String(255))
    sku: Mapped[Optional[str]] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    brand: Mapped[Optional[str]] = mapped_column(String(255))
    tags: Mapped[list[str]] = mapped_column(JSONType, default=list)
    category_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("categories.id", ondelete="SET NULL"),
        index=True,
    )
    catalog_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("catalogs.id", ondelete="SET NULL"),
        index=True,
    )
    supplier_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="SET NULL"),
        index=True,
    )
    supplier_url: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False)

    # Pricing
    cost_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    regular_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    sale_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    on_sale: Mapped[bool] = mapped_column(Boolean, default=False)
    markup_percentage: Mapped[Optional[int]] = mapped_column(Integer)
    minimum_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    compare_at_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))

    # Images (parallel lists)
    image_urls: Mapped[list[str]] = mapped_column(JSONType, default=list)
    image_object_keys: Mapped[list[str]] = mapped_column(JSONType, default=list)
    main_image_index: Mapped[int] = mapped_column(Integer, default=0)

    # Inventory
    stock_level: Mapped[int] = mapped_column(Integer, default=0)
    minimum_order: Mapped[int] = mapped_column(Integer, default=1)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, default=5)
    backorder_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    # Attributes: {attribute_id: [option values]}
    selected_attributes: Mapped[dict[str, list[str]]] = mapped_column(JSONType, default=dict)

    # Physical
    weight: Mapped[Optional[float]] = mapped_column(Float)
    dimensions: Mapped[Optional[str]] = mapped_column(String(100))
    free_shipping: Mapped[bool] = mapped_column(Boolean, default=False)

    # Promotions
    discount_label: Mapped[Optional[str]] = mapped_column(String(255))
    special_sale_text: Mapped[Optional[str]] = mapped_column(Text)
    special_sale_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    special_sale_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    is_flash_deal: Mapped[bool] = mapped_column(Boolean, default=False)
    flash_deal_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # SEO
    meta_title: Mapped[Optional[str]] = mapped_column(String(255))
    meta_description: Mapped[Optional[str]] = mapped_column(Text)
    meta_keywords: Mapped[Optional[str]] = mapped_column(Text)
    canonical_url: Mapped[Optional[str]] = mapped_column(Text)

    # AI-generated content
    has_ai_description: Mapped[bool] = mapped_column(Boolean, default=False)
    has_ai_seo: Mapped[bool] = mapped_column(Boolean, default=False)
    ai_suggestions: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)

    # Workflow
    wizard_progress: Mapped[dict[str, bool]] = mapped_column(JSONType, default=_empty_wizard_progress)
    completed_steps: Mapped[list[str]] = mapped_column(JSONType, default=list)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    change_history: Mapped[list[dict[str, Any]]] = mapped_column(JSONType, default=list)
    last_reviewer: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)

    # Publication
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    published_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    @property
    def status(self) -> DraftStatus:
        return DraftStatus(self.draft_status)

    def __repr__(self) -> str:
        return f"<ProductDraft {self.id} {self.draft_status}>"
