"""
Product model - a published, purchasable item.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
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
from sqlalchemy.orm import Mapped, mapped_column, relationship

from heartcart.core.database import Base, JSONType, utcnow


class Product(Base):
    """Storefront product with pricing, stock, SEO and promotion fields."""

    __tablename__ = "products"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )

    # Product details
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String(100), unique=True)
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
    supplier_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("suppliers.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )

    # Pricing
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    cost_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    sale_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    minimum_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    compare_at_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2))
    markup_percentage: Mapped[Optional[int]] = mapped_column(Integer)
    discount_label: Mapped[Optional[str]] = mapped_column(String(255))

    # Inventory
    stock: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    minimum_order: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    # Images (denormalised from product_images for listing queries)
    image_url: Mapped[Optional[str]] = mapped_column(Text)
    additional_images: Mapped[list[str]] = mapped_column(JSONType, default=list)

    # Physical
    weight: Mapped[Optional[float]] = mapped_column(Float)  # kg
    dimensions: Mapped[Optional[str]] = mapped_column(String(100))  # LxWxH cm
    free_shipping: Mapped[bool] = mapped_column(Boolean, default=False)

    # Visibility and promotions
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_flash_deal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    flash_deal_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    special_sale_text: Mapped[Optional[str]] = mapped_column(Text)
    special_sale_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    special_sale_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    display_order: Mapped[int] = mapped_column(Integer, default=999)

    # SEO
    meta_title: Mapped[Optional[str]] = mapped_column(String(255))
    meta_description: Mapped[Optional[str]] = mapped_column(Text)
    meta_keywords: Mapped[Optional[str]] = mapped_column(Text)
    canonical_url: Mapped[Optional[str]] = mapped_column(Text)

    required_attribute_ids: Mapped[list[str]] = mapped_column(JSONType, default=list)

    # Metrics
    rating: Mapped[Optional[float]] = mapped_column(Float)
    review_count: Mapped[int] = mapped_column(Integer, default=0)
    sold_count: Mapped[int] = mapped_column(Integer, default=0)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
    )

    # Relationships
    images: Mapped[list["ProductImage"]] = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ProductImage.sort_order",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Product {self.name[:30]}>"


class ProductImage(Base):
    """Image attached to a product, stored in the object store."""

    __tablename__ = "product_images"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    product_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    url: Mapped[str] = mapped_column(Text, nullable=False)
    object_key: Mapped[str] = mapped_column(Text, nullable=False)
    alt_text: Mapped[Optional[str]] = mapped_column(String(500))
    is_main: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    product: Mapped["Product"] = relationship("Product", back_populates="images", lazy="raise")

    def __repr__(self) -> str:
        return f"<ProductImage {self.object_key}>"
