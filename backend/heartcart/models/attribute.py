"""
Attribute models - centrally defined attributes, their options, and
their assignment to products.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from heartcart.core.database import Base, JSONType, utcnow


class AttributeType(str, Enum):
    """How an attribute is presented and what values it accepts."""

    SELECT = "select"
    RADIO = "radio"
    COLOR = "color"
    CHECKBOX = "checkbox"
    TEXT = "text"
    NUMBER = "number"

    @property
    def uses_options(self) -> bool:
        return self not in (AttributeType.TEXT, AttributeType.NUMBER)


class Attribute(Base):
    """Attribute definition shared by all products, e.g. size or colour."""

    __tablename__ = "attributes"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    attribute_type: Mapped[str] = mapped_column(
        String(50),
        default=AttributeType.SELECT.value,
        nullable=False,
    )
    validation_rules: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONType)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    is_filterable: Mapped[bool] = mapped_column(Boolean, default=False)
    is_comparable: Mapped[bool] = mapped_column(Boolean, default=False)
    is_swatch: Mapped[bool] = mapped_column(Boolean, default=False)
    display_in_product_summary: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

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

    options: Mapped[list["AttributeOption"]] = relationship(
        "AttributeOption",
        back_populates="attribute",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AttributeOption.sort_order",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Attribute {self.name}>"


class AttributeOption(Base):
    """Predefined value of a select/radio/color attribute."""

    __tablename__ = "attribute_options"
    __table_args__ = (
        UniqueConstraint("attribute_id", "value", name="uq_attribute_options_value"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    attribute_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("attributes.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    display_value: Mapped[str] = mapped_column(String(255), nullable=False)
    # e.g. hex code for colours, image URL for textures
    option_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", JSONType)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

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

    attribute: Mapped["Attribute"] = relationship(
        "Attribute",
        back_populates="options",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<AttributeOption {self.value}>"


class ProductAttribute(Base):
    """Attribute assigned to a product with the options it is sold in."""

    __tablename__ = "product_attributes"
    __table_args__ = (
        UniqueConstraint("product_id", "attribute_id", name="uq_product_attributes"),
    )

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
    attribute_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("attributes.id", ondelete="CASCADE"),
        nullable=False,
    )
    override_display_name: Mapped[Optional[str]] = mapped_column(String(100))
    override_description: Mapped[Optional[str]] = mapped_column(Text)
    is_required: Mapped[Optional[bool]] = mapped_column(Boolean)
    selected_options: Mapped[list[str]] = mapped_column(JSONType, default=list)
    text_value: Mapped[Optional[str]] = mapped_column(Text)
    # Attributes never affect pricing; kept at zero
    price_adjustment: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

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

    attribute: Mapped["Attribute"] = relationship("Attribute", lazy="raise")

    def __repr__(self) -> str:
        return f"<ProductAttribute {self.product_id}:{self.attribute_id}>"
