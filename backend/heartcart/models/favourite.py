"""
Favourite and interaction models - shopper engagement with products.
"""
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from heartcart.core.database import Base, utcnow
from heartcart.models.product import Product


class InteractionType(str, Enum):
    """Kinds of tracked product interactions."""

    VIEW = "view"
    ADD_TO_CART = "add_to_cart"
    REMOVE_FROM_CART = "remove_from_cart"
    FAVOURITE = "favourite"
    UNFAVOURITE = "unfavourite"


class UserFavourite(Base):
    """Product a user has marked as a favourite."""

    __tablename__ = "user_favourites"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_user_favourites"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    product_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )

    product: Mapped[Product] = relationship("Product", lazy="raise")

    def __repr__(self) -> str:
        return f"<UserFavourite {self.user_id}:{self.product_id}>"


class ProductInteraction(Base):
    """Tracked event, e.g. a product view by a signed-in or anonymous shopper."""

    __tablename__ = "product_interactions"
    __table_args__ = (
        Index("ix_product_interactions_product_type", "product_id", "interaction_type"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        index=True,
    )
    session_id: Mapped[Optional[str]] = mapped_column(String(255))
    product_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    interaction_type: Mapped[str] = mapped_column(String(30), nullable=False)
    referrer: Mapped[Optional[str]] = mapped_column(Text)
    user_agent: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return f"<ProductInteraction {self.interaction_type} {self.product_id}>"
