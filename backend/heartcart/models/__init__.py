"""
SQLAlchemy models package.
All models are imported here for easy access and Alembic discovery.
"""
from heartcart.models.attribute import (
    Attribute,
    AttributeOption,
    AttributeType,
    ProductAttribute,
)
from heartcart.models.cart import CartItem
from heartcart.models.category import Category, PricingRule
from heartcart.models.draft import DraftStatus, ProductDraft, WizardStep
from heartcart.models.favourite import InteractionType, ProductInteraction, UserFavourite
from heartcart.models.product import Product, ProductImage
from heartcart.models.supplier import Catalog, Supplier
from heartcart.models.user import User, UserRole

__all__ = [
    # Accounts
    "User",
    "UserRole",
    # Sourcing
    "Supplier",
    "Catalog",
    "Category",
    "PricingRule",
    # Catalogue
    "Product",
    "ProductImage",
    "Attribute",
    "AttributeOption",
    "AttributeType",
    "ProductAttribute",
    # Authoring
    "ProductDraft",
    "DraftStatus",
    "WizardStep",
    # Shopping
    "CartItem",
    "UserFavourite",
    "ProductInteraction",
    "InteractionType",
]
