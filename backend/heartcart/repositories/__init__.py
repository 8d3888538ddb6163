"""
Repository package for data access layer.
"""
from heartcart.repositories.attribute import AttributeRepository, ProductAttributeRepository
from heartcart.repositories.base import BaseRepository
from heartcart.repositories.cart import CartRepository
from heartcart.repositories.category import CategoryRepository, PricingRuleRepository
from heartcart.repositories.draft import DraftRepository
from heartcart.repositories.favourite import FavouriteRepository, InteractionRepository
from heartcart.repositories.product import ProductFilters, ProductRepository
from heartcart.repositories.supplier import CatalogRepository, SupplierRepository
from heartcart.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "SupplierRepository",
    "CatalogRepository",
    "CategoryRepository",
    "PricingRuleRepository",
    "ProductRepository",
    "ProductFilters",
    "AttributeRepository",
    "ProductAttributeRepository",
    "DraftRepository",
    "CartRepository",
    "FavouriteRepository",
    "InteractionRepository",
]
