"""
Services package for business logic layer.
"""
from heartcart.services.attributes import AttributeService
from heartcart.services.auth import AuthService
from heartcart.services.cart import CartService
from heartcart.services.categories import CategoryService
from heartcart.services.content_generator import ContentGenerator
from heartcart.services.drafts import DraftService
from heartcart.services.favourites import FavouriteService
from heartcart.services.llm_client import LLMClient
from heartcart.services.object_store import ObjectStore
from heartcart.services.pricing import PricingService
from heartcart.services.products import ProductService
from heartcart.services.publication import PublicationEngine

__all__ = [
    "AttributeService",
    "AuthService",
    "CartService",
    "CategoryService",
    "ContentGenerator",
    "DraftService",
    "FavouriteService",
    "LLMClient",
    "ObjectStore",
    "PricingService",
    "ProductService",
    "PublicationEngine",
]
