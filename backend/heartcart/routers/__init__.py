"""
API routers package.
"""
from heartcart.routers.ai import router as ai_router
from heartcart.routers.attributes import router as attributes_router
from heartcart.routers.auth import router as auth_router
from heartcart.routers.cart import router as cart_router
from heartcart.routers.categories import router as categories_router
from heartcart.routers.drafts import router as drafts_router
from heartcart.routers.favourites import router as favourites_router
from heartcart.routers.files import router as files_router
from heartcart.routers.health import router as health_router
from heartcart.routers.pricing import router as pricing_router
from heartcart.routers.products import router as products_router
from heartcart.routers.suppliers import router as suppliers_router

__all__ = [
    "health_router",
    "auth_router",
    "suppliers_router",
    "categories_router",
    "products_router",
    "attributes_router",
    "pricing_router",
    "drafts_router",
    "cart_router",
    "favourites_router",
    "files_router",
    "ai_router",
]
