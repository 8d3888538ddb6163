"""
Pydantic schemas package.
"""
from heartcart.schemas.auth import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from heartcart.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdate,
)
from heartcart.schemas.common import CamelModel, MessageResponse, Page
from heartcart.schemas.draft import (
    DraftCreate,
    DraftResponse,
    DraftSummary,
    DraftUpdate,
    PublishCheckResponse,
    PublishResponse,
    StatusChangeRequest,
    ValidationResponse,
)
from heartcart.schemas.product import (
    PricingInfo,
    ProductImageResponse,
    ProductQuickUpdate,
    ProductResponse,
    ProductSummary,
)
from heartcart.schemas.supplier import (
    CatalogCreate,
    CatalogResponse,
    CatalogUpdate,
    SupplierCreate,
    SupplierResponse,
    SupplierUpdate,
)

__all__ = [
    # Common
    "CamelModel",
    "MessageResponse",
    "Page",
    # Auth
    "LoginRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    # Suppliers and catalogs
    "SupplierCreate",
    "SupplierUpdate",
    "SupplierResponse",
    "CatalogCreate",
    "CatalogUpdate",
    "CatalogResponse",
    # Categories
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryResponse",
    "CategoryTreeNode",
    # Products
    "PricingInfo",
    "ProductImageResponse",
    "ProductQuickUpdate",
    "ProductResponse",
    "ProductSummary",
    # Drafts
    "DraftCreate",
    "DraftUpdate",
    "DraftResponse",
    "DraftSummary",
    "PublishCheckResponse",
    "PublishResponse",
    "StatusChangeRequest",
    "ValidationResponse",
]
