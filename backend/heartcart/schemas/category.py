"""
Category Pydantic schemas.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import Field

from heartcart.schemas.common import CamelModel


class CategoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)
    image_url: Optional[str] = None
    parent_id: Optional[UUID] = None
    display_order: int = 0
    is_active: bool = True


class CategoryUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    icon: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[UUID] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class CategoryResponse(CamelModel):
    id: UUID
    name: str
    slug: str
    description: Optional[str] = None
    icon: Optional[str] = None
    image_url: Optional[str] = None
    parent_id: Optional[UUID] = None
    level: int
    display_order: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategoryTreeNode(CategoryResponse):
    children: list["CategoryTreeNode"] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: dict) -> "CategoryTreeNode":
        base = CategoryResponse.model_validate(node["category"]).model_dump()
        return cls(**base, children=[cls.from_node(child) for child in node["children"]])
