"""
Category API routes.
"""
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from heartcart.core.database import DbSession
from heartcart.repositories.category import CategoryRepository
from heartcart.routers.deps import AdminUser
from heartcart.schemas.category import (
    CategoryCreate,
    CategoryResponse,
    CategoryTreeNode,
    CategoryUpdate,
)
from heartcart.services.categories import CategoryService

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    session: DbSession,
    active_only: Annotated[bool, Query(alias="activeOnly")] = True,
    parent_id: Annotated[Optional[UUID], Query(alias="parentId")] = None,
    roots_only: Annotated[bool, Query(alias="rootsOnly")] = False,
) -> list[CategoryResponse]:
    categories = await CategoryRepository(session).list_categories(
        active_only=active_only,
        parent_id=parent_id,
        roots_only=roots_only,
    )
    return [CategoryResponse.model_validate(c) for c in categories]


@router.get("/tree", response_model=list[CategoryTreeNode])
async def category_tree(
    session: DbSession,
    active_only: Annotated[bool, Query(alias="activeOnly")] = True,
) -> list[CategoryTreeNode]:
    """Nested category hierarchy, children ordered by display order then name."""
    nodes = await CategoryService(session).tree(active_only=active_only)
    return [CategoryTreeNode.from_node(node) for node in nodes]


@router.get("/slug/{slug}", response_model=CategoryResponse)
async def get_category_by_slug(slug: str, session: DbSession) -> CategoryResponse:
    category = await CategoryRepository(session).get_by_slug(slug)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return CategoryResponse.model_validate(category)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: UUID, session: DbSession) -> CategoryResponse:
    category = await CategoryRepository(session).get_by_id(category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return CategoryResponse.model_validate(category)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    session: DbSession,
    _: AdminUser,
) -> CategoryResponse:
    category = await CategoryService(session).create(payload.model_dump())
    return CategoryResponse.model_validate(category)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    session: DbSession,
    _: AdminUser,
) -> CategoryResponse:
    service = CategoryService(session)
    category = await service.repo.get_by_id(category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    category = await service.update(category, payload.model_dump(exclude_unset=True))
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: UUID, session: DbSession, _: AdminUser) -> None:
    """Delete a category that has no subcategories and no products."""
    service = CategoryService(session)
    category = await service.repo.get_by_id(category_id)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    await service.delete(category)
