"""
Category service - slugs, hierarchy bookkeeping and tree building.
"""
import re
import unicodedata
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from heartcart.core.logging import get_logger
from heartcart.models.category import Category
from heartcart.repositories.category import CategoryRepository

logger = get_logger(__name__)


def slugify(value: str) -> str:
    """Lower-case ASCII slug with words joined by hyphens."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")
    return slug or "item"


def build_tree(categories: list[Category]) -> list[dict[str, Any]]:
    """
    Nest categories under their parents.

    Children are ordered by display order, then name. Nodes whose parent is
    missing from the input are treated as roots.
    """
    nodes: dict[UUID, dict[str, Any]] = {
        c.id: {"category": c, "children": []} for c in categories
    }
    roots: list[dict[str, Any]] = []
    for category in categories:
        node = nodes[category.id]
        parent = nodes.get(category.parent_id) if category.parent_id else None
        if parent is None:
            roots.append(node)
        else:
            parent["children"].append(node)

    def sort_key(node: dict[str, Any]) -> tuple[int, str]:
        return node["category"].display_order, node["category"].name.lower()

    def sort_level(level: list[dict[str, Any]]) -> None:
        level.sort(key=sort_key)
        for node in level:
            sort_level(node["children"])

    sort_level(roots)
    return roots


def descendant_ids(parent_map: dict[UUID, Optional[UUID]], root_id: UUID) -> list[UUID]:
    """The root id plus the ids of every category below it."""
    children: dict[UUID, list[UUID]] = {}
    for child, parent in parent_map.items():
        if parent is not None:
            children.setdefault(parent, []).append(child)

    result: list[UUID] = []
    stack = [root_id]
    while stack:
        current = stack.pop()
        if current in result:
            continue
        result.append(current)
        stack.extend(children.get(current, []))
    return result


class CategoryService:
    """Create, move and delete categories while keeping the hierarchy valid."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = CategoryRepository(session)

    async def unique_slug(self, base: str, exclude_id: Optional[UUID] = None) -> str:
        """`base`, or `base-2`, `base-3`, ... when already taken."""
        slug = slugify(base)
        candidate = slug
        suffix = 2
        while await self.repo.slug_exists(candidate, exclude_id=exclude_id):
            candidate = f"{slug}-{suffix}"
            suffix += 1
        return candidate

    async def _resolve_parent(self, parent_id: Optional[UUID]) -> Optional[Category]:
        if parent_id is None:
            return None
        parent = await self.repo.get_by_id(parent_id)
        if not parent:
            raise NotFoundError("Parent category not found")
        return parent

    async def create(self, data: dict[str, Any]) -> Category:
        parent = await self._resolve_parent(data.get("parent_id"))
        if await self.repo.sibling_name_exists(data["name"], data.get("parent_id")):
            raise ConflictError("A category with this name already exists at this level")

        data["slug"] = await self.unique_slug(data.get("slug") or data["name"])
        data["level"] = parent.level + 1 if parent else 0
        category = await self.repo.create(data)
        logger.info("Category created", category_id=str(category.id), slug=category.slug)
        return category

    async def update(self, category: Category, data: dict[str, Any]) -> Category:
        name = data.get("name", category.name)
        parent_id = data["parent_id"] if "parent_id" in data else category.parent_id

        if "parent_id" in data:
            await self._check_not_own_ancestor(category.id, parent_id)
        if "name" in data or "parent_id" in data:
            if await self.repo.sibling_name_exists(name, parent_id, exclude_id=category.id):
                raise ConflictError("A category with this name already exists at this level")

        if data.get("slug"):
            data["slug"] = await self.unique_slug(data["slug"], exclude_id=category.id)
        else:
            data.pop("slug", None)

        level_changed = False
        if "parent_id" in data:
            parent = await self._resolve_parent(parent_id)
            new_level = parent.level + 1 if parent else 0
            level_changed = new_level != category.level
            data["level"] = new_level

        category = await self.repo.update(category, data)
        if level_changed:
            await self._relevel_descendants(category)
        return category

    async def _check_not_own_ancestor(self, category_id: UUID, new_parent_id: Optional[UUID]) -> None:
        if new_parent_id is None:
            return
        if new_parent_id == category_id:
            raise InvalidInputError("A category cannot be its own parent")
        parents = await self.repo.get_parent_map()
        current: Optional[UUID] = new_parent_id
        seen: set[UUID] = set()
        while current is not None and current not in seen:
            if current == category_id:
                raise InvalidInputError("A category cannot be moved below one of its descendants")
            seen.add(current)
            current = parents.get(current)

    async def _relevel_descendants(self, category: Category) -> None:
        children = await self.repo.list_categories(parent_id=category.id)
        for child in children:
            child.level = category.level + 1
            await self._relevel_descendants(child)
        await self.session.flush()

    async def delete(self, category: Category) -> None:
        if await self.repo.count_children(category.id):
            raise ConflictError("Category has subcategories; move or delete them first")
        if await self.repo.count_products(category.id):
            raise ConflictError("Category still has products")
        await self.repo.delete(category)
        logger.info("Category deleted", category_id=str(category.id))

    async def tree(self, *, active_only: bool = False) -> list[dict[str, Any]]:
        categories = await self.repo.list_categories(active_only=active_only)
        return build_tree(categories)

    async def with_descendants(self, category_id: UUID) -> list[UUID]:
        return descendant_ids(await self.repo.get_parent_map(), category_id)
