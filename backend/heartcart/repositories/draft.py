"""
Product draft repository.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import select

from heartcart.models.draft import DraftStatus, ProductDraft
from heartcart.repositories.base import BaseRepository


class DraftRepository(BaseRepository[ProductDraft]):
    """Repository for ProductDraft model operations."""

    model = ProductDraft

    async def get_for_update(self, draft_id: UUID) -> Optional[ProductDraft]:
        """Load a draft with a row lock (ignored by SQLite)."""
        stmt = (
            select(ProductDraft)
            .where(ProductDraft.id == draft_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_open_for_product(self, product_id: UUID) -> Optional[ProductDraft]:
        """Most recent unpublished draft editing the given product."""
        stmt = (
            select(ProductDraft)
            .where(
                ProductDraft.original_product_id == product_id,
                ProductDraft.draft_status != DraftStatus.PUBLISHED.value,
            )
            .order_by(ProductDraft.last_modified.desc())
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_drafts(
        self,
        *,
        created_by: Optional[UUID] = None,
        status: Optional[str] = None,
        catalog_id: Optional[UUID] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ProductDraft], int]:
        """List drafts most recently modified first. Returns (items, total)."""
        conditions = []
        if created_by:
            conditions.append(ProductDraft.created_by == created_by)
        if status:
            conditions.append(ProductDraft.draft_status == status)
        if catalog_id:
            conditions.append(ProductDraft.catalog_id == catalog_id)

        total = await self._count(ProductDraft, *conditions)

        stmt = (
            select(ProductDraft)
            .where(*conditions)
            .order_by(ProductDraft.last_modified.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def image_keys_by_draft(self) -> dict[str, set[str]]:
        """Tracked object keys of every draft, keyed by draft id."""
        result = await self.session.execute(select(ProductDraft.id, ProductDraft.image_object_keys))
        return {str(draft_id): {k for k in keys or [] if k} for draft_id, keys in result.all()}
