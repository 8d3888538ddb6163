"""
Base repository shared by every aggregate.

Subclasses set `model` and add their own queries; the helpers here cover
lookups by primary key, flush-and-refresh writes and the small
count/exists queries most aggregates need.
"""
from typing import Any, Generic, Optional, TypeVar
from uuid import UUID

from sqlalchemy import ColumnElement, Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.database import Base

ModelType = TypeVar("ModelType", bound=Base)
LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """`%term%` for ILIKE with the term's own wildcards escaped (use `escape=LIKE_ESCAPE`)."""
    escaped = (
        term.strip()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )
    return f"%{escaped}%"


class BaseRepository(Generic[ModelType]):
    """Session-bound data access for one model."""

    model: type[ModelType]

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, id: UUID | str) -> Optional[ModelType]:
        """Primary key lookup; malformed string ids simply find nothing."""
        if isinstance(id, str):
            try:
                id = UUID(id)
            except ValueError:
                return None
        return await self.session.get(self.model, id)

    async def create(self, values: dict[str, Any]) -> ModelType:
        instance = self.model(**values)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def update(self, instance: ModelType, values: dict[str, Any]) -> ModelType:
        """
        Apply `values` to the instance.

        Explicit None values are written too, so partial updates pass
        `model_dump(exclude_unset=True)`.
        """
        for field, value in values.items():
            setattr(instance, field, value)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, instance: ModelType) -> None:
        await self.session.delete(instance)
        await self.session.flush()

    # Query helpers

    async def _first(self, stmt: Select) -> Optional[Any]:
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def _count(self, model: type[Base], *criteria: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(model).where(*criteria)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def _exists(
        self,
        *criteria: ColumnElement[bool],
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        """Whether a row of `model` matches, optionally ignoring one id."""
        stmt = select(self.model.id).where(*criteria)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        result = await self.session.execute(stmt.limit(1))
        return result.first() is not None
