"""
Attribute repositories: definitions, options and product assignments.
"""
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.orm import selectinload

from heartcart.models.attribute import Attribute, AttributeOption, ProductAttribute
from heartcart.repositories.base import BaseRepository


class AttributeRepository(BaseRepository[Attribute]):
    """Repository for Attribute model operations."""

    model = Attribute

    async def get_with_options(self, attribute_id: UUID) -> Optional[Attribute]:
        stmt = (
            select(Attribute)
            .where(Attribute.id == attribute_id)
            .options(selectinload(Attribute.options))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_name(self, name: str) -> Optional[Attribute]:
        stmt = select(Attribute).where(func.lower(Attribute.name) == name.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many_with_options(self, attribute_ids: list[UUID]) -> dict[UUID, Attribute]:
        if not attribute_ids:
            return {}
        stmt = (
            select(Attribute)
            .where(Attribute.id.in_(attribute_ids))
            .options(selectinload(Attribute.options))
        )
        result = await self.session.execute(stmt)
        return {a.id: a for a in result.scalars().all()}

    async def list_attributes(self, *, with_options: bool = False) -> list[Attribute]:
        """List attributes ordered by sort order, then name."""
        stmt = select(Attribute).order_by(Attribute.sort_order, Attribute.name)
        if with_options:
            stmt = stmt.options(selectinload(Attribute.options))
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_options(self, attribute_id: UUID) -> list[AttributeOption]:
        stmt = (
            select(AttributeOption)
            .where(AttributeOption.attribute_id == attribute_id)
            .order_by(AttributeOption.sort_order, AttributeOption.value)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_option(self, option_id: UUID) -> Optional[AttributeOption]:
        return await self.session.get(AttributeOption, option_id)

    async def option_value_exists(
        self,
        attribute_id: UUID,
        value: str,
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        stmt = select(AttributeOption.id).where(
            AttributeOption.attribute_id == attribute_id,
            AttributeOption.value == value,
        )
        if exclude_id:
            stmt = stmt.where(AttributeOption.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.first() is not None

    async def add_option(self, attribute_id: UUID, data: dict) -> AttributeOption:
        option = AttributeOption(attribute_id=attribute_id, **data)
        self.session.add(option)
        await self.session.flush()
        await self.session.refresh(option)
        return option

    async def delete_option(self, option: AttributeOption) -> None:
        await self.session.delete(option)
        await self.session.flush()


class ProductAttributeRepository(BaseRepository[ProductAttribute]):
    """Repository for attribute assignments on products."""

    model = ProductAttribute

    async def list_for_product(self, product_id: UUID) -> list[ProductAttribute]:
        stmt = (
            select(ProductAttribute)
            .where(ProductAttribute.product_id == product_id)
            .options(
                selectinload(ProductAttribute.attribute).selectinload(Attribute.options)
            )
            .order_by(ProductAttribute.sort_order)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def replace_for_product(
        self,
        product_id: UUID,
        rows: list[dict],
    ) -> list[ProductAttribute]:
        """Drop the product's current assignments and insert `rows`."""
        await self.session.execute(
            delete(ProductAttribute).where(ProductAttribute.product_id == product_id)
        )
        assignments = [ProductAttribute(product_id=product_id, **row) for row in rows]
        self.session.add_all(assignments)
        await self.session.flush()
        return assignments
