"""
Attribute service - option management, product assignments and
validation of shopper selections.

Attributes describe variants (size, colour, ...) and never change a price.
"""
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from heartcart.core.logging import get_logger
from heartcart.models.attribute import Attribute, AttributeOption, AttributeType, ProductAttribute
from heartcart.models.product import Product
from heartcart.repositories.attribute import AttributeRepository, ProductAttributeRepository

logger = get_logger(__name__)

Selections = dict[str, dict[str, int]]


def _display_name(assignment: ProductAttribute) -> str:
    return assignment.override_display_name or assignment.attribute.display_name


def _is_required(assignment: ProductAttribute) -> bool:
    if assignment.is_required is not None:
        return assignment.is_required
    return assignment.attribute.is_required


def check_selection(
    assignments: list[ProductAttribute],
    selections: Optional[Selections],
) -> list[str]:
    """
    Validate `{attribute_name: {option_value: quantity}}` against the
    product's assigned attributes and return a list of problems.
    """
    errors: list[str] = []
    selections = selections or {}
    by_name = {a.attribute.name.lower(): a for a in assignments}

    for attribute_name, options in selections.items():
        assignment = by_name.get(attribute_name.lower())
        if assignment is None:
            errors.append(f"Unknown attribute '{attribute_name}'")
            continue
        if not isinstance(options, dict) or not options:
            errors.append(f"No options selected for '{_display_name(assignment)}'")
            continue

        attribute_type = AttributeType(assignment.attribute.attribute_type)
        allowed = set(assignment.selected_options or [])
        if not allowed and attribute_type.uses_options:
            allowed = {o.value for o in assignment.attribute.options}

        for value, quantity in options.items():
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
                errors.append(
                    f"Quantity for '{value}' of '{_display_name(assignment)}' must be a positive integer"
                )
            if attribute_type.uses_options and value not in allowed:
                errors.append(f"'{value}' is not a valid option for '{_display_name(assignment)}'")

    for assignment in assignments:
        if _is_required(assignment) and assignment.attribute.name.lower() not in {
            name.lower() for name in selections
        }:
            errors.append(f"'{_display_name(assignment)}' is required")

    return errors


def merge_selections(current: Optional[Selections], extra: Optional[Selections]) -> Selections:
    """Sum option quantities of two selections."""
    merged: Selections = {name: dict(options) for name, options in (current or {}).items()}
    for name, options in (extra or {}).items():
        target = merged.setdefault(name, {})
        for value, quantity in options.items():
            target[value] = target.get(value, 0) + quantity
    return merged


class AttributeService:
    """Business rules around attributes and their options."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.attributes = AttributeRepository(session)
        self.assignments = ProductAttributeRepository(session)

    async def create_attribute(self, data: dict[str, Any]) -> Attribute:
        if await self.attributes.get_by_name(data["name"]):
            raise ConflictError(f"Attribute '{data['name']}' already exists")
        options = data.pop("options", None) or []
        attribute = await self.attributes.create(data)
        for index, option in enumerate(options):
            if not option.get("sort_order"):
                option["sort_order"] = index
            await self.add_option(attribute, option)
        logger.info("Attribute created", attribute_id=str(attribute.id), name=attribute.name)
        return await self.attributes.get_with_options(attribute.id)

    async def update_attribute(self, attribute: Attribute, data: dict[str, Any]) -> Attribute:
        if "name" in data and data["name"] != attribute.name:
            existing = await self.attributes.get_by_name(data["name"])
            if existing and existing.id != attribute.id:
                raise ConflictError(f"Attribute '{data['name']}' already exists")
        await self.attributes.update(attribute, data)
        return await self.attributes.get_with_options(attribute.id)

    async def add_option(self, attribute: Attribute, data: dict[str, Any]) -> AttributeOption:
        value = data["value"].strip()
        if not value:
            raise InvalidInputError("Option value is required")
        if await self.attributes.option_value_exists(attribute.id, value):
            raise ConflictError(f"Option '{value}' already exists for this attribute")
        data["value"] = value
        if not data.get("display_value"):
            data["display_value"] = value
        return await self.attributes.add_option(attribute.id, data)

    async def update_option(self, option: AttributeOption, data: dict[str, Any]) -> AttributeOption:
        if "value" in data:
            data["value"] = data["value"].strip()
            if await self.attributes.option_value_exists(
                option.attribute_id, data["value"], exclude_id=option.id
            ):
                raise ConflictError(f"Option '{data['value']}' already exists for this attribute")
        return await self.attributes.update(option, data)

    async def set_product_attributes(
        self,
        product_id: UUID,
        items: list[dict[str, Any]],
    ) -> list[ProductAttribute]:
        """
        Replace the product's attribute assignments with `items`.

        Selected values must be existing options for option-based types and
        text values are only accepted for text and number attributes.
        """
        attribute_ids = [item["attribute_id"] for item in items]
        if len(set(attribute_ids)) != len(attribute_ids):
            raise InvalidInputError("Each attribute can only be assigned once")
        attributes = await self.attributes.get_many_with_options(attribute_ids)

        rows: list[dict[str, Any]] = []
        for index, item in enumerate(items):
            attribute = attributes.get(item["attribute_id"])
            if attribute is None:
                raise NotFoundError(f"Attribute {item['attribute_id']} not found")
            attribute_type = AttributeType(attribute.attribute_type)
            selected = list(dict.fromkeys(item.get("selected_options") or []))
            text_value = item.get("text_value")

            if attribute_type.uses_options:
                if text_value:
                    raise InvalidInputError(
                        f"Attribute '{attribute.name}' does not accept a text value"
                    )
                known = {o.value for o in attribute.options}
                unknown = [value for value in selected if value not in known]
                if unknown:
                    raise InvalidInputError(
                        f"Unknown options for '{attribute.name}': {', '.join(unknown)}"
                    )
            elif selected:
                raise InvalidInputError(f"Attribute '{attribute.name}' does not use options")

            rows.append(
                {
                    "attribute_id": attribute.id,
                    "override_display_name": item.get("override_display_name"),
                    "override_description": item.get("override_description"),
                    "is_required": item.get("is_required"),
                    "selected_options": selected,
                    "text_value": text_value,
                    "price_adjustment": Decimal("0"),
                    "sort_order": item.get("sort_order", index),
                }
            )

        await self.assignments.replace_for_product(product_id, rows)
        logger.info("Product attributes replaced", product_id=str(product_id), count=len(rows))
        return await self.assignments.list_for_product(product_id)

    async def validate_selection(
        self,
        product: Product,
        selections: Optional[Selections],
    ) -> list[str]:
        assignments = await self.assignments.list_for_product(product.id)
        return check_selection(assignments, selections)
