"""
Attribute Pydantic schemas.
"""
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import Field

from heartcart.models.attribute import AttributeType
from heartcart.schemas.common import CamelModel


class AttributeOptionCreate(CamelModel):
    value: str = Field(..., min_length=1, max_length=255)
    display_value: Optional[str] = Field(None, max_length=255)
    metadata: Optional[dict[str, Any]] = None
    sort_order: int = 0

    def to_row(self) -> dict[str, Any]:
        data = self.model_dump(exclude={"metadata"})
        data["option_metadata"] = self.metadata
        return data


class AttributeOptionUpdate(CamelModel):
    value: Optional[str] = Field(None, min_length=1, max_length=255)
    display_value: Optional[str] = Field(None, max_length=255)
    metadata: Optional[dict[str, Any]] = None
    sort_order: Optional[int] = None

    def to_row(self) -> dict[str, Any]:
        data = self.model_dump(exclude_unset=True, exclude={"metadata"})
        if "metadata" in self.model_fields_set:
            data["option_metadata"] = self.metadata
        return data


class AttributeOptionResponse(CamelModel):
    id: UUID
    attribute_id: UUID
    value: str
    display_value: str
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="option_metadata")
    sort_order: int


class AttributeCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    attribute_type: AttributeType = AttributeType.SELECT
    validation_rules: Optional[dict[str, Any]] = None
    is_required: bool = False
    is_filterable: bool = False
    is_comparable: bool = False
    is_swatch: bool = False
    display_in_product_summary: bool = False
    sort_order: int = 0
    options: list[AttributeOptionCreate] = Field(default_factory=list)

    def to_row(self) -> dict[str, Any]:
        data = self.model_dump(exclude={"options", "attribute_type"})
        data["attribute_type"] = self.attribute_type.value
        data["options"] = [option.to_row() for option in self.options]
        return data


class AttributeUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    attribute_type: Optional[AttributeType] = None
    validation_rules: Optional[dict[str, Any]] = None
    is_required: Optional[bool] = None
    is_filterable: Optional[bool] = None
    is_comparable: Optional[bool] = None
    is_swatch: Optional[bool] = None
    display_in_product_summary: Optional[bool] = None
    sort_order: Optional[int] = None


class AttributeResponse(CamelModel):
    id: UUID
    name: str
    display_name: str
    description: Optional[str] = None
    attribute_type: str
    validation_rules: Optional[dict[str, Any]] = None
    is_required: bool
    is_filterable: bool
    is_comparable: bool
    is_swatch: bool
    display_in_product_summary: bool
    sort_order: int
    created_at: datetime
    updated_at: datetime


class AttributeWithOptions(AttributeResponse):
    options: list[AttributeOptionResponse] = Field(default_factory=list)


class ProductAttributeItem(CamelModel):
    attribute_id: UUID
    override_display_name: Optional[str] = Field(None, max_length=100)
    override_description: Optional[str] = None
    is_required: Optional[bool] = None
    selected_options: list[str] = Field(default_factory=list)
    text_value: Optional[str] = None
    sort_order: Optional[int] = None


class ProductAttributesUpdate(CamelModel):
    attributes: list[ProductAttributeItem]


class ProductAttributeResponse(CamelModel):
    id: UUID
    product_id: UUID
    attribute_id: UUID
    override_display_name: Optional[str] = None
    override_description: Optional[str] = None
    is_required: Optional[bool] = None
    selected_options: list[str] = Field(default_factory=list)
    text_value: Optional[str] = None
    price_adjustment: float = 0
    sort_order: int
    attribute: AttributeWithOptions


class SelectionCheckRequest(CamelModel):
    selections: dict[str, dict[str, int]] = Field(default_factory=dict)


class SelectionCheckResponse(CamelModel):
    is_valid: bool
    errors: list[str] = Field(default_factory=list)
