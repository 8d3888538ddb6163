"""
Attribute API routes: definitions, options and product assignments.
"""
from uuid import UUID

from fastapi import APIRouter, HTTPException, status

from heartcart.core.database import DbSession
from heartcart.repositories.attribute import AttributeRepository, ProductAttributeRepository
from heartcart.repositories.product import ProductRepository
from heartcart.routers.deps import AdminUser
from heartcart.schemas.attribute import (
    AttributeCreate,
    AttributeOptionCreate,
    AttributeOptionResponse,
    AttributeOptionUpdate,
    AttributeResponse,
    AttributeUpdate,
    AttributeWithOptions,
    ProductAttributeResponse,
    ProductAttributesUpdate,
    SelectionCheckRequest,
    SelectionCheckResponse,
)
from heartcart.services.attributes import AttributeService

router = APIRouter(tags=["attributes"])


async def _get_attribute(repo: AttributeRepository, attribute_id: UUID):
    attribute = await repo.get_with_options(attribute_id)
    if not attribute:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attribute not found")
    return attribute


async def _get_product(session, product_id: UUID):
    product = await ProductRepository(session).get_by_id(product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.get("/attributes", response_model=list[AttributeResponse])
async def list_attributes(session: DbSession) -> list[AttributeResponse]:
    attributes = await AttributeRepository(session).list_attributes()
    return [AttributeResponse.model_validate(a) for a in attributes]


@router.get("/attributes/with-options", response_model=list[AttributeWithOptions])
async def list_attributes_with_options(session: DbSession) -> list[AttributeWithOptions]:
    attributes = await AttributeRepository(session).list_attributes(with_options=True)
    return [AttributeWithOptions.model_validate(a) for a in attributes]


@router.get("/attributes/{attribute_id}", response_model=AttributeWithOptions)
async def get_attribute(attribute_id: UUID, session: DbSession) -> AttributeWithOptions:
    attribute = await _get_attribute(AttributeRepository(session), attribute_id)
    return AttributeWithOptions.model_validate(attribute)


@router.post("/attributes", response_model=AttributeWithOptions, status_code=status.HTTP_201_CREATED)
async def create_attribute(
    payload: AttributeCreate,
    session: DbSession,
    _: AdminUser,
) -> AttributeWithOptions:
    """Create an attribute, optionally with its options inlined."""
    attribute = await AttributeService(session).create_attribute(payload.to_row())
    return AttributeWithOptions.model_validate(attribute)


@router.patch("/attributes/{attribute_id}", response_model=AttributeWithOptions)
async def update_attribute(
    attribute_id: UUID,
    payload: AttributeUpdate,
    session: DbSession,
    _: AdminUser,
) -> AttributeWithOptions:
    service = AttributeService(session)
    attribute = await _get_attribute(service.attributes, attribute_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("attribute_type") is not None:
        data["attribute_type"] = data["attribute_type"].value
    attribute = await service.update_attribute(attribute, data)
    return AttributeWithOptions.model_validate(attribute)


@router.delete("/attributes/{attribute_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attribute(attribute_id: UUID, session: DbSession, _: AdminUser) -> None:
    repo = AttributeRepository(session)
    attribute = await repo.get_by_id(attribute_id)
    if not attribute:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attribute not found")
    await repo.delete(attribute)


# ----------------------------------------------------------------------
# Options
# ----------------------------------------------------------------------


@router.get("/attributes/{attribute_id}/options", response_model=list[AttributeOptionResponse])
async def list_options(attribute_id: UUID, session: DbSession) -> list[AttributeOptionResponse]:
    repo = AttributeRepository(session)
    if not await repo.get_by_id(attribute_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Attribute not found")
    return [AttributeOptionResponse.model_validate(o) for o in await repo.list_options(attribute_id)]


@router.post(
    "/attributes/{attribute_id}/options",
    response_model=AttributeOptionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_option(
    attribute_id: UUID,
    payload: AttributeOptionCreate,
    session: DbSession,
    _: AdminUser,
) -> AttributeOptionResponse:
    service = AttributeService(session)
    attribute = await _get_attribute(service.attributes, attribute_id)
    option = await service.add_option(attribute, payload.to_row())
    return AttributeOptionResponse.model_validate(option)


@router.patch("/attributes/options/{option_id}", response_model=AttributeOptionResponse)
async def update_option(
    option_id: UUID,
    payload: AttributeOptionUpdate,
    session: DbSession,
    _: AdminUser,
) -> AttributeOptionResponse:
    service = AttributeService(session)
    option = await service.attributes.get_option(option_id)
    if not option:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Option not found")
    option = await service.update_option(option, payload.to_row())
    return AttributeOptionResponse.model_validate(option)


@router.delete("/attributes/options/{option_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_option(option_id: UUID, session: DbSession, _: AdminUser) -> None:
    repo = AttributeRepository(session)
    option = await repo.get_option(option_id)
    if not option:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Option not found")
    await repo.delete_option(option)


# ----------------------------------------------------------------------
# Product assignments
# ----------------------------------------------------------------------


@router.get("/products/{product_id}/attributes", response_model=list[ProductAttributeResponse])
async def get_product_attributes(product_id: UUID, session: DbSession) -> list[ProductAttributeResponse]:
    await _get_product(session, product_id)
    assignments = await ProductAttributeRepository(session).list_for_product(product_id)
    return [ProductAttributeResponse.model_validate(a) for a in assignments]


@router.put("/products/{product_id}/attributes", response_model=list[ProductAttributeResponse])
async def set_product_attributes(
    product_id: UUID,
    payload: ProductAttributesUpdate,
    session: DbSession,
    _: AdminUser,
) -> list[ProductAttributeResponse]:
    """Replace every attribute assignment of a product."""
    await _get_product(session, product_id)
    items = [item.model_dump(exclude_none=True) for item in payload.attributes]
    assignments = await AttributeService(session).set_product_attributes(product_id, items)
    return [ProductAttributeResponse.model_validate(a) for a in assignments]


@router.post("/products/{product_id}/attributes/validate", response_model=SelectionCheckResponse)
async def validate_selection(
    product_id: UUID,
    payload: SelectionCheckRequest,
    session: DbSession,
) -> SelectionCheckResponse:
    """Check a shopper's attribute selection before adding to cart."""
    product = await _get_product(session, product_id)
    errors = await AttributeService(session).validate_selection(product, payload.selections)
    return SelectionCheckResponse(is_valid=not errors, errors=errors)
