"""
Supplier and catalog API routes.
"""
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.database import get_db_session
from heartcart.core.logging import get_logger
from heartcart.models.supplier import Catalog
from heartcart.repositories.supplier import CatalogRepository, SupplierRepository
from heartcart.routers.deps import AdminUser
from heartcart.schemas.common import MessageResponse
from heartcart.schemas.supplier import (
    CatalogCreate,
    CatalogResponse,
    CatalogUpdate,
    SupplierCreate,
    SupplierResponse,
    SupplierUpdate,
)

logger = get_logger(__name__)

router = APIRouter(tags=["suppliers"])


async def get_supplier_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> SupplierRepository:
    """Dependency to get supplier repository."""
    return SupplierRepository(session)


async def get_catalog_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> CatalogRepository:
    """Dependency to get catalog repository."""
    return CatalogRepository(session)


SupplierRepo = Annotated[SupplierRepository, Depends(get_supplier_repository)]
CatalogRepo = Annotated[CatalogRepository, Depends(get_catalog_repository)]


# ----------------------------------------------------------------------
# Suppliers
# ----------------------------------------------------------------------


@router.get("/suppliers", response_model=list[SupplierResponse])
async def list_suppliers(
    repo: SupplierRepo,
    active_only: Annotated[bool, Query(alias="activeOnly")] = False,
    search: Optional[str] = None,
) -> list[SupplierResponse]:
    suppliers = await repo.list_suppliers(active_only=active_only, search=search)
    return [SupplierResponse.model_validate(s) for s in suppliers]


@router.get("/suppliers/{supplier_id}", response_model=SupplierResponse)
async def get_supplier(supplier_id: UUID, repo: SupplierRepo) -> SupplierResponse:
    supplier = await repo.get_by_id(supplier_id)
    if not supplier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    return SupplierResponse.model_validate(supplier)


@router.post("/suppliers", response_model=SupplierResponse, status_code=status.HTTP_201_CREATED)
async def create_supplier(
    payload: SupplierCreate,
    repo: SupplierRepo,
    _: AdminUser,
) -> SupplierResponse:
    supplier = await repo.create(payload.model_dump())
    logger.info("Supplier created", supplier_id=str(supplier.id), name=supplier.name)
    return SupplierResponse.model_validate(supplier)


@router.patch("/suppliers/{supplier_id}", response_model=SupplierResponse)
async def update_supplier(
    supplier_id: UUID,
    payload: SupplierUpdate,
    repo: SupplierRepo,
    _: AdminUser,
) -> SupplierResponse:
    supplier = await repo.get_by_id(supplier_id)
    if not supplier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    supplier = await repo.update(supplier, payload.model_dump(exclude_unset=True))
    return SupplierResponse.model_validate(supplier)


@router.delete("/suppliers/{supplier_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_supplier(supplier_id: UUID, repo: SupplierRepo, _: AdminUser) -> None:
    """Delete a supplier. Suppliers that still own products must be deactivated instead."""
    supplier = await repo.get_by_id(supplier_id)
    if not supplier:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    products = await repo.count_products(supplier_id)
    if products:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Supplier has {products} products; deactivate it instead",
        )
    await repo.delete(supplier)
    logger.info("Supplier deleted", supplier_id=str(supplier_id))


# ----------------------------------------------------------------------
# Catalogs
# ----------------------------------------------------------------------


def _catalog_response(catalog: Catalog, product_count: int) -> CatalogResponse:
    response = CatalogResponse.model_validate(catalog)
    response.product_count = product_count
    return response


@router.get("/catalogs", response_model=list[CatalogResponse])
async def list_catalogs(
    repo: CatalogRepo,
    supplier_id: Annotated[Optional[UUID], Query(alias="supplierId")] = None,
    active_only: Annotated[bool, Query(alias="activeOnly")] = False,
) -> list[CatalogResponse]:
    rows = await repo.list_with_product_counts(supplier_id=supplier_id, active_only=active_only)
    return [_catalog_response(catalog, count) for catalog, count in rows]


@router.get("/catalogs/{catalog_id}", response_model=CatalogResponse)
async def get_catalog(catalog_id: UUID, repo: CatalogRepo) -> CatalogResponse:
    catalog = await repo.get_by_id(catalog_id)
    if not catalog:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Catalog not found")
    return _catalog_response(catalog, await repo.count_products(catalog_id))


@router.post("/catalogs", response_model=CatalogResponse, status_code=status.HTTP_201_CREATED)
async def create_catalog(
    payload: CatalogCreate,
    repo: CatalogRepo,
    suppliers: SupplierRepo,
    _: AdminUser,
) -> CatalogResponse:
    if payload.supplier_id and not await suppliers.get_by_id(payload.supplier_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Supplier not found")
    catalog = await repo.create(payload.model_dump())
    logger.info("Catalog created", catalog_id=str(catalog.id), name=catalog.name)
    return _catalog_response(catalog, 0)


@router.patch("/catalogs/{catalog_id}", response_model=CatalogResponse)
async def update_catalog(
    catalog_id: UUID,
    payload: CatalogUpdate,
    repo: CatalogRepo,
    _: AdminUser,
) -> CatalogResponse:
    catalog = await repo.get_by_id(catalog_id)
    if not catalog:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Catalog not found")
    data = payload.model_dump(exclude_unset=True)
    start = data.get("start_date", catalog.start_date)
    end = data.get("end_date", catalog.end_date)
    if start and end and end < start:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="endDate must not be before startDate",
        )
    catalog = await repo.update(catalog, data)
    return _catalog_response(catalog, await repo.count_products(catalog_id))


@router.delete("/catalogs/{catalog_id}", response_model=MessageResponse)
async def delete_catalog(catalog_id: UUID, repo: CatalogRepo, _: AdminUser) -> MessageResponse:
    """Delete a catalog; its products stay and lose their catalog."""
    catalog = await repo.get_by_id(catalog_id)
    if not catalog:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Catalog not found")
    detached = await repo.detach_products(catalog_id)
    await repo.delete(catalog)
    logger.info("Catalog deleted", catalog_id=str(catalog_id), products_detached=detached)
    return MessageResponse(message="Catalog deleted", count=detached)
