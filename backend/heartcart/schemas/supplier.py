"""
Supplier and catalog Pydantic schemas.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import EmailStr, Field, model_validator

from heartcart.schemas.common import CamelModel


class SupplierBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    city: Optional[str] = Field(None, max_length=100)
    country: str = Field("South Africa", max_length=100)
    website: Optional[str] = Field(None, max_length=255)
    logo: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True


class SupplierCreate(SupplierBase):
    pass


class SupplierUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    website: Optional[str] = None
    logo: Optional[str] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class SupplierResponse(SupplierBase):
    id: UUID
    email: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CatalogBase(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    supplier_id: Optional[UUID] = None
    default_markup_percentage: int = Field(50, ge=0)
    is_active: bool = True
    cover_image: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_dates(self) -> "CatalogBase":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class CatalogCreate(CatalogBase):
    pass


class CatalogUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    supplier_id: Optional[UUID] = None
    default_markup_percentage: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None
    cover_image: Optional[str] = None
    tags: Optional[list[str]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class CatalogResponse(CatalogBase):
    id: UUID
    product_count: int = 0
    created_at: datetime
    updated_at: datetime
