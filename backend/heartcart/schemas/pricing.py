"""
Pricing rule Pydantic schemas.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field

from heartcart.schemas.common import CamelModel


class PricingRuleCreate(CamelModel):
    category_id: Optional[UUID] = Field(None, description="Omit for the global default rule")
    markup_percentage: int = Field(..., ge=0)
    description: Optional[str] = None


class PricingRuleUpdate(CamelModel):
    markup_percentage: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class PricingRuleResponse(CamelModel):
    id: UUID
    category_id: Optional[UUID] = None
    markup_percentage: int
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class MarkupResponse(CamelModel):
    category_id: Optional[UUID] = None
    markup_percentage: Optional[int] = None
    source: str


class PriceCalculationRequest(CamelModel):
    cost_price: Decimal = Field(..., gt=0)
    category_id: Optional[UUID] = None
    markup_percentage: Optional[int] = Field(None, ge=0)


class PriceCalculationResponse(CamelModel):
    cost_price: float
    price: Optional[float] = None
    markup_percentage: Optional[int] = None
    source: str
