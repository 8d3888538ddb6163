"""
AI content generation Pydantic schemas.
"""
from decimal import Decimal
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import Field

from heartcart.schemas.common import CamelModel

Length = Literal["short", "medium", "long"]


class DescriptionRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = None
    brand: Optional[str] = None
    existing_description: Optional[str] = None
    tone: str = Field("professional", max_length=50)
    length: Length = "medium"
    style: str = Field("informative", max_length=50)
    additional_info: Optional[str] = None


class DescriptionResponse(CamelModel):
    descriptions: list[str]


class SeoRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    additional_info: Optional[str] = None


class SeoResponse(CamelModel):
    meta_title: str
    meta_description: str
    keywords: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class EnhanceRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=500)
    description: str = Field(..., min_length=1)
    category: Optional[str] = None
    brand: Optional[str] = None


class EnhanceResponse(CamelModel):
    title: str
    description: str


class TagsRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None


class TagsResponse(CamelModel):
    tags: list[str]


class PriceSuggestionRequest(CamelModel):
    cost_price: Decimal = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=500)
    category: Optional[str] = None
    category_id: Optional[UUID] = None


class PriceSuggestionResponse(CamelModel):
    suggested_price: float
    markup_percentage: Optional[float] = None
    source: str


class DraftContentRequest(CamelModel):
    kind: Literal["description", "seo", "seo_analysis", "tags", "price"]
    tone: str = Field("professional", max_length=50)
    length: Length = "medium"
    style: str = Field("informative", max_length=50)


class DraftContentResponse(CamelModel):
    draft_id: UUID
    kind: str
    suggestion: dict[str, Any]


class AIStatusResponse(CamelModel):
    configured: bool
    providers: list[str]


class SeoAnalysisRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=500)
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    keywords: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)


class SeoAnalysisResponse(CamelModel):
    score: int = Field(..., ge=0, le=100)
    recommendations: list[str] = Field(default_factory=list)
    missing_elements: list[str] = Field(default_factory=list)
    competitor_keywords: list[str] = Field(default_factory=list)


class ImageAnalysisResponse(CamelModel):
    name: str = ""
    description: str = ""
    category: str = ""
    brand: str = ""
    tags: list[str] = Field(default_factory=list)
    cost_price: Optional[float] = None
    price: Optional[float] = None
