"""
AI content generation API routes.
"""
from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.config import settings
from heartcart.core.database import DbSession, get_db_session
from heartcart.routers.deps import AdminUser, Store
from heartcart.schemas.ai import (
    AIStatusResponse,
    DescriptionRequest,
    DescriptionResponse,
    DraftContentRequest,
    DraftContentResponse,
    EnhanceRequest,
    EnhanceResponse,
    ImageAnalysisResponse,
    PriceSuggestionRequest,
    PriceSuggestionResponse,
    SeoAnalysisRequest,
    SeoAnalysisResponse,
    SeoRequest,
    SeoResponse,
    TagsRequest,
    TagsResponse,
)
from heartcart.services.content_generator import ContentGenerator
from heartcart.services.drafts import DraftService
from heartcart.services.llm_client import LLMClient, get_llm_client
from heartcart.services.object_store import ensure_image, read_upload
from heartcart.services.pricing import PricingService

router = APIRouter(prefix="/ai", tags=["ai"])


async def get_content_generator(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    llm: Annotated[LLMClient, Depends(get_llm_client)],
) -> ContentGenerator:
    """Dependency to get a content generator bound to the request session."""
    return ContentGenerator(llm, pricing=PricingService(session))


Generator = Annotated[ContentGenerator, Depends(get_content_generator)]


@router.get("/status", response_model=AIStatusResponse)
async def ai_status(
    llm: Annotated[LLMClient, Depends(get_llm_client)],
    _: AdminUser,
) -> AIStatusResponse:
    return AIStatusResponse(
        configured=llm.is_configured,
        providers=[p.name for p in llm.providers],
    )


@router.post("/descriptions", response_model=DescriptionResponse)
async def generate_descriptions(
    payload: DescriptionRequest,
    generator: Generator,
    _: AdminUser,
) -> DescriptionResponse:
    descriptions = await generator.generate_descriptions(
        payload.name,
        category=payload.category,
        brand=payload.brand,
        existing=payload.existing_description,
        tone=payload.tone,
        length=payload.length,
        style=payload.style,
        extra=payload.additional_info,
    )
    return DescriptionResponse(descriptions=descriptions)


@router.post("/seo", response_model=SeoResponse)
async def optimize_seo(payload: SeoRequest, generator: Generator, _: AdminUser) -> SeoResponse:
    result = await generator.optimize_seo(
        payload.name,
        category=payload.category,
        description=payload.description,
        brand=payload.brand,
        keywords=payload.keywords,
        extra=payload.additional_info,
    )
    return SeoResponse(**asdict(result))


@router.post("/seo/analyze", response_model=SeoAnalysisResponse)
async def analyze_seo(payload: SeoAnalysisRequest, generator: Generator, _: AdminUser) -> SeoAnalysisResponse:
    """Score the SEO setup of a product and list what is missing."""
    result = await generator.analyze_seo(
        payload.name,
        meta_title=payload.meta_title,
        meta_description=payload.meta_description,
        keywords=payload.keywords,
        description=payload.description,
        price=payload.price,
    )
    return SeoAnalysisResponse(**asdict(result))


@router.post("/enhance", response_model=EnhanceResponse)
async def enhance_product(payload: EnhanceRequest, generator: Generator, _: AdminUser) -> EnhanceResponse:
    result = await generator.enhance_product(
        payload.name,
        payload.description,
        category=payload.category,
        brand=payload.brand,
    )
    return EnhanceResponse(title=result.title, description=result.description)


@router.post("/tags", response_model=TagsResponse)
async def generate_tags(payload: TagsRequest, generator: Generator, _: AdminUser) -> TagsResponse:
    return TagsResponse(tags=await generator.generate_tags(payload.name, payload.description))


@router.post("/price", response_model=PriceSuggestionResponse)
async def suggest_price(
    payload: PriceSuggestionRequest,
    generator: Generator,
    _: AdminUser,
) -> PriceSuggestionResponse:
    """Suggested retail price; never below the cost price."""
    result = await generator.suggest_price(
        payload.cost_price,
        payload.name,
        category=payload.category,
        category_id=payload.category_id,
    )
    return PriceSuggestionResponse(
        suggested_price=float(result.suggested_price),
        markup_percentage=float(result.markup_percentage) if result.markup_percentage is not None else None,
        source=result.source,
    )


@router.post("/analyze-image", response_model=ImageAnalysisResponse)
async def analyze_image(
    generator: Generator,
    _: AdminUser,
    file: UploadFile = File(...),
) -> ImageAnalysisResponse:
    """Suggest name, category, tags and prices from a product photo."""
    content_type = ensure_image(file.content_type, file.filename)
    data = await read_upload(file, settings.max_upload_bytes)
    result = await generator.analyze_image(data, content_type)
    return ImageAnalysisResponse(
        name=result.name,
        description=result.description,
        category=result.category,
        brand=result.brand,
        tags=result.tags,
        cost_price=float(result.cost_price) if result.cost_price is not None else None,
        price=float(result.price) if result.price is not None else None,
    )


@router.post("/drafts/{draft_id}", response_model=DraftContentResponse)
async def generate_for_draft(
    draft_id: UUID,
    payload: DraftContentRequest,
    session: DbSession,
    store: Store,
    generator: Generator,
    user: AdminUser,
) -> DraftContentResponse:
    """Generate content for a draft and keep it in the draft's AI suggestions."""
    draft = await DraftService(session, store).get(draft_id, user, for_update=True)
    suggestion = await generator.apply_to_draft(
        draft,
        payload.kind,
        tone=payload.tone,
        length=payload.length,
        style=payload.style,
    )
    return DraftContentResponse(draft_id=draft.id, kind=payload.kind, suggestion=suggestion)
