"""
Pricing rule API routes.
"""
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from heartcart.core.database import DbSession
from heartcart.core.logging import get_logger
from heartcart.repositories.category import CategoryRepository, PricingRuleRepository
from heartcart.routers.deps import AdminUser
from heartcart.schemas.pricing import (
    MarkupResponse,
    PriceCalculationRequest,
    PriceCalculationResponse,
    PricingRuleCreate,
    PricingRuleResponse,
    PricingRuleUpdate,
)
from heartcart.services.pricing import PricingService, price_from_cost

logger = get_logger(__name__)

router = APIRouter(prefix="/pricing", tags=["pricing"])


@router.get("/rules", response_model=list[PricingRuleResponse])
async def list_rules(session: DbSession, _: AdminUser) -> list[PricingRuleResponse]:
    rules = await PricingRuleRepository(session).list_rules()
    return [PricingRuleResponse.model_validate(r) for r in rules]


@router.post("/rules", response_model=PricingRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(
    payload: PricingRuleCreate,
    session: DbSession,
    _: AdminUser,
) -> PricingRuleResponse:
    """Create the rule for a category, or the global default when no category is given."""
    repo = PricingRuleRepository(session)
    if payload.category_id is not None:
        if not await CategoryRepository(session).get_by_id(payload.category_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
        existing = await repo.get_for_category(payload.category_id)
    else:
        existing = await repo.get_default()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A pricing rule already exists for this category",
        )
    rule = await repo.create(payload.model_dump())
    logger.info(
        "Pricing rule created",
        category_id=str(rule.category_id) if rule.category_id else None,
        markup=rule.markup_percentage,
    )
    return PricingRuleResponse.model_validate(rule)


@router.patch("/rules/{rule_id}", response_model=PricingRuleResponse)
async def update_rule(
    rule_id: UUID,
    payload: PricingRuleUpdate,
    session: DbSession,
    _: AdminUser,
) -> PricingRuleResponse:
    repo = PricingRuleRepository(session)
    rule = await repo.get_by_id(rule_id)
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pricing rule not found")
    rule = await repo.update(rule, payload.model_dump(exclude_unset=True, exclude_none=True))
    return PricingRuleResponse.model_validate(rule)


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(rule_id: UUID, session: DbSession, _: AdminUser) -> None:
    repo = PricingRuleRepository(session)
    rule = await repo.get_by_id(rule_id)
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Pricing rule not found")
    await repo.delete(rule)


@router.get("/markup", response_model=MarkupResponse)
async def resolve_markup(
    session: DbSession,
    _: AdminUser,
    category_id: Annotated[Optional[UUID], Query(alias="categoryId")] = None,
) -> MarkupResponse:
    """Markup that applies to a category and where it comes from."""
    resolution = await PricingService(session).resolve_markup(category_id)
    return MarkupResponse(
        category_id=category_id,
        markup_percentage=resolution.markup_percentage,
        source=resolution.source,
    )


@router.post("/calculate", response_model=PriceCalculationResponse)
async def calculate_price(
    payload: PriceCalculationRequest,
    session: DbSession,
    _: AdminUser,
) -> PriceCalculationResponse:
    """Selling price for a cost, from an explicit markup or the category's rule."""
    if payload.markup_percentage is not None:
        markup, source = payload.markup_percentage, "explicit"
    else:
        resolution = await PricingService(session).resolve_markup(payload.category_id)
        markup, source = resolution.markup_percentage, resolution.source
    price = price_from_cost(payload.cost_price, markup) if markup is not None else None
    return PriceCalculationResponse(
        cost_price=float(payload.cost_price),
        price=float(price) if price is not None else None,
        markup_percentage=markup,
        source=source,
    )
