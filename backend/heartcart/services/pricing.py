"""
Pricing service - markup resolution and price arithmetic.

All money arithmetic is done with Decimal and rounded half-up to cents.
"""
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.logging import get_logger
from heartcart.models.product import Product
from heartcart.repositories.category import CategoryRepository, PricingRuleRepository

logger = get_logger(__name__)

CENT = Decimal("0.01")
Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal without binary float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def quantize(value: Number) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def price_from_cost(cost: Number, markup_percentage: Number) -> Decimal:
    """cost * (1 + markup / 100), rounded to cents."""
    cost = to_decimal(cost)
    markup = to_decimal(markup_percentage)
    return quantize(cost * (Decimal(1) + markup / Decimal(100)))


def markup_from_prices(cost: Number, price: Number) -> Optional[Decimal]:
    """Markup percentage that turns `cost` into `price`; None for zero cost."""
    cost = to_decimal(cost)
    if cost <= 0:
        return None
    return quantize((to_decimal(price) - cost) / cost * Decimal(100))


@dataclass(frozen=True)
class DisplayPricing:
    display_price: Decimal
    original_price: Optional[Decimal]
    discount_percentage: int
    has_discount: bool


def display_pricing(price: Number, sale_price: Optional[Number] = None) -> DisplayPricing:
    """
    Prices as shown to shoppers.

    A sale price only counts when it is lower than the regular price.
    """
    price = quantize(price)
    if sale_price is not None:
        sale = quantize(sale_price)
        if Decimal(0) < sale < price:
            discount = ((price - sale) / price * Decimal(100)).quantize(
                Decimal(1), rounding=ROUND_HALF_UP
            )
            return DisplayPricing(
                display_price=sale,
                original_price=price,
                discount_percentage=int(discount),
                has_discount=True,
            )
    return DisplayPricing(
        display_price=price,
        original_price=None,
        discount_percentage=0,
        has_discount=False,
    )


def effective_unit_price(product: Product) -> Decimal:
    """Price a shopper pays for one unit, never below the minimum price."""
    price = quantize(product.price)
    if product.sale_price is not None and Decimal(0) < quantize(product.sale_price) < price:
        price = quantize(product.sale_price)
    if product.minimum_price is not None and price < quantize(product.minimum_price):
        price = quantize(product.minimum_price)
    return price


@dataclass(frozen=True)
class MarkupResolution:
    markup_percentage: Optional[int]
    source: str


class PricingService:
    """Resolves which markup applies to a category."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.rules = PricingRuleRepository(session)
        self.categories = CategoryRepository(session)

    async def resolve_markup(self, category_id: Optional[UUID]) -> MarkupResolution:
        """
        Category rule, else the nearest ancestor's rule, else the global default.

        Source is reported as `category_<id>`, `parent_category_<id>`,
        `global_default` or `none`.
        """
        if category_id is not None:
            rule = await self.rules.get_for_category(category_id)
            if rule:
                return MarkupResolution(rule.markup_percentage, f"category_{category_id}")

            parents = await self.categories.get_parent_map()
            seen = {category_id}
            current = parents.get(category_id)
            while current is not None and current not in seen:
                seen.add(current)
                rule = await self.rules.get_for_category(current)
                if rule:
                    return MarkupResolution(rule.markup_percentage, f"parent_category_{current}")
                current = parents.get(current)

        default = await self.rules.get_default()
        if default:
            return MarkupResolution(default.markup_percentage, "global_default")

        logger.debug("No markup rule found", category_id=str(category_id) if category_id else None)
        return MarkupResolution(None, "none")

    async def price_for_category(
        self,
        cost: Number,
        category_id: Optional[UUID],
    ) -> tuple[Optional[Decimal], MarkupResolution]:
        """Selling price from cost using the resolved markup; None without a rule."""
        resolution = await self.resolve_markup(category_id)
        if resolution.markup_percentage is None:
            return None, resolution
        return price_from_cost(cost, resolution.markup_percentage), resolution
