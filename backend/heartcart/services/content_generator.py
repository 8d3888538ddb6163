"""
AI content generation for product authoring.

Builds prompts for product copy, SEO metadata and analysis, price
suggestions and product photo analysis, sends them through the LLM
client and parses the answers into plain data. Every parser tolerates
sloppy model output and falls back to the caller's own inputs.
"""
import base64
import re
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from heartcart.core.config import settings
from heartcart.core.database import utcnow
from heartcart.core.exceptions import AIServiceError, InvalidInputError
from heartcart.core.logging import get_logger
from heartcart.models.draft import ProductDraft
from heartcart.services.llm_client import LLMClient, extract_json
from heartcart.services.pricing import (
    PricingService,
    markup_from_prices,
    price_from_cost,
    quantize,
    to_decimal,
)

logger = get_logger(__name__)

LENGTH_WORDS = {
    "short": "50-100",
    "medium": "100-200",
    "long": "200-300",
}

META_TITLE_MAX = 60
META_DESCRIPTION_MAX = 160
ENHANCED_TITLE_MAX = 80
MAX_TAGS = 10
MAX_TAG_WORDS = 3
SEO_ELEMENTS = ("meta_title", "meta_description", "meta_keywords", "description")
IMAGE_NAME_MAX = 80

DESCRIPTION_BLOCK = re.compile(
    r"DESCRIPTION\s*(\d+)\s*:\s*(.*?)(?=DESCRIPTION\s*\d+\s*:|\Z)",
    re.IGNORECASE | re.DOTALL,
)
# Accepts "1,299.00" style thousands grouping as well as plain numbers
AMOUNT = re.compile(r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?")


def parse_amount(value: Any) -> Optional[Decimal]:
    """First money amount in a model answer (`R1,299.00` -> 1299.00); None when absent."""
    match = AMOUNT.search(str(value))
    if not match:
        return None
    return quantize(match.group(0).replace(",", ""))


def truncate(text: str, limit: int) -> str:
    """Cut at a word boundary so the result fits in `limit` characters."""
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    cut = text[: limit - 3].rsplit(" ", 1)[0].rstrip(",.;:-")
    return f"{cut}..."


def parse_descriptions(text: str) -> list[str]:
    """Descriptions from `DESCRIPTION n:` blocks, or the whole text when there are none."""
    descriptions = [m.group(2).strip() for m in DESCRIPTION_BLOCK.finditer(text)]
    descriptions = [d for d in descriptions if d]
    if descriptions:
        return descriptions
    stripped = text.strip()
    return [stripped] if stripped else []


def parse_tags(text: str) -> list[str]:
    """Comma-separated tags of 1-3 words, de-duplicated case-insensitively."""
    tags: list[str] = []
    seen: set[str] = set()
    for raw in re.split(r"[,\n]", text):
        tag = re.sub(r"^[\s\-*\d.#\"']+|[\s\"'.]+$", "", raw)
        tag = " ".join(tag.split())
        if not tag or len(tag.split()) > MAX_TAG_WORDS:
            continue
        key = tag.lower()
        if key in seen:
            continue
        seen.add(key)
        tags.append(tag)
        if len(tags) == MAX_TAGS:
            break
    return tags


def missing_seo_elements(
    meta_title: Optional[str],
    meta_description: Optional[str],
    keywords: Optional[list[str]],
    description: Optional[str],
) -> list[str]:
    """SEO fields that are empty, named as in `SEO_ELEMENTS`."""
    present = {
        "meta_title": bool(meta_title and meta_title.strip()),
        "meta_description": bool(meta_description and meta_description.strip()),
        "meta_keywords": any(k.strip() for k in keywords or []),
        "description": bool(description and description.strip()),
    }
    return [element for element in SEO_ELEMENTS if not present[element]]


def _strings(values: Any) -> list[str]:
    if not isinstance(values, list):
        return []
    return [str(v).strip() for v in values if str(v).strip()]


def _optional_lines(**details: Optional[str]) -> str:
    return "\n".join(f"- {label}: {value}" for label, value in details.items() if value)


@dataclass
class SeoResult:
    meta_title: str
    meta_description: str
    keywords: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass
class SeoAnalysis:
    score: int
    recommendations: list[str] = field(default_factory=list)
    missing_elements: list[str] = field(default_factory=list)
    competitor_keywords: list[str] = field(default_factory=list)


@dataclass
class EnhancedProduct:
    title: str
    description: str


@dataclass
class PriceSuggestion:
    suggested_price: Decimal
    markup_percentage: Optional[Decimal]
    source: str


@dataclass
class ImageAnalysis:
    """Product details read off a photo; empty fields mean the model had no answer."""

    name: str = ""
    description: str = ""
    category: str = ""
    brand: str = ""
    tags: list[str] = field(default_factory=list)
    cost_price: Optional[Decimal] = None
    price: Optional[Decimal] = None


class ContentGenerator:
    """Generates product copy through the configured LLM providers."""

    def __init__(self, llm: LLMClient, pricing: Optional[PricingService] = None) -> None:
        self.llm = llm
        self.pricing = pricing

    def _system(self, role: str) -> dict[str, str]:
        return {
            "role": "system",
            "content": (
                f"You are {role} for an online store in {settings.store_market}. "
                f"Prices are in {settings.store_currency}."
            ),
        }

    async def generate_descriptions(
        self,
        name: str,
        category: Optional[str] = None,
        brand: Optional[str] = None,
        existing: Optional[str] = None,
        tone: str = "professional",
        length: str = "medium",
        style: str = "informative",
        extra: Optional[str] = None,
    ) -> list[str]:
        details = _optional_lines(
            Name=name,
            Brand=brand,
            Category=category,
            **{"Current Description": existing, "Additional Information": extra},
        )
        prompt = (
            'Generate THREE unique and engaging product descriptions, formatted as '
            '"DESCRIPTION 1:", "DESCRIPTION 2:" and "DESCRIPTION 3:".\n\n'
            f"PRODUCT DETAILS:\n{details}\n\n"
            "REQUIREMENTS:\n"
            f"- Tone: {tone.capitalize()}\n"
            f"- Length: {LENGTH_WORDS.get(length, LENGTH_WORDS['medium'])} words\n"
            f"- Style: {style.capitalize()}\n"
            "- Highlight key benefits and features\n"
            "- Avoid cliches and do not invent features"
        )
        result = await self.llm.chat_completion(
            [self._system("a professional e-commerce copywriter"), {"role": "user", "content": prompt}],
            temperature=0.8,
            max_tokens=1500,
        )
        descriptions = parse_descriptions(result["content"])
        if not descriptions:
            raise AIServiceError("AI provider returned no descriptions")
        logger.info("Descriptions generated", product=name, count=len(descriptions))
        return descriptions

    async def optimize_seo(
        self,
        name: str,
        category: Optional[str] = None,
        description: Optional[str] = None,
        brand: Optional[str] = None,
        keywords: Optional[list[str]] = None,
        extra: Optional[str] = None,
    ) -> SeoResult:
        details = _optional_lines(
            Name=name,
            Brand=brand,
            Category=category,
            Description=description,
            **{
                "Current Keywords": ", ".join(keywords) if keywords else None,
                "Additional Information": extra,
            },
        )
        prompt = (
            "Create an SEO package for this product.\n\n"
            f"PRODUCT DETAILS:\n{details}\n\n"
            "Respond with a JSON object with keys:\n"
            f'"metaTitle" (under {META_TITLE_MAX} characters), '
            f'"metaDescription" (under {META_DESCRIPTION_MAX} characters), '
            '"keywords" (5-7 phrases), "suggestions" (3-5 improvements).'
        )
        data = await self.llm.chat_completion(
            [self._system("an e-commerce SEO expert"), {"role": "user", "content": prompt}],
            temperature=0.5,
            max_tokens=800,
            json_mode=True,
        )

        title = str(data.get("metaTitle") or data.get("meta_title") or name)
        meta_description = str(
            data.get("metaDescription") or data.get("meta_description") or description or name
        )
        return SeoResult(
            meta_title=truncate(title, META_TITLE_MAX),
            meta_description=truncate(meta_description, META_DESCRIPTION_MAX),
            keywords=[str(k).strip() for k in data.get("keywords") or [] if str(k).strip()],
            suggestions=[str(s).strip() for s in data.get("suggestions") or [] if str(s).strip()],
        )

    async def analyze_seo(
        self,
        name: str,
        meta_title: Optional[str] = None,
        meta_description: Optional[str] = None,
        keywords: Optional[list[str]] = None,
        description: Optional[str] = None,
        price: Optional[Decimal] = None,
    ) -> SeoAnalysis:
        """
        Score the current SEO setup of a product from 0 to 100.

        Missing fields are checked locally; the model may only add elements
        outside `SEO_ELEMENTS`. Without a usable score from the model the
        baseline is 100 minus 25 per missing element.
        """
        missing = missing_seo_elements(meta_title, meta_description, keywords, description)
        seo_data = (
            f"Meta Title: {meta_title or 'Missing'}\n"
            f"Meta Description: {meta_description or 'Missing'}\n"
            f"Keywords: {', '.join(keywords) if keywords else 'Missing'}\n"
            f"Product Name: {name}\n"
            f"Description: {description or 'Missing'}\n"
            f"Price: {settings.store_currency} {price if price is not None else 0}"
        )
        prompt = (
            "Analyze the current SEO setup of this product and recommend improvements.\n\n"
            f"{seo_data}\n\n"
            'Respond with a JSON object with keys: "currentScore" (0-100), '
            '"recommendations", "missingElements" and "competitorKeywords" (arrays of strings).'
        )
        data = await self.llm.chat_completion(
            [self._system("an SEO analyst"), {"role": "user", "content": prompt}],
            temperature=0.3,
            max_tokens=800,
            json_mode=True,
        )

        raw_score = data.get("currentScore", data.get("score"))
        try:
            score = int(round(float(raw_score)))
        except (TypeError, ValueError):
            score = 100 - 25 * len(missing)
        for element in _strings(data.get("missingElements") or data.get("missing_elements")):
            if element not in missing and element not in SEO_ELEMENTS:
                missing.append(element)

        analysis = SeoAnalysis(
            score=min(100, max(0, score)),
            recommendations=_strings(data.get("recommendations")),
            missing_elements=missing,
            competitor_keywords=_strings(data.get("competitorKeywords") or data.get("competitor_keywords")),
        )
        logger.info("SEO analyzed", product=name, score=analysis.score, missing=len(missing))
        return analysis

    async def enhance_product(
        self,
        name: str,
        description: str,
        category: Optional[str] = None,
        brand: Optional[str] = None,
    ) -> EnhancedProduct:
        details = _optional_lines(
            **{"Current Title": name, "Current Description": description},
            Category=category,
            Brand=brand,
        )
        prompt = (
            "Improve the product title and description for marketing appeal while keeping "
            "every technical specification accurate. List specifications as '-' bullet "
            "points after the main text.\n\n"
            f"PRODUCT DETAILS:\n{details}\n\n"
            f'Respond with a JSON object: {{"title": "under {ENHANCED_TITLE_MAX} characters", '
            '"description": "..."}'
        )
        result = await self.llm.chat_completion(
            [self._system("an e-commerce marketing expert"), {"role": "user", "content": prompt}],
            temperature=0.6,
            max_tokens=1500,
        )
        try:
            data = extract_json(result["content"])
        except ValueError as e:
            logger.warning("Unreadable enhancement response, keeping input", error=str(e))
            return EnhancedProduct(title=name, description=description)

        title = str(data.get("title") or name)
        return EnhancedProduct(
            title=truncate(title, ENHANCED_TITLE_MAX),
            description=str(data.get("description") or description).strip(),
        )

    async def generate_tags(self, name: str, description: Optional[str] = None) -> list[str]:
        prompt = (
            "Generate 5-7 relevant product tags based on this product. Focus on features, "
            "use cases, materials, style and categories. Return only the tags as a "
            "comma-separated list, each tag 1-3 words.\n\n"
            f"Product Name: {name}\nProduct Description: {description or ''}"
        )
        result = await self.llm.chat_completion(
            [self._system("an e-commerce merchandiser"), {"role": "user", "content": prompt}],
            temperature=0.4,
            max_tokens=200,
        )
        return parse_tags(result["content"])

    async def suggest_price(
        self,
        cost: Decimal | float | str,
        name: str,
        category: Optional[str] = None,
        category_id: Optional[UUID] = None,
    ) -> PriceSuggestion:
        """
        Ask the model for a retail price.

        The suggestion never goes below cost: a lower answer is replaced by
        the resolved markup price, or by cost itself when no markup exists.
        """
        cost = quantize(cost)
        if cost <= 0:
            raise InvalidInputError("Cost price must be greater than zero")

        markup: Optional[int] = None
        markup_source = "none"
        if self.pricing is not None:
            resolution = await self.pricing.resolve_markup(category_id)
            markup, markup_source = resolution.markup_percentage, resolution.source

        prompt = (
            f"Suggest a competitive retail price in {settings.store_currency} for:\n"
            f"Product: {name}\nCategory: {category or 'Unknown'}\n"
            f"Cost Price: {cost} {settings.store_currency}\n\n"
            "Standard retail markups range from 40-100% depending on category. "
            'Respond with a JSON object: {"suggestedPrice": <number>}'
        )
        result = await self.llm.chat_completion(
            [self._system("a retail pricing expert"), {"role": "user", "content": prompt}],
            temperature=0.3,
            max_tokens=100,
        )
        raw: Any
        try:
            raw = extract_json(result["content"]).get("suggestedPrice")
        except ValueError:
            # Bare number or prose answer
            raw = result["content"]

        suggested = parse_amount(raw) if raw is not None else None

        if suggested is not None and suggested >= cost:
            return PriceSuggestion(
                suggested_price=suggested,
                markup_percentage=markup_from_prices(cost, suggested),
                source="ai_suggestion",
            )

        logger.info(
            "AI price below cost or missing, using markup",
            cost=str(cost),
            ai_price=str(suggested) if suggested is not None else None,
            markup_source=markup_source,
        )
        if markup is not None:
            return PriceSuggestion(
                suggested_price=price_from_cost(cost, markup),
                markup_percentage=to_decimal(markup),
                source=markup_source,
            )
        return PriceSuggestion(
            suggested_price=cost,
            markup_percentage=Decimal("0"),
            source="cost_price_minimum",
        )

    async def analyze_image(self, data: bytes, content_type: str) -> ImageAnalysis:
        """
        Suggest product details from a photo.

        The photo goes to a vision model as a base64 data URL. A retail price
        below the suggested cost is dropped.
        """
        encoded = base64.b64encode(data).decode("ascii")
        prompt = (
            f"Analyze this product photo for an online store in {settings.store_market} and "
            "respond with a JSON object with keys:\n"
            '"name" (max 10 words), "description" (max 100 words), '
            '"category" (one likely category), "brand" (only if visible, otherwise empty), '
            '"tags" (5-7 tags of 1-3 words), '
            f'"costPrice" (estimated wholesale price in {settings.store_currency}), '
            f'"price" (suggested retail price in {settings.store_currency}).'
        )
        result = await self.llm.chat_completion(
            [
                self._system("a product cataloguing expert"),
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": f"data:{content_type};base64,{encoded}"}},
                    ],
                },
            ],
            temperature=0.4,
            max_tokens=1000,
            json_mode=True,
            vision=True,
        )

        cost = parse_amount(result["costPrice"]) if result.get("costPrice") is not None else None
        price = parse_amount(result["price"]) if result.get("price") is not None else None
        if cost is not None and price is not None and price < cost:
            logger.info("AI retail price below cost, dropping it", cost=str(cost), price=str(price))
            price = None

        tags = result.get("tags")
        analysis = ImageAnalysis(
            name=truncate(str(result.get("name") or ""), IMAGE_NAME_MAX),
            description=str(result.get("description") or "").strip(),
            category=str(result.get("category") or "").strip(),
            brand=str(result.get("brand") or "").strip(),
            tags=parse_tags(", ".join(map(str, tags))) if isinstance(tags, list) else parse_tags(str(tags or "")),
            cost_price=cost,
            price=price,
        )
        logger.info("Product image analyzed", name=analysis.name, bytes=len(data))
        return analysis

    async def apply_to_draft(
        self,
        draft: ProductDraft,
        kind: str,
        *,
        tone: str = "professional",
        length: str = "medium",
        style: str = "informative",
    ) -> dict[str, Any]:
        """
        Generate content of the given kind for a draft and store it in
        `ai_suggestions`. Returns the stored suggestion.
        """
        if not draft.name:
            raise InvalidInputError("Draft needs a name before generating content")

        suggestion: dict[str, Any]
        if kind == "description":
            descriptions = await self.generate_descriptions(
                draft.name,
                brand=draft.brand,
                existing=draft.description,
                tone=tone,
                length=length,
                style=style,
            )
            suggestion = {"descriptions": descriptions}
            draft.has_ai_description = True
        elif kind == "seo":
            seo = await self.optimize_seo(
                draft.name,
                description=draft.description,
                brand=draft.brand,
                keywords=list(draft.tags or []),
            )
            suggestion = asdict(seo)
            draft.has_ai_seo = True
        elif kind == "seo_analysis":
            analysis = await self.analyze_seo(
                draft.name,
                meta_title=draft.meta_title,
                meta_description=draft.meta_description,
                keywords=[k.strip() for k in (draft.meta_keywords or "").split(",") if k.strip()],
                description=draft.description,
                price=draft.regular_price,
            )
            suggestion = asdict(analysis)
        elif kind == "tags":
            suggestion = {"tags": await self.generate_tags(draft.name, draft.description)}
        elif kind == "price":
            if draft.cost_price is None:
                raise InvalidInputError("Draft needs a cost price before suggesting a price")
            price = await self.suggest_price(draft.cost_price, draft.name, category_id=draft.category_id)
            suggestion = {
                "suggested_price": str(price.suggested_price),
                "markup_percentage": (
                    str(price.markup_percentage) if price.markup_percentage is not None else None
                ),
                "source": price.source,
            }
        else:
            raise InvalidInputError(f"Unknown AI content kind '{kind}'")

        suggestion["generated_at"] = utcnow().isoformat()
        # Reassign so the JSON column change is detected
        draft.ai_suggestions = {**(draft.ai_suggestions or {}), kind: suggestion}
        logger.info("AI content stored on draft", draft_id=str(draft.id), kind=kind)
        return suggestion
