"""
Draft validation rules, per wizard step and for the whole draft.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from functools import partial
from typing import Callable, Optional

from heartcart.models.draft import ProductDraft, WizardStep

Errors = dict[str, list[str]]


@dataclass
class ValidationResult:
    is_valid: bool
    errors: Errors = field(default_factory=dict)
    completed_steps: list[str] = field(default_factory=list)


def _add(errors: Errors, name: str, message: str) -> None:
    errors.setdefault(name, []).append(message)


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _basic_info(draft: ProductDraft, errors: Errors) -> None:
    if _blank(draft.name):
        _add(errors, "name", "Product name is required")
    if _blank(draft.slug):
        _add(errors, "slug", "Product slug is required")
    if draft.category_id is None:
        _add(errors, "categoryId", "Category is required")
    if draft.supplier_id is None:
        _add(errors, "supplierId", "Supplier is required")


def _pricing(draft: ProductDraft, errors: Errors, regular_price: Optional[Decimal] = None) -> None:
    regular = draft.regular_price if regular_price is None else regular_price
    if regular is None or Decimal(regular) <= 0:
        _add(errors, "regularPrice", "Regular price must be greater than zero")
    if draft.cost_price is not None and Decimal(draft.cost_price) < 0:
        _add(errors, "costPrice", "Cost price cannot be negative")
    if draft.sale_price is not None:
        sale = Decimal(draft.sale_price)
        if sale <= 0:
            _add(errors, "salePrice", "Sale price must be greater than zero")
        elif regular is not None and sale >= Decimal(regular):
            _add(errors, "salePrice", "Sale price must be less than regular price")
    if (
        draft.minimum_price is not None
        and regular is not None
        and Decimal(regular) < Decimal(draft.minimum_price)
    ):
        _add(errors, "regularPrice", "Regular price cannot be below the minimum price")


def _images(draft: ProductDraft, errors: Errors) -> None:
    urls = draft.image_urls or []
    if not urls:
        _add(errors, "imageUrls", "At least one product image is required")
    elif not 0 <= (draft.main_image_index or 0) < len(urls):
        _add(errors, "mainImageIndex", "Main image index is out of range")


def _attributes(draft: ProductDraft, errors: Errors) -> None:
    for attribute_id, values in (draft.selected_attributes or {}).items():
        if not isinstance(values, list):
            _add(errors, "selectedAttributes", f"Values for {attribute_id} must be a list")


def _seo(draft: ProductDraft, errors: Errors) -> None:
    if draft.meta_title and len(draft.meta_title) > 60:
        _add(errors, "metaTitle", "Meta title must be 60 characters or fewer")
    if draft.meta_description and len(draft.meta_description) > 160:
        _add(errors, "metaDescription", "Meta description must be 160 characters or fewer")


def _sales_promotions(draft: ProductDraft, errors: Errors) -> None:
    if (
        draft.special_sale_start
        and draft.special_sale_end
        and draft.special_sale_end <= draft.special_sale_start
    ):
        _add(errors, "specialSaleEnd", "Sale end must be after sale start")
    if draft.is_flash_deal and not draft.flash_deal_end:
        _add(errors, "flashDealEnd", "Flash deals need an end date")


STEP_RULES: dict[WizardStep, Callable[[ProductDraft, Errors], None]] = {
    WizardStep.BASIC_INFO: _basic_info,
    WizardStep.PRICING: _pricing,
    WizardStep.IMAGES: _images,
    WizardStep.ATTRIBUTES: _attributes,
    WizardStep.SEO: _seo,
    WizardStep.SALES_PROMOTIONS: _sales_promotions,
}


def validate_draft(
    draft: ProductDraft,
    step: Optional[WizardStep] = None,
    *,
    regular_price: Optional[Decimal] = None,
) -> ValidationResult:
    """
    Validate one wizard step, or every rule when `step` is None or `review`.

    `regular_price` stands in for a missing stored price, e.g. one derived
    from cost. `completed_steps` echoes the steps recorded on the draft.
    """
    rules = dict(STEP_RULES)
    if regular_price is not None:
        rules[WizardStep.PRICING] = partial(_pricing, regular_price=regular_price)

    errors: Errors = {}
    if step is None or step == WizardStep.REVIEW:
        for rule in rules.values():
            rule(draft, errors)
    else:
        rules[step](draft, errors)

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        completed_steps=list(draft.completed_steps or []),
    )
