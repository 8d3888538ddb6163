"""
Draft service - authoring workflow for products.

Owns everything that happens to a draft before publication: field and
wizard-step edits, images, validation and status transitions.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import PurePosixPath
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.config import settings
from heartcart.core.database import utcnow
from heartcart.core.exceptions import (
    ConflictError,
    DraftValidationError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
    StorageError,
)
from heartcart.core.logging import get_logger
from heartcart.models.draft import DraftStatus, ProductDraft, WizardStep
from heartcart.models.user import User
from heartcart.repositories.attribute import ProductAttributeRepository
from heartcart.repositories.draft import DraftRepository
from heartcart.repositories.product import ProductRepository
from heartcart.services.categories import slugify
from heartcart.services.draft_validation import ValidationResult, validate_draft
from heartcart.services.object_store import (
    TEMP_PREFIX,
    ObjectStore,
    draft_prefix,
    ensure_image,
    normalize_key,
    unique_filename,
)
from heartcart.services.pricing import PricingService, price_from_cost

logger = get_logger(__name__)

STEP_FIELDS: dict[WizardStep, frozenset[str]] = {
    WizardStep.BASIC_INFO: frozenset({
        "name", "slug", "sku", "description", "brand", "tags", "category_id",
        "catalog_id", "supplier_id", "supplier_url", "is_active", "is_featured",
        "stock_level", "minimum_order", "low_stock_threshold", "backorder_enabled",
        "weight", "dimensions", "free_shipping",
    }),
    WizardStep.PRICING: frozenset({
        "cost_price", "regular_price", "sale_price", "on_sale", "markup_percentage",
        "minimum_price", "compare_at_price",
    }),
    WizardStep.IMAGES: frozenset({"main_image_index"}),
    WizardStep.ATTRIBUTES: frozenset({"selected_attributes"}),
    WizardStep.SEO: frozenset({"meta_title", "meta_description", "meta_keywords", "canonical_url"}),
    WizardStep.SALES_PROMOTIONS: frozenset({
        "discount_label", "special_sale_text", "special_sale_start", "special_sale_end",
        "is_flash_deal", "flash_deal_end",
    }),
    WizardStep.REVIEW: frozenset(),
}

EDITABLE_FIELDS: frozenset[str] = frozenset().union(*STEP_FIELDS.values())

TRANSITIONS: dict[DraftStatus, frozenset[DraftStatus]] = {
    DraftStatus.DRAFT: frozenset({DraftStatus.IN_REVIEW, DraftStatus.READY_TO_PUBLISH}),
    DraftStatus.IN_REVIEW: frozenset({
        DraftStatus.READY_TO_PUBLISH, DraftStatus.REJECTED, DraftStatus.DRAFT,
    }),
    DraftStatus.REJECTED: frozenset({DraftStatus.DRAFT}),
    DraftStatus.READY_TO_PUBLISH: frozenset({DraftStatus.DRAFT}),
    DraftStatus.PUBLISHED: frozenset(),
}

# Review decisions only an admin can make
ADMIN_TRANSITIONS = frozenset({
    (DraftStatus.IN_REVIEW, DraftStatus.READY_TO_PUBLISH),
    (DraftStatus.IN_REVIEW, DraftStatus.REJECTED),
})

# Fields copied verbatim from a product into an edit draft
PRODUCT_COPY_FIELDS = (
    "name", "slug", "sku", "description", "brand", "category_id", "catalog_id",
    "supplier_id", "is_active", "is_featured", "cost_price", "sale_price",
    "markup_percentage", "minimum_price", "compare_at_price", "minimum_order",
    "weight", "dimensions", "free_shipping", "discount_label", "special_sale_text",
    "special_sale_start", "special_sale_end", "is_flash_deal", "flash_deal_end",
    "meta_title", "meta_description", "meta_keywords", "canonical_url",
)


@dataclass
class ImageUpload:
    filename: str
    content_type: Optional[str]
    data: bytes


@dataclass
class ImageCleanup:
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    drafts_cleaned: int = 0


def history_entry(
    from_status: Optional[str],
    to_status: str,
    actor: Optional[User],
    note: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "from": from_status,
        "to": to_status,
        "at": utcnow().isoformat(),
        "by": str(actor.id) if actor else None,
        "note": note,
    }


class DraftService:
    """Draft workflow operations."""

    def __init__(self, session: AsyncSession, store: ObjectStore) -> None:
        self.session = session
        self.store = store
        self.repo = DraftRepository(session)
        self.products = ProductRepository(session)
        self.product_attributes = ProductAttributeRepository(session)
        self.pricing = PricingService(session)

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @staticmethod
    def ensure_access(draft: ProductDraft, user: User) -> None:
        if not user.is_admin and draft.created_by != user.id:
            raise PermissionDeniedError("You do not have access to this draft")

    async def get(self, draft_id: UUID, user: User, *, for_update: bool = False) -> ProductDraft:
        if for_update:
            draft = await self.repo.get_for_update(draft_id)
        else:
            draft = await self.repo.get_by_id(draft_id)
        if not draft:
            raise NotFoundError("Draft not found")
        self.ensure_access(draft, user)
        return draft

    async def list_drafts(
        self,
        user: User,
        *,
        status: Optional[DraftStatus] = None,
        catalog_id: Optional[UUID] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ProductDraft], int]:
        return await self.repo.list_drafts(
            created_by=None if user.is_admin else user.id,
            status=status.value if status else None,
            catalog_id=catalog_id,
            page=page,
            page_size=page_size,
        )

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------

    async def create(self, data: dict[str, Any], user: User) -> ProductDraft:
        unknown = set(data) - EDITABLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Unknown draft fields: {', '.join(sorted(unknown))}")
        if data.get("name") and not data.get("slug"):
            data["slug"] = slugify(data["name"])
        draft = await self.repo.create(
            {
                **data,
                "created_by": user.id,
                "draft_status": DraftStatus.DRAFT.value,
                "change_history": [history_entry(None, DraftStatus.DRAFT.value, user, "Draft created")],
            }
        )
        if await self.fill_regular_price(draft):
            await self.session.flush()
        logger.info("Draft created", draft_id=str(draft.id), user_id=str(user.id))
        return draft

    async def create_from_product(self, product_id: UUID, user: User) -> tuple[ProductDraft, bool]:
        """
        Open a draft for editing a published product.

        Returns (draft, created); an existing unpublished draft for the same
        product is reused.
        """
        existing = await self.repo.find_open_for_product(product_id)
        if existing:
            self.ensure_access(existing, user)
            return existing, False

        product = await self.products.get_with_images(product_id)
        if not product:
            raise NotFoundError("Product not found")

        data: dict[str, Any] = {field: getattr(product, field) for field in PRODUCT_COPY_FIELDS}
        images = list(product.images)
        if images:
            main_index = next((i for i, img in enumerate(images) if img.is_main), 0)
            image_urls = [img.url for img in images]
            image_keys = [img.object_key for img in images]
        else:
            main_index = 0
            image_urls = [u for u in [product.image_url, *(product.additional_images or [])] if u]
            image_keys = [self.store.key_from_url(u) or "" for u in image_urls]

        assignments = await self.product_attributes.list_for_product(product_id)
        selected = {str(a.attribute_id): list(a.selected_options or []) for a in assignments}

        draft = await self.repo.create(
            {
                **data,
                "tags": list(product.tags or []),
                "regular_price": product.price,
                "stock_level": product.stock,
                "image_urls": image_urls,
                "image_object_keys": image_keys,
                "main_image_index": main_index,
                "selected_attributes": selected,
                "original_product_id": product.id,
                "created_by": user.id,
                "draft_status": DraftStatus.DRAFT.value,
                "change_history": [
                    history_entry(None, DraftStatus.DRAFT.value, user, f"Draft created from product {product.id}")
                ],
            }
        )
        logger.info("Draft created from product", draft_id=str(draft.id), product_id=str(product.id))
        return draft, True

    def _ensure_editable(self, draft: ProductDraft) -> None:
        if draft.draft_status == DraftStatus.PUBLISHED.value:
            raise ConflictError("Published drafts cannot be edited; create a new draft from the product")

    async def derived_regular_price(self, draft: ProductDraft) -> tuple[Optional[Decimal], Optional[int]]:
        """
        Regular price and markup for a draft that has a cost but no price.

        The draft's own markup wins; otherwise the markup resolved for its
        category (parents, then the global default) applies. Returns
        (None, None) when the draft is priced already, has no cost or no
        markup applies.
        """
        if draft.regular_price is not None or draft.cost_price is None:
            return None, None
        if draft.markup_percentage is not None:
            return price_from_cost(draft.cost_price, draft.markup_percentage), draft.markup_percentage
        price, resolution = await self.pricing.price_for_category(draft.cost_price, draft.category_id)
        if price is None:
            return None, None
        return price, resolution.markup_percentage

    async def fill_regular_price(self, draft: ProductDraft) -> bool:
        """Store the derived regular price on the draft; False when none applies."""
        price, markup = await self.derived_regular_price(draft)
        if price is None:
            return False
        draft.regular_price = price
        draft.markup_percentage = markup
        return True

    def _touch(self, draft: ProductDraft) -> None:
        draft.version = (draft.version or 0) + 1
        draft.last_modified = utcnow()

    async def update(self, draft: ProductDraft, data: dict[str, Any]) -> ProductDraft:
        """Apply a partial update; bumps `version`."""
        self._ensure_editable(draft)
        unknown = set(data) - EDITABLE_FIELDS
        if unknown:
            raise InvalidInputError(f"Unknown draft fields: {', '.join(sorted(unknown))}")
        if data.get("name") and "slug" not in data and not draft.slug:
            data["slug"] = slugify(data["name"])
        for field, value in data.items():
            setattr(draft, field, value)
        await self.fill_regular_price(draft)
        self._touch(draft)
        await self.session.flush()
        return draft

    async def update_step(
        self,
        draft: ProductDraft,
        step: WizardStep,
        data: dict[str, Any],
    ) -> ProductDraft:
        """Merge one wizard step's data and mark the step in `wizard_progress`."""
        self._ensure_editable(draft)
        allowed = STEP_FIELDS[step]
        unknown = set(data) - allowed
        if unknown:
            raise InvalidInputError(
                f"Fields not part of step '{step.value}': {', '.join(sorted(unknown))}"
            )
        if step == WizardStep.IMAGES and "main_image_index" in data:
            self._check_main_index(draft, data["main_image_index"])

        draft = await self.update(draft, data)
        draft.wizard_progress = {**(draft.wizard_progress or {}), step.value: True}
        await self.session.flush()
        return draft

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    @staticmethod
    def _check_main_index(draft: ProductDraft, index: int) -> None:
        if not 0 <= index < max(len(draft.image_urls or []), 1):
            raise InvalidInputError("Main image index is out of range")

    async def add_images(self, draft: ProductDraft, uploads: list[ImageUpload]) -> ProductDraft:
        """Store uploaded images under `drafts/<id>/` and append them."""
        self._ensure_editable(draft)
        if not uploads:
            raise InvalidInputError("No files uploaded")
        if len(uploads) > settings.max_images_per_upload:
            raise InvalidInputError(
                f"At most {settings.max_images_per_upload} images can be uploaded at once"
            )
        content_types = [ensure_image(u.content_type, u.filename) for u in uploads]

        urls = list(draft.image_urls or [])
        keys = list(draft.image_object_keys or [])
        stored_keys: list[str] = []
        try:
            for upload, content_type in zip(uploads, content_types):
                key = f"{draft_prefix(draft.id)}{unique_filename(upload.filename)}"
                stored = await self.store.put(key, upload.data, content_type)
                stored_keys.append(stored.key)
                urls.append(stored.url)
                keys.append(stored.key)
        except Exception:
            for key in stored_keys:
                await self.store.delete(key)
            raise

        draft.image_urls = urls
        draft.image_object_keys = keys
        self._touch(draft)
        await self.session.flush()
        logger.info("Draft images added", draft_id=str(draft.id), count=len(uploads))
        return draft

    async def remove_image(self, draft: ProductDraft, index: int) -> ProductDraft:
        """Remove the image at `index`; deletes the object when the draft owns it."""
        self._ensure_editable(draft)
        urls = list(draft.image_urls or [])
        keys = list(draft.image_object_keys or [])
        if not 0 <= index < len(urls):
            raise NotFoundError("Image index out of range")

        urls.pop(index)
        key = keys.pop(index) if index < len(keys) else ""
        if key and key.startswith(draft_prefix(draft.id)):
            await self.store.delete(key)

        main = draft.main_image_index or 0
        if index < main or main >= len(urls):
            main = max(main - 1, 0)

        draft.image_urls = urls
        draft.image_object_keys = keys
        draft.main_image_index = main
        self._touch(draft)
        await self.session.flush()
        return draft

    async def reorder_images(self, draft: ProductDraft, order: list[int]) -> ProductDraft:
        """Reorder images by a permutation of current indices; the main image follows."""
        self._ensure_editable(draft)
        urls = list(draft.image_urls or [])
        keys = list(draft.image_object_keys or [])
        if sorted(order) != list(range(len(urls))):
            raise InvalidInputError("Order must be a permutation of the current image indices")

        keys += [""] * (len(urls) - len(keys))
        draft.image_urls = [urls[i] for i in order]
        draft.image_object_keys = [keys[i] for i in order]
        if urls:
            draft.main_image_index = order.index(draft.main_image_index or 0)
        self._touch(draft)
        await self.session.flush()
        return draft

    async def attach_temp_images(self, draft: ProductDraft, keys: list[str]) -> ProductDraft:
        """
        Move files uploaded to `temp/` into `drafts/<id>/` and append them.

        Every key is checked before anything moves; if a move fails the
        objects already moved are put back under `temp/`.
        """
        self._ensure_editable(draft)
        if not keys:
            raise InvalidInputError("No object keys provided")
        if len(keys) > settings.max_images_per_upload:
            raise InvalidInputError(
                f"At most {settings.max_images_per_upload} images can be attached at once"
            )
        sources = [normalize_key(key) for key in keys]
        if len(set(sources)) != len(sources):
            raise InvalidInputError("Object keys must be unique")
        for key in sources:
            if not key.startswith(TEMP_PREFIX):
                raise InvalidInputError(f"Only uploads under {TEMP_PREFIX} can be attached: {key}")
            if not await self.store.exists(key):
                raise NotFoundError(f"Uploaded file {key} not found")
            ensure_image(await self.store.content_type(key), key)

        urls = list(draft.image_urls or [])
        object_keys = list(draft.image_object_keys or [])
        object_keys += [""] * (len(urls) - len(object_keys))
        moved: list[tuple[str, str]] = []
        try:
            for key in sources:
                stored = await self.store.move(key, f"{draft_prefix(draft.id)}{PurePosixPath(key).name}")
                moved.append((key, stored.key))
                urls.append(stored.url)
                object_keys.append(stored.key)
        except StorageError:
            for source, destination in reversed(moved):
                await self.store.move(destination, source)
            raise

        draft.image_urls = urls
        draft.image_object_keys = object_keys
        self._touch(draft)
        await self.session.flush()
        logger.info("Uploaded images attached", draft_id=str(draft.id), count=len(moved))
        return draft

    async def _delete_orphans(self, keys: list[str], cleanup: ImageCleanup) -> None:
        for key in keys:
            try:
                await self.store.delete(key)
                cleanup.deleted.append(key)
            except StorageError as e:
                logger.warning("Could not delete orphaned image", key=key, error=str(e))
                cleanup.failed.append(key)

    async def cleanup_orphaned_images(self, draft: ProductDraft) -> ImageCleanup:
        """Delete objects under `drafts/<id>/` that the draft no longer references."""
        tracked = {key for key in draft.image_object_keys or [] if key}
        stored = await self.store.list(draft_prefix(draft.id), recursive=True)
        cleanup = ImageCleanup()
        await self._delete_orphans([key for key in stored if key not in tracked], cleanup)
        cleanup.drafts_cleaned = int(bool(cleanup.deleted))
        logger.info(
            "Draft image cleanup finished",
            draft_id=str(draft.id),
            deleted=len(cleanup.deleted),
            failed=len(cleanup.failed),
        )
        return cleanup

    async def cleanup_all_orphaned_images(self) -> ImageCleanup:
        """
        Sweep every `drafts/` folder: untracked objects of live drafts and
        everything left behind by drafts that no longer exist.
        """
        tracked = await self.repo.image_keys_by_draft()
        orphans: dict[str, list[str]] = {}
        for key in await self.store.list("drafts/", recursive=True):
            draft_id = key.split("/")[1]
            if key not in tracked.get(draft_id, set()):
                orphans.setdefault(draft_id, []).append(key)

        cleanup = ImageCleanup()
        for keys in orphans.values():
            before = len(cleanup.deleted)
            await self._delete_orphans(keys, cleanup)
            if len(cleanup.deleted) > before:
                cleanup.drafts_cleaned += 1
        logger.info(
            "Orphaned draft images swept",
            deleted=len(cleanup.deleted),
            failed=len(cleanup.failed),
            drafts=cleanup.drafts_cleaned,
        )
        return cleanup

    # ------------------------------------------------------------------
    # Validation and status
    # ------------------------------------------------------------------

    async def publish_readiness(self, draft: ProductDraft) -> ValidationResult:
        """Full validation as publication will see it; the draft is not changed."""
        price, _ = await self.derived_regular_price(draft)
        return validate_draft(draft, regular_price=price)

    async def validate(self, draft: ProductDraft, step: Optional[WizardStep] = None) -> ValidationResult:
        result = validate_draft(draft, step)
        if result.is_valid and step is not None and step != WizardStep.REVIEW:
            completed = list(draft.completed_steps or [])
            if step.value not in completed:
                completed.append(step.value)
                draft.completed_steps = completed
                await self.session.flush()
            result.completed_steps = completed
        return result

    async def change_status(
        self,
        draft: ProductDraft,
        new_status: DraftStatus,
        user: User,
        note: Optional[str] = None,
    ) -> ProductDraft:
        current = DraftStatus(draft.draft_status)
        if new_status == DraftStatus.PUBLISHED:
            raise InvalidInputError("Drafts are published through the publish endpoint")
        if new_status not in TRANSITIONS[current]:
            raise ConflictError(f"Cannot change draft status from {current.value} to {new_status.value}")
        if (current, new_status) in ADMIN_TRANSITIONS and not user.is_admin:
            raise PermissionDeniedError("Only administrators can approve or reject drafts")

        if new_status == DraftStatus.READY_TO_PUBLISH:
            await self.fill_regular_price(draft)
            result = validate_draft(draft)
            if not result.is_valid:
                raise DraftValidationError("Draft is not ready to publish", errors=result.errors)

        if new_status == DraftStatus.REJECTED:
            draft.rejection_reason = note
        if current == DraftStatus.IN_REVIEW:
            draft.last_reviewer = user.id

        draft.draft_status = new_status.value
        draft.change_history = [
            *(draft.change_history or []),
            history_entry(current.value, new_status.value, user, note),
        ]
        draft.last_modified = utcnow()
        await self.session.flush()
        logger.info(
            "Draft status changed",
            draft_id=str(draft.id),
            from_status=current.value,
            to_status=new_status.value,
        )
        return draft

    async def delete(self, draft: ProductDraft) -> None:
        await self.repo.delete(draft)
        removed = await self.store.delete_prefix(draft_prefix(draft.id))
        logger.info("Draft deleted", draft_id=str(draft.id), objects_removed=removed)
