"""
Publication engine - turns a validated draft into a live product.

The whole publication runs in one database transaction. Images are copied
from the draft's area of the object store into the product's area before
commit; if anything fails the transaction is rolled back and the copies
are removed again. The draft's own objects are only removed after a
successful commit, and failures there are logged rather than raised.
"""
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from heartcart.core.database import utcnow
from heartcart.core.exceptions import (
    ConflictError,
    DraftValidationError,
    HeartCartError,
    InvalidInputError,
    NotFoundError,
    PublicationError,
)
from heartcart.core.logging import get_logger
from heartcart.models.draft import DraftStatus, ProductDraft
from heartcart.models.product import Product
from heartcart.models.user import User
from heartcart.repositories.draft import DraftRepository
from heartcart.repositories.product import ProductRepository
from heartcart.services.attributes import AttributeService
from heartcart.services.draft_validation import validate_draft
from heartcart.services.drafts import DraftService, history_entry
from heartcart.services.object_store import ObjectStore, product_prefix

logger = get_logger(__name__)

# Draft columns that map one-to-one onto product columns
DIRECT_FIELDS = (
    "name", "slug", "sku", "description", "brand", "category_id", "catalog_id",
    "supplier_id", "cost_price", "sale_price", "minimum_price", "compare_at_price",
    "markup_percentage", "discount_label", "minimum_order", "weight", "dimensions",
    "free_shipping", "is_active", "is_featured", "is_flash_deal", "flash_deal_end",
    "special_sale_text", "special_sale_start", "special_sale_end",
    "meta_title", "meta_description", "meta_keywords", "canonical_url",
)


@dataclass
class PublicationResult:
    product_id: UUID
    created: bool
    images_migrated: int
    attributes_saved: int


@dataclass
class _ImagePlan:
    rows: list[dict[str, Any]]
    copied: list[str]
    sources: list[str]


def map_draft_to_product(draft: ProductDraft) -> dict[str, Any]:
    """Product column values for a draft (images excluded)."""
    data: dict[str, Any] = {field: getattr(draft, field) for field in DIRECT_FIELDS}
    data["name"] = (draft.name or "").strip()
    data["slug"] = (draft.slug or "").strip()
    data["sku"] = (draft.sku or "").strip() or None
    data["price"] = draft.regular_price
    data["stock"] = draft.stock_level or 0
    data["minimum_order"] = draft.minimum_order or 1
    data["tags"] = list(draft.tags or [])
    data["required_attribute_ids"] = list((draft.selected_attributes or {}).keys())
    return data


class PublicationEngine:
    """Publishes drafts atomically."""

    def __init__(self, session: AsyncSession, store: ObjectStore) -> None:
        self.session = session
        self.store = store
        self.drafts = DraftRepository(session)
        self.products = ProductRepository(session)
        self.authoring = DraftService(session, store)
        self.attributes = AttributeService(session)

    async def publish(self, draft_id: UUID, actor: User) -> PublicationResult:
        copied: list[str] = []
        try:
            result, sources, stale = await self._publish(draft_id, actor, copied)
            await self.session.commit()
        except Exception as e:
            await self.session.rollback()
            await self._discard(copied)
            if isinstance(e, HeartCartError):
                raise
            logger.error("Draft publication failed", draft_id=str(draft_id), error=str(e))
            raise PublicationError(f"Failed to publish draft: {e}") from e

        logger.info(
            "Draft published",
            draft_id=str(draft_id),
            product_id=str(result.product_id),
            created=result.created,
            images=result.images_migrated,
            attributes=result.attributes_saved,
        )
        await self._cleanup(draft_id, sources + stale)
        return result

    async def _publish(
        self,
        draft_id: UUID,
        actor: User,
        copied: list[str],
    ) -> tuple[PublicationResult, list[str], list[str]]:
        # 1. Lock and load
        draft = await self.drafts.get_for_update(draft_id)
        if not draft:
            raise NotFoundError("Draft not found")
        if draft.draft_status == DraftStatus.PUBLISHED.value:
            raise ConflictError("Draft is already published and has not changed since")

        # 2. Validate, deriving the regular price from cost when needed
        await self.authoring.fill_regular_price(draft)
        validation = validate_draft(draft)
        if not validation.is_valid:
            raise DraftValidationError("Draft failed validation", errors=validation.errors)

        # 3-4. Map and create or update the product
        data = map_draft_to_product(draft)
        product: Optional[Product] = None
        if draft.original_product_id:
            product = await self.products.get_with_images(draft.original_product_id)
        exclude_id = product.id if product else None

        if await self.products.slug_taken(data["slug"], exclude_id=exclude_id):
            raise ConflictError(f"Another product already uses the slug '{data['slug']}'")
        if data["sku"] and await self.products.sku_taken(data["sku"], exclude_id=exclude_id):
            raise ConflictError(f"Another product already uses the SKU '{data['sku']}'")

        created = product is None
        previous_keys: set[str] = set()
        if product is None:
            product = Product(**data)
            self.session.add(product)
            await self.session.flush()
        else:
            previous_keys = {img.object_key for img in product.images if img.object_key}
            for field, value in data.items():
                setattr(product, field, value)

        # 5. Images
        plan = await self._migrate_images(draft, product, copied)
        await self.products.replace_images(product, plan.rows)
        urls = [row["url"] for row in plan.rows]
        main = next((row["url"] for row in plan.rows if row["is_main"]), urls[0] if urls else None)
        product.image_url = main
        product.additional_images = [u for u in urls if u != main]

        # 6. Attributes
        items = [
            {"attribute_id": UUID(attribute_id), "selected_options": values, "sort_order": index}
            for index, (attribute_id, values) in enumerate((draft.selected_attributes or {}).items())
        ]
        try:
            saved = await self.attributes.set_product_attributes(product.id, items)
        except (InvalidInputError, NotFoundError) as e:
            raise DraftValidationError(
                "Draft attributes are invalid",
                errors={"selectedAttributes": [e.message]},
            ) from e

        # 7. Mark the draft
        previous_status = draft.draft_status
        draft.draft_status = DraftStatus.PUBLISHED.value
        draft.original_product_id = product.id
        draft.published_at = utcnow()
        draft.published_version = (draft.published_version or 0) + 1
        draft.change_history = [
            *(draft.change_history or []),
            history_entry(previous_status, DraftStatus.PUBLISHED.value, actor, f"Published as {product.id}"),
        ]
        await self.session.flush()

        kept = {row["object_key"] for row in plan.rows}
        stale = sorted(previous_keys - kept)
        return (
            PublicationResult(
                product_id=product.id,
                created=created,
                images_migrated=len(plan.copied),
                attributes_saved=len(saved),
            ),
            plan.sources,
            stale,
        )

    async def _migrate_images(
        self,
        draft: ProductDraft,
        product: Product,
        copied: list[str],
    ) -> _ImagePlan:
        """
        Copy draft objects into `products/<product_id>/` and build image rows.

        Objects already in the product's area are referenced as they are;
        images without an object key keep their external URL.
        """
        target_prefix = product_prefix(product.id)
        urls = list(draft.image_urls or [])
        keys = list(draft.image_object_keys or [])
        keys += [""] * (len(urls) - len(keys))
        main_index = draft.main_image_index or 0

        rows: list[dict[str, Any]] = []
        sources: list[str] = []
        for position, (url, key) in enumerate(zip(urls, keys)):
            object_key, image_url = key, url
            if key and not key.startswith(target_prefix):
                destination = f"{target_prefix}{PurePosixPath(key).name}"
                stored = await self.store.copy(key, destination)
                copied.append(stored.key)
                sources.append(key)
                object_key, image_url = stored.key, stored.url
            rows.append(
                {
                    "url": image_url,
                    "object_key": object_key,
                    "alt_text": draft.name,
                    "is_main": position == main_index,
                    "sort_order": position,
                }
            )
        return _ImagePlan(rows=rows, copied=list(copied), sources=sources)

    async def _discard(self, keys: list[str]) -> None:
        for key in keys:
            try:
                await self.store.delete(key)
            except Exception as e:
                logger.warning("Could not remove copied image", key=key, error=str(e))

    async def _cleanup(self, draft_id: UUID, keys: list[str]) -> None:
        """Best-effort removal of objects the product no longer needs."""
        for key in keys:
            if key.startswith("products/") or key.startswith(f"drafts/{draft_id}/"):
                try:
                    await self.store.delete(key)
                except Exception as e:
                    logger.warning("Could not remove draft image after publish", key=key, error=str(e))
