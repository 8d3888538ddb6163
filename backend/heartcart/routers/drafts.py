"""
Product draft API routes: authoring wizard, images, review and publication.
"""
from typing import Annotated, Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, File, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError

from heartcart.core.config import settings
from heartcart.core.database import DbSession
from heartcart.models.draft import DraftStatus, ProductDraft, WizardStep
from heartcart.routers.deps import AdminUser, CurrentUser, Store
from heartcart.schemas.common import Page
from heartcart.schemas.draft import (
    STEP_SCHEMAS,
    DraftCreate,
    DraftFromProductResponse,
    DraftResponse,
    DraftSummary,
    DraftUpdate,
    ImageCleanupResponse,
    ImageReorderRequest,
    PublishCheckResponse,
    PublishResponse,
    RemoteImageRequest,
    StatusChangeRequest,
    TempImagesRequest,
    ValidationResponse,
)
from heartcart.services.drafts import DraftService, ImageUpload
from heartcart.services.object_store import fetch_remote_image, read_upload
from heartcart.services.publication import PublicationEngine

router = APIRouter(prefix="/drafts", tags=["drafts"])

_columns = ProductDraft.__table__.c


def _draft_data(payload: BaseModel) -> dict[str, Any]:
    """Fields the client sent; nulls only where the column accepts them."""
    data = payload.model_dump(exclude_unset=True)
    return {k: v for k, v in data.items() if v is not None or _columns[k].nullable}


@router.get("", response_model=Page[DraftSummary])
async def list_drafts(
    session: DbSession,
    store: Store,
    user: CurrentUser,
    draft_status: Annotated[Optional[DraftStatus], Query(alias="status")] = None,
    catalog_id: Annotated[Optional[UUID], Query(alias="catalogId")] = None,
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize", description="Items per page"),
) -> Page[DraftSummary]:
    """Own drafts, or every draft for administrators."""
    items, total = await DraftService(session, store).list_drafts(
        user, status=draft_status, catalog_id=catalog_id, page=page, page_size=page_size
    )
    return Page[DraftSummary].build(
        [DraftSummary.model_validate(d) for d in items], total, page, page_size
    )


@router.post("", response_model=DraftResponse, status_code=status.HTTP_201_CREATED)
async def create_draft(
    payload: DraftCreate,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> DraftResponse:
    draft = await DraftService(session, store).create(_draft_data(payload), user)
    return DraftResponse.model_validate(draft)


@router.post("/cleanup-images", response_model=ImageCleanupResponse)
async def cleanup_all_draft_images(session: DbSession, store: Store, _: AdminUser) -> ImageCleanupResponse:
    """Delete draft images no draft references any more."""
    cleanup = await DraftService(session, store).cleanup_all_orphaned_images()
    return ImageCleanupResponse.model_validate(cleanup)


@router.post("/from-product/{product_id}", response_model=DraftFromProductResponse)
async def create_draft_from_product(
    product_id: UUID,
    session: DbSession,
    store: Store,
    user: AdminUser,
) -> DraftFromProductResponse:
    """Open a draft for editing a published product, reusing an open one."""
    draft, created = await DraftService(session, store).create_from_product(product_id, user)
    return DraftFromProductResponse(draft=DraftResponse.model_validate(draft), created=created)


@router.get("/{draft_id}", response_model=DraftResponse)
async def get_draft(draft_id: UUID, session: DbSession, store: Store, user: CurrentUser) -> DraftResponse:
    draft = await DraftService(session, store).get(draft_id, user)
    return DraftResponse.model_validate(draft)


@router.patch("/{draft_id}", response_model=DraftResponse)
async def update_draft(
    draft_id: UUID,
    payload: DraftUpdate,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> DraftResponse:
    service = DraftService(session, store)
    draft = await service.get(draft_id, user, for_update=True)
    draft = await service.update(draft, _draft_data(payload))
    return DraftResponse.model_validate(draft)


@router.put("/{draft_id}/steps/{step}", response_model=DraftResponse)
async def update_draft_step(
    draft_id: UUID,
    step: WizardStep,
    session: DbSession,
    store: Store,
    user: CurrentUser,
    body: Annotated[Optional[dict[str, Any]], Body()] = None,
) -> DraftResponse:
    """Save one wizard step; only that step's fields are accepted."""
    schema = STEP_SCHEMAS[step.value]
    try:
        payload = schema.model_validate(body or {})
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False)) from e
    allowed = set(schema.model_fields) | {f.alias for f in schema.model_fields.values() if f.alias}
    extra = set(body or {}) - allowed
    if extra:
        raise RequestValidationError(
            [
                {"type": "extra_forbidden", "loc": ("body", key), "msg": f"Not part of step '{step.value}'"}
                for key in sorted(extra)
            ]
        )

    service = DraftService(session, store)
    draft = await service.get(draft_id, user, for_update=True)
    draft = await service.update_step(draft, step, _draft_data(payload))
    return DraftResponse.model_validate(draft)


@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_draft(draft_id: UUID, session: DbSession, store: Store, user: CurrentUser) -> None:
    service = DraftService(session, store)
    draft = await service.get(draft_id, user)
    await service.delete(draft)


# ----------------------------------------------------------------------
# Images
# ----------------------------------------------------------------------


@router.post("/{draft_id}/images", response_model=DraftResponse)
async def upload_draft_images(
    draft_id: UUID,
    session: DbSession,
    store: Store,
    user: CurrentUser,
    files: list[UploadFile] = File(...),
) -> DraftResponse:
    """Upload up to ten images to a draft."""
    service = DraftService(session, store)
    draft = await service.get(draft_id, user, for_update=True)
    uploads = [
        ImageUpload(
            filename=file.filename or "image",
            content_type=file.content_type,
            data=await read_upload(file, settings.max_upload_bytes),
        )
        for file in files
    ]
    draft = await service.add_images(draft, uploads)
    return DraftResponse.model_validate(draft)


@router.post("/{draft_id}/images/remote", response_model=DraftResponse)
async def import_remote_image(
    draft_id: UUID,
    payload: RemoteImageRequest,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> DraftResponse:
    """Fetch an image from a URL and attach it to the draft."""
    service = DraftService(session, store)
    draft = await service.get(draft_id, user, for_update=True)
    data, content_type, filename = await fetch_remote_image(str(payload.url))
    draft = await service.add_images(draft, [ImageUpload(filename, content_type, data)])
    return DraftResponse.model_validate(draft)


@router.post("/{draft_id}/images/attach", response_model=DraftResponse)
async def attach_uploaded_images(
    draft_id: UUID,
    payload: TempImagesRequest,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> DraftResponse:
    """Attach files previously uploaded through /api/files/upload."""
    service = DraftService(session, store)
    draft = await service.get(draft_id, user, for_update=True)
    draft = await service.attach_temp_images(draft, payload.keys)
    return DraftResponse.model_validate(draft)


@router.post("/{draft_id}/images/cleanup", response_model=ImageCleanupResponse)
async def cleanup_draft_images(
    draft_id: UUID,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> ImageCleanupResponse:
    service = DraftService(session, store)
    draft = await service.get(draft_id, user)
    cleanup = await service.cleanup_orphaned_images(draft)
    return ImageCleanupResponse.model_validate(cleanup)


@router.delete("/{draft_id}/images/{index}", response_model=DraftResponse)
async def delete_draft_image(
    draft_id: UUID,
    index: int,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> DraftResponse:
    service = DraftService(session, store)
    draft = await service.get(draft_id, user, for_update=True)
    draft = await service.remove_image(draft, index)
    return DraftResponse.model_validate(draft)


@router.put("/{draft_id}/images/order", response_model=DraftResponse)
async def reorder_draft_images(
    draft_id: UUID,
    payload: ImageReorderRequest,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> DraftResponse:
    service = DraftService(session, store)
    draft = await service.get(draft_id, user, for_update=True)
    draft = await service.reorder_images(draft, payload.order)
    return DraftResponse.model_validate(draft)


# ----------------------------------------------------------------------
# Validation, review and publication
# ----------------------------------------------------------------------


@router.post("/{draft_id}/validate", response_model=ValidationResponse)
async def validate(
    draft_id: UUID,
    session: DbSession,
    store: Store,
    user: CurrentUser,
    step: Optional[WizardStep] = None,
) -> ValidationResponse:
    """Validate the whole draft or a single wizard step."""
    service = DraftService(session, store)
    draft = await service.get(draft_id, user)
    result = await service.validate(draft, step)
    return ValidationResponse.model_validate(result)


@router.get("/{draft_id}/publish-check", response_model=PublishCheckResponse)
async def publish_check(
    draft_id: UUID,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> PublishCheckResponse:
    """Whether publishing now would pass; a missing price is derived as publish does."""
    service = DraftService(session, store)
    draft = await service.get(draft_id, user)
    result = await service.publish_readiness(draft)
    return PublishCheckResponse(
        is_valid=result.is_valid,
        errors=result.errors,
        completed_steps=result.completed_steps,
        can_publish=result.is_valid and draft.draft_status != DraftStatus.PUBLISHED.value,
    )


@router.post("/{draft_id}/status", response_model=DraftResponse)
async def change_status(
    draft_id: UUID,
    payload: StatusChangeRequest,
    session: DbSession,
    store: Store,
    user: CurrentUser,
) -> DraftResponse:
    service = DraftService(session, store)
    draft = await service.get(draft_id, user, for_update=True)
    draft = await service.change_status(draft, payload.status, user, payload.note)
    return DraftResponse.model_validate(draft)


@router.post("/{draft_id}/publish", response_model=PublishResponse)
async def publish_draft(
    draft_id: UUID,
    session: DbSession,
    store: Store,
    user: AdminUser,
) -> PublishResponse:
    """Publish a validated draft as a live product in one transaction."""
    result = await PublicationEngine(session, store).publish(draft_id, user)
    return PublishResponse.model_validate(result)
