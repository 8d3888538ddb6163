"""
Object storage API routes.
"""
import hashlib

from fastapi import APIRouter, File, HTTPException, Query, Request, Response, UploadFile, status

from heartcart.core.config import settings
from heartcart.core.logging import get_logger
from heartcart.routers.deps import AdminUser, Store
from heartcart.schemas.files import FileListResponse, PurgeResponse, StoredFileResponse, UploadResponse
from heartcart.services.object_store import TEMP_PREFIX, normalize_key, read_upload, unique_filename

logger = get_logger(__name__)

router = APIRouter(prefix="/files", tags=["files"])

CACHE_CONTROL = "public, max-age=31536000, immutable"


@router.get("", response_model=FileListResponse)
async def list_files(
    store: Store,
    _: AdminUser,
    prefix: str = Query("", description="Key prefix, e.g. products/<id>/"),
    recursive: bool = False,
) -> FileListResponse:
    keys = await store.list(prefix, recursive=recursive)
    return FileListResponse(prefix=prefix, keys=keys)


@router.post("/upload", response_model=UploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_files(
    store: Store,
    _: AdminUser,
    files: list[UploadFile] = File(...),
) -> UploadResponse:
    """Store uploaded files under `temp/` with unique names."""
    if len(files) > settings.max_images_per_upload:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.max_images_per_upload} files can be uploaded at once",
        )
    stored_files: list[StoredFileResponse] = []
    for file in files:
        data = await read_upload(file, settings.max_upload_bytes)
        original = file.filename or "file"
        stored = await store.put(f"{TEMP_PREFIX}{unique_filename(original)}", data, file.content_type)
        stored_files.append(
            StoredFileResponse(
                key=stored.key,
                url=stored.url,
                size=stored.size,
                content_type=stored.content_type,
                original_name=original,
            )
        )
    logger.info("Files uploaded", count=len(stored_files))
    return UploadResponse(files=stored_files)


@router.post("/temp/purge", response_model=PurgeResponse)
async def purge_temp_files(
    store: Store,
    _: AdminUser,
    older_than_hours: int = Query(24, ge=0, alias="olderThanHours"),
) -> PurgeResponse:
    """Remove uploads that were never attached to a draft."""
    purged = await store.purge_older_than(TEMP_PREFIX, older_than_hours * 3600)
    return PurgeResponse(purged=purged)


@router.get("/{key:path}")
async def get_file(key: str, request: Request, store: Store) -> Response:
    """Serve a stored object with long-lived cache headers."""
    obj = await store.get(normalize_key(key))
    if obj is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    data, content_type = obj
    etag = f'"{hashlib.md5(data).hexdigest()}"'
    headers = {"Cache-Control": CACHE_CONTROL, "ETag": etag}
    if request.headers.get("if-none-match") == etag:
        return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers=headers)
    return Response(content=data, media_type=content_type, headers=headers)


@router.delete("/{key:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_file(key: str, store: Store, _: AdminUser) -> None:
    """Delete a stored object; deleting a missing object succeeds."""
    deleted = await store.delete(key)
    logger.info("File deleted", key=key, existed=deleted)
