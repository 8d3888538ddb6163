"""
Object store - file storage for product and draft images.

Key layout:
    temp/<file>                  uploads not yet attached to anything
    drafts/<draft_id>/<file>     images of a draft
    products/<product_id>/<file> images of a published product

Objects are served publicly under `settings.storage_public_prefix`.
"""
from __future__ import annotations

import asyncio
import json
import mimetypes
import re
import shutil
import time
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import httpx
from fastapi import UploadFile

from heartcart.core.config import settings
from heartcart.core.exceptions import InvalidInputError, PayloadTooLargeError, StorageError
from heartcart.core.logging import get_logger
from heartcart.core.security import generate_token_suffix

logger = get_logger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
META_SUFFIX = ".meta.json"


def normalize_key(key: str) -> str:
    """
    Normalise an object key to `a/b/c` form.

    Rejects absolute keys and any `..` segment so a key can never
    resolve outside the storage root.
    """
    if not key or not key.strip():
        raise InvalidInputError("Object key is required")
    raw = key.strip().replace("\\", "/")
    if raw.startswith("/") or re.match(r"^[A-Za-z]:", raw):
        raise InvalidInputError("Object key must be relative")
    parts = [p for p in PurePosixPath(raw).parts if p not in ("", ".")]
    if not parts or any(p == ".." for p in parts):
        raise InvalidInputError("Invalid object key")
    if parts[-1].endswith(META_SUFFIX):
        raise InvalidInputError("Invalid object key")
    return "/".join(parts)


def sanitize_filename(name: str) -> str:
    base = PurePosixPath((name or "").replace("\\", "/")).name
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", base).strip("-.")
    return cleaned.lower()[:100] or "file"


def unique_filename(original_name: str) -> str:
    """`<timestamp>-<random>-<sanitised name>`."""
    return f"{int(time.time() * 1000)}-{generate_token_suffix()}-{sanitize_filename(original_name)}"


def guess_content_type(key: str) -> str:
    content_type, _ = mimetypes.guess_type(key)
    return content_type or DEFAULT_CONTENT_TYPE


TEMP_PREFIX = "temp/"


def draft_prefix(draft_id: object) -> str:
    return f"drafts/{draft_id}/"


def product_prefix(product_id: object) -> str:
    return f"products/{product_id}/"


@dataclass(frozen=True)
class StoredObject:
    key: str
    size: int
    content_type: str
    url: str


class LocalStorageBackend:
    """Stores objects as files below a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / normalize_key(key)).resolve()
        if path != self.root and self.root not in path.parents:
            raise InvalidInputError("Object key escapes the storage root")
        return path

    @staticmethod
    def _meta_path(path: Path) -> Path:
        return path.with_name(path.name + META_SUFFIX)

    def put(self, key: str, data: bytes, content_type: Optional[str]) -> int:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        if content_type:
            self._meta_path(path).write_text(json.dumps({"content_type": content_type}))
        return len(data)

    def get(self, key: str) -> Optional[tuple[bytes, str]]:
        path = self._path(key)
        if not path.is_file():
            return None
        return path.read_bytes(), self._content_type(key, path)

    def content_type(self, key: str) -> str:
        return self._content_type(key, self._path(key))

    def _content_type(self, key: str, path: Path) -> str:
        meta = self._meta_path(path)
        if meta.is_file():
            try:
                return json.loads(meta.read_text()).get("content_type") or guess_content_type(key)
            except (OSError, ValueError):
                logger.warning("Unreadable object metadata", key=key)
        return guess_content_type(key)

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def size(self, key: str) -> int:
        return self._path(key).stat().st_size

    def modified_at(self, key: str) -> float:
        return self._path(key).stat().st_mtime

    def delete(self, key: str) -> bool:
        path = self._path(key)
        self._meta_path(path).unlink(missing_ok=True)
        if not path.is_file():
            return False
        path.unlink()
        return True

    def list(self, prefix: str, recursive: bool) -> list[str]:
        prefix = prefix.strip().lstrip("/") if prefix else ""
        base = self._path(prefix) if prefix else self.root
        if not base.is_dir():
            return []
        pattern = "**/*" if recursive else "*"
        keys = [
            p.relative_to(self.root).as_posix()
            for p in base.glob(pattern)
            if p.is_file() and not p.name.endswith(META_SUFFIX)
        ]
        return sorted(keys)

    def copy(self, src: str, dst: str) -> None:
        src_path = self._path(src)
        if not src_path.is_file():
            raise FileNotFoundError(src)
        dst_path = self._path(dst)
        dst_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(src_path, dst_path)
        src_meta = self._meta_path(src_path)
        if src_meta.is_file():
            shutil.copyfile(src_meta, self._meta_path(dst_path))


class ObjectStore:
    """
    Async facade over a storage backend.

    Filesystem work runs in a worker thread so the event loop is never blocked.
    """

    def __init__(
        self,
        backend: LocalStorageBackend,
        public_prefix: str = "/api/files",
    ) -> None:
        self.backend = backend
        self.public_prefix = public_prefix.rstrip("/")

    def public_url(self, key: str) -> str:
        return f"{self.public_prefix}/{normalize_key(key)}"

    def key_from_url(self, url: str) -> Optional[str]:
        """Object key of a URL served by this store, or None for foreign URLs."""
        path = urlparse(url).path
        marker = self.public_prefix + "/"
        if not path.startswith(marker):
            return None
        try:
            return normalize_key(path[len(marker):])
        except InvalidInputError:
            return None

    async def put(self, key: str, data: bytes, content_type: Optional[str] = None) -> StoredObject:
        key = normalize_key(key)
        content_type = content_type or guess_content_type(key)
        try:
            size = await asyncio.to_thread(self.backend.put, key, data, content_type)
        except OSError as e:
            logger.error("Object write failed", key=key, error=str(e))
            raise StorageError(f"Failed to store {key}") from e
        logger.debug("Object stored", key=key, size=size)
        return StoredObject(key=key, size=size, content_type=content_type, url=self.public_url(key))

    async def get(self, key: str) -> Optional[tuple[bytes, str]]:
        return await asyncio.to_thread(self.backend.get, normalize_key(key))

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self.backend.exists, normalize_key(key))

    async def content_type(self, key: str) -> str:
        return await asyncio.to_thread(self.backend.content_type, normalize_key(key))

    async def delete(self, key: str) -> bool:
        """Delete an object; a missing object is not an error."""
        key = normalize_key(key)
        try:
            deleted = await asyncio.to_thread(self.backend.delete, key)
        except OSError as e:
            raise StorageError(f"Failed to delete {key}") from e
        if deleted:
            logger.debug("Object deleted", key=key)
        return deleted

    async def delete_prefix(self, prefix: str) -> int:
        keys = await self.list(prefix, recursive=True)
        for key in keys:
            await self.delete(key)
        return len(keys)

    async def list(self, prefix: str = "", recursive: bool = False) -> list[str]:
        return await asyncio.to_thread(self.backend.list, prefix, recursive)

    async def copy(self, src: str, dst: str) -> StoredObject:
        src, dst = normalize_key(src), normalize_key(dst)
        try:
            await asyncio.to_thread(self.backend.copy, src, dst)
            size = await asyncio.to_thread(self.backend.size, dst)
        except FileNotFoundError as e:
            raise StorageError(f"Object {src} does not exist") from e
        except OSError as e:
            raise StorageError(f"Failed to copy {src} to {dst}") from e
        content_type = await asyncio.to_thread(self.backend.content_type, dst)
        return StoredObject(key=dst, size=size, content_type=content_type, url=self.public_url(dst))

    async def move(self, src: str, dst: str) -> StoredObject:
        stored = await self.copy(src, dst)
        await self.delete(src)
        return stored

    async def purge_older_than(self, prefix: str, max_age_seconds: float) -> list[str]:
        """Delete objects under `prefix` last written more than `max_age_seconds` ago."""
        cutoff = time.time() - max_age_seconds
        purged: list[str] = []
        for key in await self.list(prefix, recursive=True):
            try:
                modified = await asyncio.to_thread(self.backend.modified_at, key)
            except FileNotFoundError:
                continue
            if modified <= cutoff and await self.delete(key):
                purged.append(key)
        if purged:
            logger.info("Stale objects purged", prefix=prefix, count=len(purged))
        return purged


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read an upload into memory, enforcing a maximum size."""
    chunk_size = 1024 * 1024
    buf = bytearray()
    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise PayloadTooLargeError(
                f"File '{file.filename}' is too large. Max is {max_bytes} bytes."
            )
    return bytes(buf)


def ensure_image(content_type: Optional[str], filename: Optional[str] = None) -> str:
    """Return the image content type or raise for anything else."""
    resolved = (content_type or "").split(";")[0].strip().lower()
    if not resolved or resolved == DEFAULT_CONTENT_TYPE:
        resolved = guess_content_type(filename or "")
    if not resolved.startswith("image/"):
        raise InvalidInputError(f"Only image files are allowed, got '{resolved or 'unknown'}'")
    return resolved


async def fetch_remote_image(
    url: str,
    *,
    max_bytes: Optional[int] = None,
    timeout: Optional[float] = None,
) -> tuple[bytes, str, str]:
    """
    Download an image over HTTP(S).

    Returns (data, content_type, filename). The body is streamed and
    aborted as soon as it exceeds `max_bytes`.
    """
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidInputError("Image URL must be an absolute http(s) URL")

    max_bytes = max_bytes or settings.max_upload_bytes
    filename = PurePosixPath(parsed.path).name or "image"

    try:
        async with httpx.AsyncClient(
            timeout=timeout or settings.remote_image_timeout,
            follow_redirects=True,
        ) as client:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                content_type = ensure_image(response.headers.get("content-type"), filename)
                buf = bytearray()
                async for chunk in response.aiter_bytes():
                    buf.extend(chunk)
                    if len(buf) > max_bytes:
                        raise PayloadTooLargeError(f"Remote image exceeds {max_bytes} bytes")
    except httpx.HTTPStatusError as e:
        logger.warning("Remote image fetch failed", url=url, status=e.response.status_code)
        raise InvalidInputError(f"Could not fetch image: HTTP {e.response.status_code}") from e
    except httpx.HTTPError as e:
        logger.warning("Remote image fetch failed", url=url, error=str(e))
        raise InvalidInputError(f"Could not fetch image: {e}") from e

    if not mimetypes.guess_type(filename)[0]:
        extension = mimetypes.guess_extension(content_type) or ""
        filename = f"{filename}{extension}"
    return bytes(buf), content_type, filename


_store: Optional[ObjectStore] = None


def get_object_store() -> ObjectStore:
    """Process-wide object store rooted at `settings.storage_root`."""
    global _store
    if _store is None:
        _store = ObjectStore(
            LocalStorageBackend(settings.storage_root),
            public_prefix=settings.storage_public_prefix,
        )
    return _store
