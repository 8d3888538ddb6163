"""
Tests for the object store and the file endpoints.
"""
import os
import time

import pytest

from heartcart.core.exceptions import InvalidInputError
from heartcart.services.object_store import ensure_image, normalize_key, sanitize_filename


def test_normalize_key():
    assert normalize_key("products//abc/./img.png") == "products/abc/img.png"
    assert normalize_key("temp\\a.png") == "temp/a.png"


@pytest.mark.parametrize("key", ["", "../secret", "a/../../b", "/etc/passwd", "C:/x", "a/b.png.meta.json"])
def test_normalize_key_rejects_unsafe_keys(key):
    with pytest.raises(InvalidInputError):
        normalize_key(key)


def test_sanitize_filename():
    assert sanitize_filename("../My Photo (1).PNG") == "my-photo-1-.png"
    assert sanitize_filename("...") == "file"


def test_ensure_image_falls_back_to_extension():
    assert ensure_image("application/octet-stream", "a.jpg") == "image/jpeg"
    with pytest.raises(InvalidInputError):
        ensure_image("text/plain", "a.txt")


async def test_store_copy_keeps_content_type(store):
    await store.put("drafts/d1/a.bin", b"data", "image/webp")

    copied = await store.copy("drafts/d1/a.bin", "products/p1/a.bin")

    assert copied.content_type == "image/webp"
    assert copied.url == "/api/files/products/p1/a.bin"
    assert await store.get("products/p1/a.bin") == (b"data", "image/webp")


async def test_store_delete_prefix(store):
    await store.put("drafts/d1/a.png", b"a")
    await store.put("drafts/d1/nested/b.png", b"b")
    await store.put("drafts/d2/c.png", b"c")

    assert await store.delete_prefix("drafts/d1/") == 2
    assert await store.list("drafts/", recursive=True) == ["drafts/d2/c.png"]


def test_key_from_url(store):
    assert store.key_from_url("/api/files/products/p1/a.png") == "products/p1/a.png"
    assert store.key_from_url("https://shop.example/api/files/temp/x.png") == "temp/x.png"
    assert store.key_from_url("https://cdn.example.com/a.png") is None
    assert store.key_from_url("/api/files/../etc/passwd") is None


async def test_upload_goes_to_temp(async_client, admin_headers, store):
    response = await async_client.post(
        "/api/files/upload",
        files=[("files", ("Shelf Photo.png", b"png-bytes", "image/png"))],
        headers=admin_headers,
    )

    assert response.status_code == 201
    stored = response.json()["files"][0]
    assert stored["key"].startswith("temp/")
    assert stored["key"].endswith("-shelf-photo.png")
    assert stored["url"] == f"/api/files/{stored['key']}"
    assert stored["size"] == 9
    assert stored["originalName"] == "Shelf Photo.png"
    assert await store.exists(stored["key"])


async def test_upload_requires_admin(async_client, user_headers):
    response = await async_client.post(
        "/api/files/upload",
        files=[("files", ("a.png", b"x", "image/png"))],
        headers=user_headers,
    )

    assert response.status_code == 403


async def test_serve_file_with_cache_headers(async_client, store):
    await store.put("products/p1/a.png", b"image", "image/png")

    response = await async_client.get("/api/files/products/p1/a.png")

    assert response.status_code == 200
    assert response.content == b"image"
    assert response.headers["content-type"] == "image/png"
    assert "immutable" in response.headers["cache-control"]

    cached = await async_client.get(
        "/api/files/products/p1/a.png", headers={"If-None-Match": response.headers["etag"]}
    )
    assert cached.status_code == 304


async def test_missing_file_is_404(async_client):
    response = await async_client.get("/api/files/products/nope.png")

    assert response.status_code == 404


async def test_delete_file_is_idempotent(async_client, admin_headers, store):
    await store.put("temp/a.png", b"x")

    first = await async_client.delete("/api/files/temp/a.png", headers=admin_headers)
    second = await async_client.delete("/api/files/temp/a.png", headers=admin_headers)

    assert first.status_code == 204
    assert second.status_code == 204
    assert not await store.exists("temp/a.png")


async def test_list_files(async_client, admin_headers, store):
    await store.put("products/p1/a.png", b"a")
    await store.put("products/p1/sub/b.png", b"b")

    flat = await async_client.get("/api/files", params={"prefix": "products/p1/"}, headers=admin_headers)
    deep = await async_client.get(
        "/api/files", params={"prefix": "products/p1/", "recursive": "true"}, headers=admin_headers
    )

    assert flat.json() == {"prefix": "products/p1/", "keys": ["products/p1/a.png"]}
    assert deep.json()["keys"] == ["products/p1/a.png", "products/p1/sub/b.png"]


async def test_purge_stale_temp_uploads(async_client, admin_headers, store, tmp_path):
    await store.put("temp/old.png", b"old", "image/png")
    await store.put("temp/new.png", b"new", "image/png")
    await store.put("drafts/d1/old.png", b"old", "image/png")
    two_days_ago = time.time() - 48 * 3600
    for key in ("temp/old.png", "drafts/d1/old.png"):
        os.utime(tmp_path / "storage" / key, (two_days_ago, two_days_ago))

    response = await async_client.post("/api/files/temp/purge", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"purged": ["temp/old.png"]}
    assert await store.exists("temp/new.png")
    assert await store.exists("drafts/d1/old.png")


async def test_purge_with_zero_age_clears_temp(async_client, admin_headers, user_headers, store):
    await store.put("temp/new.png", b"new", "image/png")

    denied = await async_client.post("/api/files/temp/purge", headers=user_headers)
    response = await async_client.post(
        "/api/files/temp/purge", params={"olderThanHours": 0}, headers=admin_headers
    )

    assert denied.status_code == 403
    assert response.json() == {"purged": ["temp/new.png"]}
