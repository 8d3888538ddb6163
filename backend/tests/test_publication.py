"""
Tests for publishing drafts as live products.
"""
from types import SimpleNamespace

from heartcart.services.publication import map_draft_to_product

PNG = b"\x89PNG\r\n\x1a\n" + b"1" * 64


def test_map_draft_to_product_renames_columns():
    draft = SimpleNamespace(
        **{field: None for field in (
            "category_id", "catalog_id", "supplier_id", "cost_price", "sale_price",
            "minimum_price", "compare_at_price", "markup_percentage", "discount_label",
            "weight", "dimensions", "free_shipping", "is_active", "is_featured",
            "is_flash_deal", "flash_deal_end", "special_sale_text", "special_sale_start",
            "special_sale_end", "meta_title", "meta_description", "meta_keywords",
            "canonical_url", "description", "brand",
        )},
        name="  Lamp ",
        slug="lamp",
        sku="",
        regular_price=120,
        stock_level=None,
        minimum_order=None,
        tags=None,
        selected_attributes={"a1": ["S"]},
    )

    data = map_draft_to_product(draft)

    assert data["name"] == "Lamp"
    assert data["sku"] is None
    assert data["price"] == 120
    assert data["stock"] == 0
    assert data["minimum_order"] == 1
    assert data["tags"] == []
    assert data["required_attribute_ids"] == ["a1"]


async def _ready_draft(async_client, headers, payload) -> dict:
    created = await async_client.post("/api/drafts", json=payload, headers=headers)
    assert created.status_code == 201, created.text
    draft_id = created.json()["id"]
    uploaded = await async_client.post(
        f"/api/drafts/{draft_id}/images",
        files=[
            ("files", ("main.png", PNG, "image/png")),
            ("files", ("side.png", PNG, "image/png")),
        ],
        headers=headers,
    )
    assert uploaded.status_code == 200, uploaded.text
    return uploaded.json()


async def test_publish_creates_product(async_client, user_headers, admin_headers, draft_payload, store):
    draft = await _ready_draft(async_client, user_headers, draft_payload)
    await async_client.put(
        f"/api/drafts/{draft['id']}/steps/images", json={"mainImageIndex": 1}, headers=user_headers
    )

    response = await async_client.post(f"/api/drafts/{draft['id']}/publish", headers=admin_headers)

    assert response.status_code == 200, response.text
    result = response.json()
    assert result["created"] is True
    assert result["imagesMigrated"] == 2
    assert result["attributesSaved"] == 0

    product = (await async_client.get(f"/api/products/{result['productId']}")).json()
    assert product["name"] == "Rattan Pendant Lamp"
    assert product["slug"] == "rattan-pendant-lamp"
    assert product["price"] == 100.0
    assert product["stock"] == 5
    assert product["imageUrl"].startswith(f"/api/files/products/{result['productId']}/")
    assert product["imageUrl"].endswith("side.png")
    assert len(product["additionalImages"]) == 1
    assert [img["isMain"] for img in product["images"]] == [False, True]

    assert len(await store.list(f"products/{result['productId']}/", recursive=True)) == 2
    assert await store.list(f"drafts/{draft['id']}/", recursive=True) == []

    published = (await async_client.get(f"/api/drafts/{draft['id']}", headers=user_headers)).json()
    assert published["draftStatus"] == "published"
    assert published["originalProductId"] == result["productId"]
    assert published["publishedVersion"] == 1
    assert published["changeHistory"][-1]["to"] == "published"


async def test_published_draft_is_frozen(async_client, user_headers, admin_headers, draft_payload):
    draft = await _ready_draft(async_client, user_headers, draft_payload)
    await async_client.post(f"/api/drafts/{draft['id']}/publish", headers=admin_headers)

    edit = await async_client.patch(f"/api/drafts/{draft['id']}", json={"brand": "X"}, headers=user_headers)
    again = await async_client.post(f"/api/drafts/{draft['id']}/publish", headers=admin_headers)
    check = await async_client.get(f"/api/drafts/{draft['id']}/publish-check", headers=user_headers)

    assert edit.status_code == 409
    assert again.status_code == 409
    assert check.json()["isValid"] is True
    assert check.json()["canPublish"] is False


async def test_cost_only_draft_priced_from_category_rule(
    async_client, user_headers, admin_headers, draft_payload, category
):
    payload = {k: v for k, v in draft_payload.items() if k != "regularPrice"}
    checked = await _ready_draft(async_client, user_headers, payload)
    approved = await _ready_draft(async_client, user_headers, {**payload, "name": "Rattan Floor Lamp"})
    assert checked["regularPrice"] is None

    rule = await async_client.post(
        "/api/pricing/rules",
        json={"categoryId": str(category.id), "markupPercentage": 50},
        headers=admin_headers,
    )
    assert rule.status_code == 201

    check = await async_client.get(f"/api/drafts/{checked['id']}/publish-check", headers=user_headers)
    assert check.json()["canPublish"] is True
    assert check.json()["errors"] == {}
    unchanged = (await async_client.get(f"/api/drafts/{checked['id']}", headers=user_headers)).json()
    assert unchanged["regularPrice"] is None

    published = await async_client.post(f"/api/drafts/{checked['id']}/publish", headers=admin_headers)
    assert published.status_code == 200, published.text
    product = (await async_client.get(f"/api/products/{published.json()['productId']}")).json()
    assert product["price"] == 90.0

    ready = await async_client.post(
        f"/api/drafts/{approved['id']}/status",
        json={"status": "ready_to_publish"},
        headers=user_headers,
    )
    assert ready.status_code == 200, ready.text
    assert ready.json()["draftStatus"] == "ready_to_publish"
    assert ready.json()["regularPrice"] == 90.0
    assert ready.json()["markupPercentage"] == 50


async def test_publish_requires_admin(async_client, user_headers, draft_payload):
    draft = await _ready_draft(async_client, user_headers, draft_payload)

    response = await async_client.post(f"/api/drafts/{draft['id']}/publish", headers=user_headers)

    assert response.status_code == 403


async def test_publish_rejects_invalid_draft(async_client, user_headers, admin_headers, draft_payload):
    created = await async_client.post("/api/drafts", json=draft_payload, headers=user_headers)

    response = await async_client.post(f"/api/drafts/{created.json()['id']}/publish", headers=admin_headers)

    assert response.status_code == 422
    assert "imageUrls" in response.json()["errors"]


async def test_publish_slug_conflict(async_client, user_headers, admin_headers, draft_payload, make_product):
    await make_product(slug="rattan-pendant-lamp")
    draft = await _ready_draft(async_client, user_headers, draft_payload)

    response = await async_client.post(f"/api/drafts/{draft['id']}/publish", headers=admin_headers)

    assert response.status_code == 409


async def test_failed_publish_rolls_back(async_client, user_headers, admin_headers, draft_payload, store):
    draft = await _ready_draft(async_client, user_headers, draft_payload)
    await async_client.put(
        f"/api/drafts/{draft['id']}/steps/attributes",
        json={"selectedAttributes": {"00000000-0000-0000-0000-000000000001": ["S"]}},
        headers=user_headers,
    )

    response = await async_client.post(f"/api/drafts/{draft['id']}/publish", headers=admin_headers)

    assert response.status_code == 422
    assert "selectedAttributes" in response.json()["errors"]
    assert await store.list("products/", recursive=True) == []
    assert all([await store.exists(key) for key in draft["imageObjectKeys"]])

    listing = (await async_client.get("/api/products")).json()
    assert listing["total"] == 0
    unchanged = (await async_client.get(f"/api/drafts/{draft['id']}", headers=user_headers)).json()
    assert unchanged["draftStatus"] == "draft"


async def test_publish_saves_attributes(async_client, user_headers, admin_headers, draft_payload):
    attribute = (
        await async_client.post(
            "/api/attributes",
            json={"name": "size", "displayName": "Size", "attributeType": "select", "options": [{"value": "S"}, {"value": "M"}]},
            headers=admin_headers,
        )
    ).json()
    draft = await _ready_draft(async_client, user_headers, draft_payload)
    await async_client.put(
        f"/api/drafts/{draft['id']}/steps/attributes",
        json={"selectedAttributes": {attribute["id"]: ["S", "M"]}},
        headers=user_headers,
    )

    result = (await async_client.post(f"/api/drafts/{draft['id']}/publish", headers=admin_headers)).json()

    assert result["attributesSaved"] == 1
    assigned = (await async_client.get(f"/api/products/{result['productId']}/attributes")).json()
    assert assigned[0]["selectedOptions"] == ["S", "M"]
    product = (await async_client.get(f"/api/products/{result['productId']}")).json()
    assert product["requiredAttributeIds"] == [attribute["id"]]


async def test_edit_existing_product_through_draft(
    async_client, admin_headers, make_product, category
):
    product = await make_product(
        name="Old Lamp",
        slug="old-lamp",
        category_id=category.id,
        image_url="https://cdn.example.com/old-lamp.jpg",
    )

    first = await async_client.post(f"/api/drafts/from-product/{product.id}", headers=admin_headers)
    second = await async_client.post(f"/api/drafts/from-product/{product.id}", headers=admin_headers)
    assert first.json()["created"] is True
    assert second.json()["created"] is False
    draft = first.json()["draft"]
    assert second.json()["draft"]["id"] == draft["id"]
    assert draft["regularPrice"] == 100.0
    assert draft["imageUrls"] == ["https://cdn.example.com/old-lamp.jpg"]

    await async_client.patch(f"/api/drafts/{draft['id']}", json={"name": "New Lamp"}, headers=admin_headers)
    response = await async_client.post(f"/api/drafts/{draft['id']}/publish", headers=admin_headers)

    assert response.status_code == 200, response.text
    assert response.json()["created"] is False
    assert response.json()["productId"] == str(product.id)
    assert response.json()["imagesMigrated"] == 0
    updated = (await async_client.get(f"/api/products/{product.id}")).json()
    assert updated["name"] == "New Lamp"
    assert updated["slug"] == "old-lamp"
    assert updated["imageUrl"] == "https://cdn.example.com/old-lamp.jpg"


async def test_from_product_requires_admin(async_client, user_headers, make_product):
    product = await make_product()

    response = await async_client.post(f"/api/drafts/from-product/{product.id}", headers=user_headers)

    assert response.status_code == 403
