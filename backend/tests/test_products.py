"""
Tests for product listing and admin maintenance.
"""
from decimal import Decimal
from uuid import UUID

from heartcart.models.product import ProductImage


async def test_list_hides_inactive_products(async_client, make_product):
    await make_product(name="Visible")
    await make_product(name="Hidden", is_active=False)

    response = await async_client.get("/api/products")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["name"] == "Visible"
    assert data["hasMore"] is False


async def test_admin_can_include_inactive(async_client, admin_headers, user_headers, make_product):
    await make_product(name="Visible")
    await make_product(name="Hidden", is_active=False)

    as_admin = await async_client.get(
        "/api/products", params={"includeInactive": "true"}, headers=admin_headers
    )
    as_user = await async_client.get(
        "/api/products", params={"includeInactive": "true"}, headers=user_headers
    )

    assert as_admin.json()["total"] == 2
    assert as_user.json()["total"] == 1


async def test_pagination(async_client, make_product):
    for _ in range(5):
        await make_product()

    response = await async_client.get("/api/products", params={"page": 2, "pageSize": 2})

    data = response.json()
    assert data["total"] == 5
    assert len(data["items"]) == 2
    assert data["page"] == 2
    assert data["hasMore"] is True


async def test_price_filters_use_sale_price(async_client, make_product):
    await make_product(name="Cheap", price=Decimal("50"))
    await make_product(name="On sale", price=Decimal("500"), sale_price=Decimal("90"))
    await make_product(name="Expensive", price=Decimal("400"))

    response = await async_client.get(
        "/api/products", params={"maxPrice": 100, "sort": "price_asc"}
    )

    assert [p["name"] for p in response.json()["items"]] == ["Cheap", "On sale"]


async def test_pricing_block_in_listing(async_client, make_product):
    await make_product(price=Decimal("200"), sale_price=Decimal("150"))

    item = (await async_client.get("/api/products")).json()["items"][0]

    assert item["pricing"] == {
        "displayPrice": 150.0,
        "originalPrice": 200.0,
        "discountPercentage": 25,
        "hasDiscount": True,
    }


async def test_search_matches_tags(async_client, make_product):
    await make_product(name="Lamp", tags=["bedside", "warm light"])
    await make_product(name="Chair")

    response = await async_client.get("/api/products", params={"search": "bedside"})

    assert [p["name"] for p in response.json()["items"]] == ["Lamp"]


async def test_unknown_sort_is_rejected(async_client):
    response = await async_client.get("/api/products", params={"sort": "random"})

    assert response.status_code == 400


async def test_category_filter_with_subcategories(async_client, admin_headers, make_product):
    parent = (await async_client.post("/api/categories", json={"name": "Home"}, headers=admin_headers)).json()
    child = (
        await async_client.post(
            "/api/categories", json={"name": "Lamps", "parentId": parent["id"]}, headers=admin_headers
        )
    ).json()
    await make_product(name="Rug", category_id=UUID(parent["id"]))
    await make_product(name="Desk lamp", category_id=UUID(child["id"]))

    direct = await async_client.get("/api/products", params={"categoryId": parent["id"]})
    nested = await async_client.get(
        "/api/products", params={"categoryId": parent["id"], "includeSubcategories": "true"}
    )

    assert direct.json()["total"] == 1
    assert nested.json()["total"] == 2


async def test_get_product_by_id_and_slug(async_client, make_product):
    product = await make_product(name="Kettle", slug="kettle")

    by_id = await async_client.get(f"/api/products/{product.id}")
    by_slug = await async_client.get("/api/products/slug/kettle")

    assert by_id.status_code == 200
    assert by_id.json()["slug"] == "kettle"
    assert by_id.json()["images"] == []
    assert by_slug.json()["id"] == str(product.id)


async def test_inactive_product_is_not_found_for_shoppers(async_client, admin_headers, make_product):
    product = await make_product(is_active=False)

    anonymous = await async_client.get(f"/api/products/{product.id}")
    admin = await async_client.get(f"/api/products/{product.id}", headers=admin_headers)

    assert anonymous.status_code == 404
    assert admin.status_code == 200


async def test_quick_update(async_client, admin_headers, make_product):
    product = await make_product()

    response = await async_client.patch(
        f"/api/products/{product.id}",
        json={"price": "120.00", "stock": 3, "isFeatured": True},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["price"] == 120.0
    assert data["stock"] == 3
    assert data["isFeatured"] is True


async def test_quick_update_rejects_sale_above_price(async_client, admin_headers, make_product):
    product = await make_product(price=Decimal("100"))

    response = await async_client.patch(
        f"/api/products/{product.id}", json={"salePrice": "150"}, headers=admin_headers
    )

    assert response.status_code == 400


async def test_quick_update_slug_conflict(async_client, admin_headers, make_product):
    await make_product(slug="taken")
    product = await make_product()

    response = await async_client.patch(
        f"/api/products/{product.id}", json={"slug": "taken"}, headers=admin_headers
    )

    assert response.status_code == 409


async def test_toggle_status(async_client, admin_headers, make_product):
    product = await make_product()

    response = await async_client.patch(
        f"/api/products/{product.id}/status", json={"isActive": False}, headers=admin_headers
    )

    assert response.json()["isActive"] is False
    assert (await async_client.get("/api/products")).json()["total"] == 0


async def test_delete_product_removes_images(async_client, admin_headers, make_product, store, session_factory):
    product = await make_product()
    stored = await store.put(f"products/{product.id}/main.jpg", b"jpeg-bytes", "image/jpeg")
    async with session_factory() as session:
        session.add(ProductImage(product_id=product.id, url=stored.url, object_key=stored.key, is_main=True))
        await session.commit()

    response = await async_client.delete(f"/api/products/{product.id}", headers=admin_headers)

    assert response.status_code == 204
    assert not await store.exists(stored.key)
    assert (await async_client.get(f"/api/products/{product.id}", headers=admin_headers)).status_code == 404


async def test_product_admin_routes_require_admin(async_client, user_headers, make_product):
    product = await make_product()

    response = await async_client.delete(f"/api/products/{product.id}", headers=user_headers)

    assert response.status_code == 403


async def test_search_wildcards_match_literally(async_client, make_product):
    await make_product(name="500 Lamp")
    await make_product(name="Sale 50% Lamp")
    await make_product(name="Lamp_shade")
    await make_product(name="Lampshade")

    percent = await async_client.get("/api/products", params={"search": "50%"})
    underscore = await async_client.get("/api/products", params={"search": "p_s"})

    assert [p["name"] for p in percent.json()["items"]] == ["Sale 50% Lamp"]
    assert [p["name"] for p in underscore.json()["items"]] == ["Lamp_shade"]
