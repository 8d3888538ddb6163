"""
Tests for the shopping cart.
"""
from decimal import Decimal


async def _add(async_client, headers, product_id, quantity=1, **extra):
    body = {"productId": str(product_id), "quantity": quantity, **extra}
    return await async_client.post("/api/cart/items", json=body, headers=headers)


async def test_cart_requires_login(async_client):
    response = await async_client.get("/api/cart")

    assert response.status_code == 401


async def test_empty_cart(async_client, user_headers):
    response = await async_client.get("/api/cart", headers=user_headers)

    assert response.json() == {"items": [], "totalItems": 0, "subtotal": 0.0}


async def test_add_item_captures_effective_price(async_client, user_headers, make_product):
    product = await make_product(price=Decimal("200"), sale_price=Decimal("150"))

    response = await _add(async_client, user_headers, product.id, 2)

    assert response.status_code == 201
    item = response.json()
    assert item["itemPrice"] == 150.0
    assert item["lineTotal"] == 300.0
    assert item["product"]["id"] == str(product.id)


async def test_adding_same_product_merges_lines(async_client, user_headers, make_product):
    product = await make_product(price=Decimal("49.99"))

    await _add(async_client, user_headers, product.id, 1)
    await _add(async_client, user_headers, product.id, 2)
    cart = (await async_client.get("/api/cart", headers=user_headers)).json()

    assert len(cart["items"]) == 1
    assert cart["totalItems"] == 3
    assert cart["subtotal"] == 149.97


async def test_cannot_exceed_stock(async_client, user_headers, make_product):
    product = await make_product(stock=2)

    response = await _add(async_client, user_headers, product.id, 3)

    assert response.status_code == 409
    assert response.json()["detail"] == "Only 2 in stock"


async def test_minimum_order_is_enforced(async_client, user_headers, make_product):
    product = await make_product(minimum_order=3)

    response = await _add(async_client, user_headers, product.id, 1)

    assert response.status_code == 400


async def test_inactive_product_cannot_be_added(async_client, user_headers, make_product):
    product = await make_product(is_active=False)

    response = await _add(async_client, user_headers, product.id)

    assert response.status_code == 404


async def test_required_attribute_selection(async_client, admin_headers, user_headers, make_product):
    product = await make_product()
    attribute = (
        await async_client.post(
            "/api/attributes",
            json={"name": "colour", "displayName": "Colour", "isRequired": True,
                  "options": [{"value": "Red"}, {"value": "Blue"}]},
            headers=admin_headers,
        )
    ).json()
    await async_client.put(
        f"/api/products/{product.id}/attributes",
        json={"attributes": [{"attributeId": attribute["id"]}]},
        headers=admin_headers,
    )

    missing = await _add(async_client, user_headers, product.id)
    chosen = await _add(
        async_client, user_headers, product.id, attributeSelections={"colour": {"Red": 1}}
    )

    assert missing.status_code == 400
    assert "'Colour' is required" in missing.json()["detail"]
    assert chosen.status_code == 201
    assert chosen.json()["attributeSelections"] == {"colour": {"Red": 1}}


async def test_update_quantity(async_client, user_headers, make_product):
    product = await make_product()
    item = (await _add(async_client, user_headers, product.id)).json()

    response = await async_client.patch(
        f"/api/cart/items/{item['id']}", json={"quantity": 4}, headers=user_headers
    )

    assert response.status_code == 200
    assert response.json()["quantity"] == 4
    assert response.json()["lineTotal"] == 400.0


async def test_zero_quantity_removes_line(async_client, user_headers, make_product):
    product = await make_product()
    item = (await _add(async_client, user_headers, product.id)).json()

    response = await async_client.patch(
        f"/api/cart/items/{item['id']}", json={"quantity": 0}, headers=user_headers
    )

    assert response.status_code == 204
    assert (await async_client.get("/api/cart", headers=user_headers)).json()["items"] == []


async def test_cannot_touch_another_users_line(async_client, user_headers, other_headers, make_product):
    product = await make_product()
    item = (await _add(async_client, user_headers, product.id)).json()

    response = await async_client.delete(f"/api/cart/items/{item['id']}", headers=other_headers)

    assert response.status_code == 404


async def test_clear_cart(async_client, user_headers, make_product):
    first = await make_product()
    second = await make_product()
    await _add(async_client, user_headers, first.id)
    await _add(async_client, user_headers, second.id)

    response = await async_client.delete("/api/cart", headers=user_headers)

    assert response.json() == {"message": "Cart cleared", "count": 2}
    assert (await async_client.get("/api/cart", headers=user_headers)).json()["totalItems"] == 0
