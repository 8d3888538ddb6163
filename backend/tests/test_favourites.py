"""
Tests for favourites and product interaction tracking.
"""
from sqlalchemy import select

from heartcart.models.favourite import ProductInteraction


async def test_add_and_list_favourites(async_client, user_headers, make_product):
    product = await make_product(name="Throw blanket")

    added = await async_client.post(f"/api/favourites/{product.id}", headers=user_headers)
    listed = await async_client.get("/api/favourites", headers=user_headers)
    status = await async_client.get(f"/api/favourites/{product.id}/status", headers=user_headers)

    assert added.status_code == 201
    assert added.json()["productId"] == str(product.id)
    assert listed.json()[0]["product"]["name"] == "Throw blanket"
    assert status.json()["isFavourite"] is True


async def test_favourite_twice_conflicts(async_client, user_headers, make_product):
    product = await make_product()

    await async_client.post(f"/api/favourites/{product.id}", headers=user_headers)
    response = await async_client.post(f"/api/favourites/{product.id}", headers=user_headers)

    assert response.status_code == 409


async def test_favourite_unknown_product(async_client, user_headers):
    response = await async_client.post(
        "/api/favourites/00000000-0000-0000-0000-000000000000", headers=user_headers
    )

    assert response.status_code == 404


async def test_remove_favourite(async_client, user_headers, make_product):
    product = await make_product()
    await async_client.post(f"/api/favourites/{product.id}", headers=user_headers)

    removed = await async_client.delete(f"/api/favourites/{product.id}", headers=user_headers)
    again = await async_client.delete(f"/api/favourites/{product.id}", headers=user_headers)

    assert removed.status_code == 204
    assert again.status_code == 404


async def test_counts_and_popular(async_client, user_headers, other_headers, make_product):
    loved = await make_product(name="Loved")
    liked = await make_product(name="Liked")
    await async_client.post(f"/api/favourites/{loved.id}", headers=user_headers)
    await async_client.post(f"/api/favourites/{loved.id}", headers=other_headers)
    await async_client.post(f"/api/favourites/{liked.id}", headers=user_headers)

    count = await async_client.get(f"/api/favourites/count/{loved.id}")
    popular = await async_client.get("/api/favourites/popular", params={"limit": 5})

    assert count.json()["count"] == 2
    assert [(p["product"]["name"], p["count"]) for p in popular.json()] == [("Loved", 2), ("Liked", 1)]


async def test_anonymous_view_is_recorded(async_client, make_product):
    product = await make_product()

    response = await async_client.post(
        "/api/interactions",
        json={"productId": str(product.id), "sessionId": "anon-1"},
        headers={"User-Agent": "pytest-browser"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["interactionType"] == "view"
    assert data["userId"] is None
    views = await async_client.get(f"/api/interactions/views/{product.id}")
    assert views.json()["views"] == 1


async def test_interaction_for_unknown_product(async_client):
    response = await async_client.post(
        "/api/interactions", json={"productId": "00000000-0000-0000-0000-000000000000"}
    )

    assert response.status_code == 404


async def test_most_viewed(async_client, make_product):
    popular = await make_product(name="Popular")
    quiet = await make_product(name="Quiet")
    for _ in range(3):
        await async_client.post("/api/interactions", json={"productId": str(popular.id)})
    await async_client.post("/api/interactions", json={"productId": str(quiet.id)})

    response = await async_client.get("/api/interactions/most-viewed")

    assert [(p["product"]["name"], p["count"]) for p in response.json()] == [("Popular", 3), ("Quiet", 1)]


async def _interactions(session_factory, product_id) -> list[tuple]:
    async with session_factory() as session:
        result = await session.execute(
            select(ProductInteraction.interaction_type, ProductInteraction.user_id)
            .where(ProductInteraction.product_id == product_id)
            .order_by(ProductInteraction.created_at)
        )
        return [tuple(row) for row in result.all()]


async def test_favourite_changes_are_tracked(async_client, user, user_headers, make_product, session_factory):
    product = await make_product()

    await async_client.post(f"/api/favourites/{product.id}", headers=user_headers)
    await async_client.delete(f"/api/favourites/{product.id}", headers=user_headers)

    assert await _interactions(session_factory, product.id) == [
        ("favourite", user.id),
        ("unfavourite", user.id),
    ]


async def test_cart_changes_are_tracked(async_client, user, user_headers, make_product, session_factory):
    product = await make_product()

    added = await async_client.post(
        "/api/cart/items", json={"productId": str(product.id), "quantity": 1}, headers=user_headers
    )
    await async_client.delete(f"/api/cart/items/{added.json()['id']}", headers=user_headers)

    assert await _interactions(session_factory, product.id) == [
        ("add_to_cart", user.id),
        ("remove_from_cart", user.id),
    ]
