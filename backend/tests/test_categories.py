"""
Tests for the category hierarchy.
"""
from types import SimpleNamespace
from uuid import uuid4

from heartcart.services.categories import build_tree, descendant_ids, slugify


def _category(name, parent_id=None, display_order=0):
    return SimpleNamespace(id=uuid4(), name=name, parent_id=parent_id, display_order=display_order)


def test_slugify():
    assert slugify("Kitchen & Dining") == "kitchen-dining"
    assert slugify("  Café Décor ") == "cafe-decor"
    assert slugify("!!!") == "item"


def test_build_tree_orders_children():
    home = _category("Home")
    garden = _category("Garden", display_order=1)
    lamps = _category("lamps", parent_id=home.id)
    beds = _category("Beds", parent_id=home.id)
    orphan = _category("Orphan", parent_id=uuid4())

    tree = build_tree([lamps, garden, home, beds, orphan])

    assert [n["category"].name for n in tree] == ["Home", "Orphan", "Garden"]
    assert [n["category"].name for n in tree[0]["children"]] == ["Beds", "lamps"]


def test_descendant_ids():
    root, child, grandchild, other = uuid4(), uuid4(), uuid4(), uuid4()
    parents = {root: None, child: root, grandchild: child, other: None}

    assert set(descendant_ids(parents, root)) == {root, child, grandchild}
    assert descendant_ids(parents, other) == [other]


async def _create(async_client, admin_headers, **payload) -> dict:
    response = await async_client.post("/api/categories", json=payload, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_category_generates_unique_slug(async_client, admin_headers):
    home = await _create(async_client, admin_headers, name="Home Decor")
    kids = await _create(async_client, admin_headers, name="Kids")
    nested = await _create(async_client, admin_headers, name="Home Decor", parentId=kids["id"])

    assert home["slug"] == "home-decor"
    assert home["level"] == 0
    assert nested["slug"] == "home-decor-2"
    assert nested["level"] == 1


async def test_sibling_names_must_be_unique(async_client, admin_headers):
    await _create(async_client, admin_headers, name="Toys")

    response = await async_client.post("/api/categories", json={"name": "toys"}, headers=admin_headers)

    assert response.status_code == 409


async def test_tree_endpoint(async_client, admin_headers):
    parent = await _create(async_client, admin_headers, name="Electronics")
    await _create(async_client, admin_headers, name="Phones", parentId=parent["id"])

    response = await async_client.get("/api/categories/tree")

    assert response.status_code == 200
    tree = response.json()
    assert tree[0]["name"] == "Electronics"
    assert tree[0]["children"][0]["name"] == "Phones"
    assert tree[0]["children"][0]["children"] == []


async def test_move_below_descendant_is_rejected(async_client, admin_headers):
    parent = await _create(async_client, admin_headers, name="Outdoor")
    child = await _create(async_client, admin_headers, name="Camping", parentId=parent["id"])

    response = await async_client.patch(
        f"/api/categories/{parent['id']}", json={"parentId": child["id"]}, headers=admin_headers
    )

    assert response.status_code == 400


async def test_moving_category_relevels_descendants(async_client, admin_headers):
    a = await _create(async_client, admin_headers, name="A")
    b = await _create(async_client, admin_headers, name="B")
    b_child = await _create(async_client, admin_headers, name="B1", parentId=b["id"])

    response = await async_client.patch(
        f"/api/categories/{b['id']}", json={"parentId": a["id"]}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["level"] == 1
    moved_child = await async_client.get(f"/api/categories/{b_child['id']}")
    assert moved_child.json()["level"] == 2


async def test_delete_category_with_children_conflicts(async_client, admin_headers):
    parent = await _create(async_client, admin_headers, name="Beauty")
    await _create(async_client, admin_headers, name="Skincare", parentId=parent["id"])

    response = await async_client.delete(f"/api/categories/{parent['id']}", headers=admin_headers)

    assert response.status_code == 409


async def test_get_category_by_slug(async_client, admin_headers):
    await _create(async_client, admin_headers, name="Pet Supplies")

    found = await async_client.get("/api/categories/slug/pet-supplies")
    missing = await async_client.get("/api/categories/slug/nothing-here")

    assert found.json()["name"] == "Pet Supplies"
    assert missing.status_code == 404


async def test_delete_category_with_products_conflicts(async_client, admin_headers, category, make_product):
    await make_product(category_id=category.id)

    response = await async_client.delete(f"/api/categories/{category.id}", headers=admin_headers)

    assert response.status_code == 409
    assert (await async_client.get(f"/api/categories/{category.id}")).status_code == 200
