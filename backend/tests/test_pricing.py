"""
Tests for price arithmetic and markup rules.
"""
from decimal import Decimal
from types import SimpleNamespace

from heartcart.services.pricing import (
    display_pricing,
    effective_unit_price,
    markup_from_prices,
    price_from_cost,
    quantize,
)


def test_price_from_cost_rounds_half_up():
    assert price_from_cost(Decimal("100"), 50) == Decimal("150.00")
    assert price_from_cost(0.1, 5) == Decimal("0.11")
    assert price_from_cost("19.99", 33) == Decimal("26.59")


def test_quantize_avoids_float_artefacts():
    assert quantize(2.675) == Decimal("2.68")


def test_markup_from_prices():
    assert markup_from_prices(Decimal("80"), Decimal("100")) == Decimal("25.00")
    assert markup_from_prices(0, 10) is None


def test_display_pricing_with_discount():
    pricing = display_pricing(Decimal("200"), Decimal("150"))

    assert pricing.has_discount
    assert pricing.display_price == Decimal("150.00")
    assert pricing.original_price == Decimal("200.00")
    assert pricing.discount_percentage == 25


def test_display_pricing_ignores_sale_above_price():
    pricing = display_pricing(Decimal("100"), Decimal("120"))

    assert not pricing.has_discount
    assert pricing.display_price == Decimal("100.00")
    assert pricing.original_price is None


def test_effective_unit_price_respects_minimum():
    product = SimpleNamespace(price=Decimal("100"), sale_price=Decimal("40"), minimum_price=Decimal("50"))

    assert effective_unit_price(product) == Decimal("50.00")


async def _category(async_client, admin_headers, name, parent_id=None) -> str:
    payload = {"name": name}
    if parent_id:
        payload["parentId"] = parent_id
    response = await async_client.post("/api/categories", json=payload, headers=admin_headers)
    return response.json()["id"]


async def test_markup_resolution_order(async_client, admin_headers):
    parent = await _category(async_client, admin_headers, "Home")
    child = await _category(async_client, admin_headers, "Lighting", parent)
    loose = await _category(async_client, admin_headers, "Garden")

    none_yet = await async_client.get("/api/pricing/markup", params={"categoryId": child}, headers=admin_headers)
    assert none_yet.json() == {"categoryId": child, "markupPercentage": None, "source": "none"}

    await async_client.post("/api/pricing/rules", json={"markupPercentage": 30}, headers=admin_headers)
    await async_client.post(
        "/api/pricing/rules", json={"categoryId": parent, "markupPercentage": 60}, headers=admin_headers
    )

    inherited = await async_client.get("/api/pricing/markup", params={"categoryId": child}, headers=admin_headers)
    default = await async_client.get("/api/pricing/markup", params={"categoryId": loose}, headers=admin_headers)

    assert inherited.json()["markupPercentage"] == 60
    assert inherited.json()["source"] == f"parent_category_{parent}"
    assert default.json()["markupPercentage"] == 30
    assert default.json()["source"] == "global_default"


async def test_duplicate_rule_conflicts(async_client, admin_headers):
    category = await _category(async_client, admin_headers, "Toys")
    body = {"categoryId": category, "markupPercentage": 45}

    first = await async_client.post("/api/pricing/rules", json=body, headers=admin_headers)
    second = await async_client.post("/api/pricing/rules", json=body, headers=admin_headers)

    assert first.status_code == 201
    assert second.status_code == 409


async def test_rule_for_unknown_category(async_client, admin_headers):
    response = await async_client.post(
        "/api/pricing/rules",
        json={"categoryId": "00000000-0000-0000-0000-000000000000", "markupPercentage": 10},
        headers=admin_headers,
    )

    assert response.status_code == 404


async def test_update_and_delete_rule(async_client, admin_headers):
    rule = (
        await async_client.post("/api/pricing/rules", json={"markupPercentage": 20}, headers=admin_headers)
    ).json()

    updated = await async_client.patch(
        f"/api/pricing/rules/{rule['id']}", json={"markupPercentage": 25}, headers=admin_headers
    )
    deleted = await async_client.delete(f"/api/pricing/rules/{rule['id']}", headers=admin_headers)

    assert updated.json()["markupPercentage"] == 25
    assert deleted.status_code == 204
    assert (await async_client.get("/api/pricing/rules", headers=admin_headers)).json() == []


async def test_calculate_price(async_client, admin_headers):
    category = await _category(async_client, admin_headers, "Kitchen")
    await async_client.post(
        "/api/pricing/rules", json={"categoryId": category, "markupPercentage": 50}, headers=admin_headers
    )

    by_rule = await async_client.post(
        "/api/pricing/calculate", json={"costPrice": 80, "categoryId": category}, headers=admin_headers
    )
    explicit = await async_client.post(
        "/api/pricing/calculate", json={"costPrice": 80, "markupPercentage": 25}, headers=admin_headers
    )

    assert by_rule.json()["price"] == 120.0
    assert by_rule.json()["source"] == f"category_{category}"
    assert explicit.json()["price"] == 100.0
    assert explicit.json()["source"] == "explicit"


async def test_pricing_requires_admin(async_client, user_headers):
    response = await async_client.get("/api/pricing/rules", headers=user_headers)

    assert response.status_code == 403
