"""
Tests for attributes, options, product assignments and selection checks.
"""
from types import SimpleNamespace

from heartcart.services.attributes import check_selection, merge_selections


def _assignment(name, values, *, required=False, selected=None, attribute_type="select"):
    attribute = SimpleNamespace(
        name=name,
        display_name=name.title(),
        is_required=required,
        attribute_type=attribute_type,
        options=[SimpleNamespace(value=v) for v in values],
    )
    return SimpleNamespace(
        attribute=attribute,
        override_display_name=None,
        is_required=None,
        selected_options=selected or [],
    )


def test_check_selection_accepts_valid_choice():
    assignments = [_assignment("size", ["S", "M", "L"], required=True)]

    assert check_selection(assignments, {"Size": {"M": 2}}) == []


def test_check_selection_reports_problems():
    assignments = [
        _assignment("size", ["S", "M"], selected=["S"]),
        _assignment("colour", ["Red"], required=True),
    ]

    errors = check_selection(assignments, {"size": {"M": 1}, "material": {"Cotton": 1}})

    assert "'M' is not a valid option for 'Size'" in errors
    assert "Unknown attribute 'material'" in errors
    assert "'Colour' is required" in errors


def test_check_selection_rejects_non_positive_quantities():
    errors = check_selection([_assignment("size", ["S"])], {"size": {"S": 0}})

    assert errors == ["Quantity for 'S' of 'Size' must be a positive integer"]


def test_merge_selections_sums_quantities():
    merged = merge_selections({"size": {"S": 1}}, {"size": {"S": 2, "M": 1}, "colour": {"Red": 1}})

    assert merged == {"size": {"S": 3, "M": 1}, "colour": {"Red": 1}}


SIZE = {
    "name": "size",
    "displayName": "Size",
    "attributeType": "select",
    "options": [{"value": "S"}, {"value": "M", "displayValue": "Medium"}, {"value": "L"}],
}


async def _create_size(async_client, admin_headers) -> dict:
    response = await async_client.post("/api/attributes", json=SIZE, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_attribute_with_options(async_client, admin_headers):
    attribute = await _create_size(async_client, admin_headers)

    assert attribute["attributeType"] == "select"
    assert [o["value"] for o in attribute["options"]] == ["S", "M", "L"]
    assert attribute["options"][0]["displayValue"] == "S"
    assert attribute["options"][1]["displayValue"] == "Medium"


async def test_duplicate_attribute_name_conflicts(async_client, admin_headers):
    await _create_size(async_client, admin_headers)

    response = await async_client.post("/api/attributes", json=SIZE, headers=admin_headers)

    assert response.status_code == 409


async def test_option_crud(async_client, admin_headers):
    attribute = await _create_size(async_client, admin_headers)

    added = await async_client.post(
        f"/api/attributes/{attribute['id']}/options",
        json={"value": "XL", "metadata": {"chest": "110cm"}},
        headers=admin_headers,
    )
    duplicate = await async_client.post(
        f"/api/attributes/{attribute['id']}/options", json={"value": "S"}, headers=admin_headers
    )
    assert added.status_code == 201
    assert added.json()["metadata"] == {"chest": "110cm"}
    assert duplicate.status_code == 409

    option_id = added.json()["id"]
    renamed = await async_client.patch(
        f"/api/attributes/options/{option_id}", json={"displayValue": "Extra large"}, headers=admin_headers
    )
    assert renamed.json()["displayValue"] == "Extra large"

    deleted = await async_client.delete(f"/api/attributes/options/{option_id}", headers=admin_headers)
    assert deleted.status_code == 204
    options = await async_client.get(f"/api/attributes/{attribute['id']}/options")
    assert [o["value"] for o in options.json()] == ["S", "M", "L"]


async def test_assign_attributes_to_product(async_client, admin_headers, make_product):
    attribute = await _create_size(async_client, admin_headers)
    product = await make_product()

    response = await async_client.put(
        f"/api/products/{product.id}/attributes",
        json={"attributes": [{"attributeId": attribute["id"], "selectedOptions": ["S", "M", "S"]}]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assignments = response.json()
    assert assignments[0]["selectedOptions"] == ["S", "M"]
    assert assignments[0]["priceAdjustment"] == 0
    assert assignments[0]["attribute"]["name"] == "size"

    listed = await async_client.get(f"/api/products/{product.id}/attributes")
    assert len(listed.json()) == 1


async def test_assign_unknown_option_is_rejected(async_client, admin_headers, make_product):
    attribute = await _create_size(async_client, admin_headers)
    product = await make_product()

    response = await async_client.put(
        f"/api/products/{product.id}/attributes",
        json={"attributes": [{"attributeId": attribute["id"], "selectedOptions": ["XXL"]}]},
        headers=admin_headers,
    )

    assert response.status_code == 400


async def test_validate_selection_endpoint(async_client, admin_headers, make_product):
    attribute = await _create_size(async_client, admin_headers)
    product = await make_product()
    await async_client.put(
        f"/api/products/{product.id}/attributes",
        json={"attributes": [{"attributeId": attribute["id"], "selectedOptions": ["S"], "isRequired": True}]},
        headers=admin_headers,
    )

    ok = await async_client.post(
        f"/api/products/{product.id}/attributes/validate", json={"selections": {"size": {"S": 1}}}
    )
    missing = await async_client.post(f"/api/products/{product.id}/attributes/validate", json={})

    assert ok.json() == {"isValid": True, "errors": []}
    assert missing.json()["isValid"] is False
    assert missing.json()["errors"] == ["'Size' is required"]
