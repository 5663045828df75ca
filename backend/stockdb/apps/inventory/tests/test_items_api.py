from __future__ import annotations

import pytest

from conftest import auth_headers


def _create(client, headers, **overrides):
    payload = {"name": "Bolt", "sku": "B-1", "quantity": 1, "price": "1.00"}
    payload.update(overrides)
    return client.post("/items", json=payload, headers=headers)


def test_create_and_fetch(client):
    manager = auth_headers(client, "manager")
    created = _create(client, manager, location="A1")

    assert created.status_code == 201, created.text
    body = client.get(f"/items/{created.json()['id']}", headers=manager).json()
    assert body["sku"] == "B-1"
    assert body["location"] == "A1"


def test_patch_is_accepted_as_update(client):
    manager = auth_headers(client, "manager")
    item_id = _create(client, manager).json()["id"]

    response = client.patch(f"/items/{item_id}", json={"location": "Shelf 4"}, headers=manager)
    assert response.status_code == 200
    assert response.json()["location"] == "Shelf 4"


def test_viewer_is_read_only(client):
    manager = auth_headers(client, "manager")
    viewer = auth_headers(client, "viewer")
    item_id = _create(client, manager).json()["id"]

    assert client.get("/items", headers=viewer).json()["total_items"] == 1
    assert client.get(f"/items/{item_id}", headers=viewer).status_code == 200
    assert _create(client, viewer, sku="X-1").status_code == 403
    assert client.put(f"/items/{item_id}", json={"quantity": 2}, headers=viewer).status_code == 403
    assert client.delete(f"/items/{item_id}", headers=viewer).status_code == 403


def test_body_validation_uses_error_shape(client):
    manager = auth_headers(client, "manager")
    response = _create(client, manager, quantity=-1)

    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["kind"] == "ValidationFailed"
    assert [field["field"] for field in detail["fields"]] == ["quantity"]


@pytest.mark.parametrize("quantity", [True, 4.0, "4"])
def test_quantity_must_be_a_json_integer(client, quantity):
    manager = auth_headers(client, "manager")

    response = _create(client, manager, quantity=quantity)

    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "ValidationFailed"
    assert client.get("/items", headers=manager).json()["total_items"] == 0


def test_update_quantity_rejects_boolean(client):
    manager = auth_headers(client, "manager")
    item_id = _create(client, manager, quantity=3).json()["id"]

    response = client.put(f"/items/{item_id}", json={"quantity": True}, headers=manager)

    assert response.status_code == 400
    assert client.get(f"/items/{item_id}", headers=manager).json()["quantity"] == 3


def test_duplicate_sku_is_conflict(client):
    manager = auth_headers(client, "manager")
    assert _create(client, manager, sku="C-1").status_code == 201

    response = _create(client, manager, sku="C-1", name="Cog")
    assert response.status_code == 409
    assert response.json()["detail"]["kind"] == "ValidationFailed"


def test_search_matches_non_ascii_names(client):
    manager = auth_headers(client, "manager")
    _create(client, manager, name="Виджет", sku="RU-1")

    response = client.get("/items", params={"search": "вИДж"}, headers=manager)
    assert [item["sku"] for item in response.json()["items"]] == ["RU-1"]


def test_pagination_over_http(client):
    manager = auth_headers(client, "manager")
    for n in range(25):
        _create(client, manager, name=f"Thing {n}", sku=f"T-{n:02d}", quantity=n)

    first = client.get("/items", headers=manager).json()
    second = client.get("/items", params={"page": 2}, headers=manager).json()
    beyond = client.get("/items", params={"page": 9, "page_size": 500}, headers=manager).json()

    assert (first["total_items"], first["total_pages"], len(first["items"])) == (25, 2, 20)
    assert len(second["items"]) == 5
    assert {i["sku"] for i in first["items"]}.isdisjoint({i["sku"] for i in second["items"]})
    assert beyond["items"] == [] and beyond["page"] == 9 and beyond["page_size"] == 20
