"""
Audit endpoints, driven through the item API so every entry is real.
"""

from __future__ import annotations

from conftest import auth_headers


def test_widget_scenario(client, fake_clock):
    manager = auth_headers(client, "manager")
    admin = auth_headers(client, "admin")

    created = client.post(
        "/items",
        json={"name": "Widget", "sku": "W-1", "quantity": 5, "price": "9.99", "location": "A1"},
        headers=manager,
    )
    assert created.status_code == 201, created.text
    item_id = created.json()["id"]

    updated = client.put(f"/items/{item_id}", json={"quantity": 8}, headers=manager)
    assert updated.status_code == 200
    assert updated.json()["quantity"] == 8

    denied = client.delete(f"/items/{item_id}", headers=manager)
    assert denied.status_code == 403
    assert denied.json()["detail"]["kind"] == "Unauthorized"

    assert client.delete(f"/items/{item_id}", headers=admin).status_code == 204
    assert client.get(f"/items/{item_id}", headers=admin).status_code == 404

    audit = client.get("/audit", params={"item_id": item_id}, headers=manager).json()
    assert [entry["action"] for entry in audit["items"]] == ["DELETE", "UPDATE", "INSERT"]
    update = audit["items"][1]
    assert update["diff"] == {"quantity": {"old": 5, "new": 8}}
    assert update["changes"] == [{"field": "quantity", "old_value": 5, "new_value": 8}]
    assert update["username"] == "manager"

    trail = client.get(f"/items/{item_id}/audit", headers=manager).json()
    assert trail["total_items"] == 3


def test_viewer_cannot_read_audit(client):
    viewer = auth_headers(client, "viewer")
    item_id = "0190f5c2-0000-7000-8000-000000000001"

    assert client.get(f"/items/{item_id}/audit", headers=viewer).status_code == 403
    assert client.get("/audit", headers=viewer).status_code == 403
    assert client.get("/audit/export", headers=viewer).status_code == 403


def test_invalid_action_filter(client):
    manager = auth_headers(client, "manager")
    response = client.get("/audit", params={"action": "RENAME"}, headers=manager)
    assert response.status_code == 400
    assert response.json()["detail"]["kind"] == "ValidationFailed"


def test_export_download(client, fake_clock):
    manager = auth_headers(client, "manager")
    for n in range(3):
        item_id = client.post(
            "/items",
            json={"name": f"Part {n}", "sku": f"P-{n}", "quantity": 1, "price": "1.00"},
            headers=manager,
        ).json()["id"]
        client.put(f"/items/{item_id}", json={"quantity": 2}, headers=manager)

    response = client.get("/audit/export", params={"action": "UPDATE"}, headers=manager)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="audit_2024-03-01.csv"'
    lines = response.content.decode("utf-8").strip().split("\n")
    assert lines[0] == "action,item_id,username,changed_at,diff"
    assert len(lines) == 4
    assert all(line.startswith("UPDATE,") for line in lines[1:])
