"""Tests for the service catalogue endpoints."""
from __future__ import annotations

import io
import os

import pytest

from salon.extensions import db
from salon.models import Service

HAIRCUT = {"category": "Hair", "subCategory": "Haircut", "description": "Classic cut",
           "price": 50, "duration": "1h", "available": "Yes"}


def test_create_service_assigns_canonical_id(client, admin) -> None:
    _, headers = admin

    first = client.post("/api/v1/Service", json=HAIRCUT, headers=headers)
    second = client.post("/api/v1/Service", json={**HAIRCUT, "subCategory": "Styling"}, headers=headers)

    assert first.status_code == 201
    body = first.get_json()
    assert body["service_id"] == "service1"
    assert body["available"] is True
    assert body["price"] == 50.0
    assert body["subCategory"] == "Haircut"
    assert second.get_json()["service_id"] == "service2"


def test_create_service_with_explicit_id(client, admin) -> None:
    _, headers = admin
    response = client.post("/api/v1/Service", json={**HAIRCUT, "service_id": "42"}, headers=headers)
    assert response.get_json()["service_id"] == "service42"

    again = client.post("/api/v1/Service", json={**HAIRCUT, "service_id": "service42"}, headers=headers)
    assert again.status_code == 409


def test_concurrent_id_assignment_answers_conflict(app, client, admin, monkeypatch) -> None:
    _, headers = admin
    assert client.post("/api/v1/Service", json=HAIRCUT, headers=headers).status_code == 201

    # Simulate a second create that computed its id before the first committed.
    monkeypatch.setattr("salon.routes._next_service_id", lambda: "service1")
    response = client.post("/api/v1/Service", json={**HAIRCUT, "subCategory": "Styling"}, headers=headers)

    assert response.status_code == 409
    assert response.get_json()["error"] == "conflict"
    with app.app_context():
        assert Service.query.count() == 1


@pytest.mark.parametrize("field,value", [
    ("duration", "90 minutes"),
    ("duration", "0h 0m"),
    ("price", 0),
    ("price", -10),
    ("price", "12.345"),
    ("available", "maybe"),
])
def test_create_service_validation(client, admin, field, value) -> None:
    _, headers = admin
    response = client.post("/api/v1/Service", json={**HAIRCUT, field: value}, headers=headers)

    assert response.status_code == 400
    assert response.get_json()["field"] == field


def test_create_service_requires_admin(client, customer) -> None:
    _, headers = customer
    assert client.post("/api/v1/Service", json=HAIRCUT, headers=headers).status_code == 403
    assert client.post("/api/v1/Service", json=HAIRCUT).status_code == 401


def test_create_service_multipart_with_image(app, client, admin) -> None:
    _, headers = admin
    data = {key: str(value) for key, value in HAIRCUT.items()}
    data["image"] = (io.BytesIO(b"fake-image"), "cut photo.png")

    response = client.post("/api/v1/Service", data=data, headers=headers, content_type="multipart/form-data")

    assert response.status_code == 201
    image = response.get_json()["image"]
    assert image.endswith("cut_photo.png")
    assert os.path.exists(os.path.join(app.config["UPLOAD_FOLDER"], image))


def test_list_get_update_delete_service(app, client, admin) -> None:
    _, headers = admin
    service_id = client.post("/api/v1/Service", json=HAIRCUT, headers=headers).get_json()["id"]

    listing = client.get("/api/v1/Service")
    assert listing.status_code == 200
    assert [s["id"] for s in listing.get_json()] == [service_id]

    updated = client.put(f"/api/v1/Service/{service_id}", json={"price": "55.50", "available": "No"},
                         headers=headers)
    assert updated.status_code == 200
    assert updated.get_json()["price"] == 55.5
    assert updated.get_json()["available"] is False

    assert client.get(f"/api/v1/Service/{service_id}").get_json()["price"] == 55.5

    assert client.delete(f"/api/v1/Service/{service_id}", headers=headers).status_code == 200
    assert client.get(f"/api/v1/Service/{service_id}").status_code == 404
    with app.app_context():
        assert Service.query.count() == 0


def test_update_rejected_leaves_service_unchanged(app, client, admin) -> None:
    _, headers = admin
    service_id = client.post("/api/v1/Service", json=HAIRCUT, headers=headers).get_json()["id"]

    response = client.put(f"/api/v1/Service/{service_id}", json={"category": "Nails", "price": -1},
                          headers=headers)

    assert response.status_code == 400
    with app.app_context():
        assert db.session.get(Service, service_id).category == "Hair"


def test_missing_service_404(client, admin) -> None:
    _, headers = admin
    assert client.put("/api/v1/Service/missing", json={"price": 1}, headers=headers).status_code == 404
    assert client.delete("/api/v1/Service/missing", headers=headers).status_code == 404
