"""Tests for package CRUD with computed price and status."""
from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from salon.extensions import db
from salon.models import Package, Service


def _seed_service(app, service_id: str = "service1") -> str:
    with app.app_context():
        service = Service(service_id=service_id, category="Hair", sub_category="Haircut",
                          duration="1h", price=Decimal("50.00"), available=True)
        db.session.add(service)
        db.session.commit()
        return service.id


def _payload(service_ids, **overrides) -> dict:
    payload = {
        "p_name": "Summer Glow",
        "description": "Cut and facial bundle",
        "services": service_ids,
        "base_price": 100,
        "discount_rate": 25,
        "start_date": "2030-06-01",
        "end_date": "2030-06-30",
        "package_type": "Seasonal",
        "category": "Hair",
    }
    payload.update(overrides)
    return payload


def test_create_package_computes_price_and_status(app, client, admin, frozen_now) -> None:
    _, headers = admin
    service_id = _seed_service(app)

    response = client.post("/api/v1/Package", json=_payload([service_id]), headers=headers)

    assert response.status_code == 201
    body = response.get_json()
    assert body["final_price"] == 75
    assert body["status"] == "active"
    assert body["service_details"] == [
        {"id": service_id, "category": "Hair", "subCategory": "Haircut", "price": 50.0}
    ]


@pytest.mark.parametrize("start,end,status", [
    ("2030-07-01", "2030-07-31", "upcoming"),
    ("2030-05-01", "2030-06-14", "expired"),
    ("2030-06-15", "2030-06-15", "active"),
])
def test_package_status_follows_window(app, client, admin, frozen_now, start, end, status) -> None:
    _, headers = admin
    service_id = _seed_service(app)

    response = client.post("/api/v1/Package", json=_payload([service_id], start_date=start, end_date=end),
                           headers=headers)

    assert response.get_json()["status"] == status


@pytest.mark.parametrize("overrides,field", [
    ({"discount_rate": 101}, "discount_rate"),
    ({"discount_rate": -5}, "discount_rate"),
    ({"discount_rate": "NaN"}, "discount_rate"),
    ({"discount_rate": "sNaN"}, "discount_rate"),
    ({"base_price": -1}, "base_price"),
    ({"start_date": "2030-06-30", "end_date": "2030-06-01"}, "end_date"),
    ({"services": []}, "services"),
    ({"services": ["no-such-service"]}, "services"),
    ({"p_name": "ab"}, "p_name"),
    ({"start_date": "30/06/2030"}, "start_date"),
])
def test_create_package_validation(app, client, admin, overrides, field) -> None:
    _, headers = admin
    service_id = _seed_service(app)

    response = client.post("/api/v1/Package", json=_payload([service_id], **overrides), headers=headers)

    assert response.status_code == 400
    assert response.get_json()["field"] == field


def test_update_package_recomputes_final_price(app, client, admin, frozen_now) -> None:
    _, headers = admin
    service_id = _seed_service(app)
    package_id = client.post("/api/v1/Package", json=_payload([service_id]), headers=headers).get_json()["id"]

    response = client.put(f"/api/v1/Package/{package_id}", json={"discount_rate": 10}, headers=headers)

    assert response.status_code == 200
    assert response.get_json()["final_price"] == 90


def test_update_package_rejects_inverted_window(app, client, admin, frozen_now) -> None:
    _, headers = admin
    service_id = _seed_service(app)
    package_id = client.post("/api/v1/Package", json=_payload([service_id]), headers=headers).get_json()["id"]

    response = client.put(f"/api/v1/Package/{package_id}", json={"end_date": "2030-05-01"}, headers=headers)

    assert response.status_code == 400
    with app.app_context():
        assert db.session.get(Package, package_id).end_date == date(2030, 6, 30)


def test_deleted_service_leaves_dangling_reference(app, client, admin, frozen_now) -> None:
    _, headers = admin
    keep = _seed_service(app, "service1")
    drop = _seed_service(app, "service2")
    package_id = client.post("/api/v1/Package", json=_payload([keep, drop]), headers=headers).get_json()["id"]

    assert client.delete(f"/api/v1/Service/{drop}", headers=headers).status_code == 200

    body = client.get(f"/api/v1/Package/{package_id}").get_json()
    assert body["services"] == [keep, drop]
    assert [d["id"] for d in body["service_details"]] == [keep]


def test_list_and_delete_packages(app, client, admin, frozen_now) -> None:
    _, headers = admin
    service_id = _seed_service(app)
    package_id = client.post("/api/v1/Package", json=_payload([service_id]), headers=headers).get_json()["id"]

    listing = client.get("/api/v1/Package").get_json()
    assert [p["id"] for p in listing] == [package_id]
    assert listing[0]["final_price"] == 75

    assert client.delete(f"/api/v1/Package/{package_id}", headers=headers).status_code == 200
    assert client.get(f"/api/v1/Package/{package_id}").status_code == 404
