"""End-to-end flows across services, packages, appointments and feedback."""
from __future__ import annotations

from datetime import datetime, timedelta


def test_service_then_package_final_price(client, admin, frozen_now) -> None:
    _, headers = admin

    service = client.post(
        "/api/v1/Service",
        json={"category": "Hair", "subCategory": "Haircut", "price": 50, "duration": "1h", "available": "Yes"},
        headers=headers,
    )
    assert service.status_code == 201
    service_id = service.get_json()["id"]

    package = client.post(
        "/api/v1/Package",
        json={
            "p_name": "Haircut Deal",
            "services": [service_id],
            "base_price": 100,
            "discount_rate": 25,
            "start_date": "2030-06-01",
            "end_date": "2030-12-31",
        },
        headers=headers,
    )
    assert package.status_code == 201

    fetched = client.get(f"/api/v1/Package/{package.get_json()['id']}")
    assert fetched.status_code == 200
    assert fetched.get_json()["final_price"] == 75


def test_same_day_booking_respects_current_time(client, customer, frozen_now) -> None:
    _, headers = customer
    base = {
        "client_name": "Jane Doe",
        "client_email": "jane@example.com",
        "client_phone": "0771234567",
        "stylist": "Nimali",
        "services": ["Haircut"],
        "appoi_date": frozen_now.date().isoformat(),
    }
    past = (frozen_now - timedelta(minutes=1)).strftime("%H:%M")
    future = (frozen_now + timedelta(minutes=1)).strftime("%H:%M")

    rejected = client.post("/api/v1/appoiment", json={**base, "appoi_time": past}, headers=headers)
    assert rejected.status_code == 400
    assert rejected.get_json()["field"] == "appoi_time"

    accepted = client.post("/api/v1/appoiment", json={**base, "appoi_time": future}, headers=headers)
    assert accepted.status_code == 201
    assert accepted.get_json()["status"] == "Processing"


def test_feedback_with_out_of_range_rating_rejected(client, customer, frozen_now) -> None:
    _, headers = customer
    response = client.post(
        "/api/v1/feedback",
        json={
            "serviceID": "service1",
            "message": "Too good",
            "star_rating": 6,
            "date_of_service": frozen_now.date().isoformat(),
        },
        headers=headers,
    )
    assert response.status_code == 400


def test_feedback_for_historic_service_reference_formats(client, admin, customer, frozen_now) -> None:
    _, admin_headers = admin
    _, headers = customer
    service = client.post(
        "/api/v1/Service",
        json={"category": "Skin", "subCategory": "Facial", "price": 80, "duration": "1h 15m",
              "available": "Yes", "service_id": "service42"},
        headers=admin_headers,
    ).get_json()

    for ref in ("42", "service42", service["id"]):
        created = client.post(
            "/api/v1/feedback",
            json={"serviceID": ref, "message": "Relaxing", "star_rating": 5,
                  "date_of_service": frozen_now.date().isoformat()},
            headers=headers,
        )
        assert created.status_code == 201

    rows = client.get("/api/v1/feedback").get_json()
    assert len(rows) == 3
    assert all(row["serviceDetails"] == {"category": "Skin", "subCategory": "Facial"} for row in rows)
