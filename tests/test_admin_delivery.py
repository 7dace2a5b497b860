import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from gifting.main import app
from gifting.models.entities import DeliveryHoliday
from gifting.redis_client import get_redis


@pytest.fixture
def fake_redis():
    fake = MagicMock()
    fake.scan_iter.return_value = iter(["delivery:dates:1:1:2024-06-03:15"])
    app.dependency_overrides[get_redis] = lambda: fake
    return fake


# ── Slots ────────────────────────────────────────────────────────────────


def test_list_and_update_slots(client, shop, fake_redis):
    response = client.get("/api/admin/delivery/slots")
    assert response.status_code == 200
    assert [s["slug"] for s in response.json()] == [
        "standard", "fixed-slot", "midnight", "early-morning", "express",
    ]

    express = shop["slots"]["express"]
    response = client.patch(f"/api/admin/delivery/slots/{express.id}", json={"baseCharge": 299, "endTime": "22:00"})

    assert response.status_code == 200
    body = response.json()
    assert body["baseCharge"] == 299
    assert body["endTime"] == "22:00"
    assert body["slotGroup"] == "express"
    fake_redis.scan_iter.assert_called_once_with(match="delivery:dates:*")
    fake_redis.delete.assert_called_once_with("delivery:dates:1:1:2024-06-03:15")


def test_update_slot_validation(client, shop):
    standard = shop["slots"]["standard"]

    response = client.patch(f"/api/admin/delivery/slots/{standard.id}", json={"startTime": "9am"})
    assert response.status_code == 400
    assert response.json()["success"] is False

    response = client.patch("/api/admin/delivery/slots/999", json={"isActive": False})
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Delivery slot not found"}


def test_deactivated_slot_disappears_from_availability(client, shop):
    express = shop["slots"]["express"]
    client.patch(f"/api/admin/delivery/slots/{express.id}", json={"isActive": False})

    response = client.get("/api/delivery/availability", params={
        "productId": shop["product"].id, "cityId": shop["city"].id, "date": "2024-06-04",
    })

    assert "express" not in [s["slug"] for s in response.json()["data"]["slots"]]


# ── City config ──────────────────────────────────────────────────────────


def test_city_config(client, shop, fake_redis):
    city = shop["city"]
    response = client.get(f"/api/admin/delivery/city-config/{city.id}")

    assert response.status_code == 200
    assert len(response.json()["slots"]) == 5

    midnight = shop["slots"]["midnight"]
    response = client.patch(f"/api/admin/delivery/city-config/{city.id}", json={
        "baseDeliveryCharge": 49,
        "freeDeliveryAbove": 999,
        "slots": [{"slotId": midnight.id, "isAvailable": False, "chargeOverride": 149}],
    })

    assert response.status_code == 200
    body = response.json()
    assert body["baseDeliveryCharge"] == 49
    assert body["freeDeliveryAbove"] == 999
    row = next(s for s in body["slots"] if s["slug"] == "midnight")
    assert row == {
        "slotId": midnight.id,
        "slug": "midnight",
        "name": "Midnight",
        "slotGroup": "midnight",
        "isAvailable": False,
        "chargeOverride": 149,
    }
    fake_redis.scan_iter.assert_called_once_with(match=f"delivery:dates:{city.id}:*")


def test_city_config_adds_missing_slot(client, make):
    city = make.city()
    slots = make.slots()

    response = client.patch(f"/api/admin/delivery/city-config/{city.id}", json={
        "slots": [{"slotId": slots["express"].id, "isAvailable": True}],
    })

    assert [s["slug"] for s in response.json()["slots"]] == ["express"]


def test_city_config_not_found(client, shop):
    assert client.get("/api/admin/delivery/city-config/999").status_code == 404

    response = client.patch(f"/api/admin/delivery/city-config/{shop['city'].id}", json={
        "slots": [{"slotId": 999, "isAvailable": True}],
    })
    assert response.status_code == 404


# ── Holidays ─────────────────────────────────────────────────────────────


def test_create_full_block_holiday(client, shop, fake_redis):
    response = client.post("/api/admin/delivery/holidays", json={
        "date": "2024-11-01",
        "reason": "Diwali",
        "cityId": shop["city"].id,
        "customerMessage": "Happy Diwali! Deliveries resume tomorrow.",
    })

    assert response.status_code == 201
    body = response.json()
    assert body["mode"] == "FULL_BLOCK"
    assert body["date"] == "2024-11-01"
    assert body["cityName"] == "Chandigarh"
    assert body["slotOverrides"] == []
    fake_redis.scan_iter.assert_called_once_with(match=f"delivery:dates:{shop['city'].id}:*")


def test_create_custom_holiday(client, shop, db):
    response = client.post("/api/admin/delivery/holidays", json={
        "date": "2024-08-19",
        "reason": "Raksha Bandhan",
        "slotOverrides": [{"slug": "midnight", "priceOverride": 99}],
        "blockedSlots": ["express"],
    })

    assert response.status_code == 201
    body = response.json()
    assert body["mode"] == "CUSTOM"
    assert body["cityId"] is None
    assert {o["slug"]: o for o in body["slotOverrides"]} == {
        "midnight": {"slug": "midnight", "blocked": False, "priceOverride": 99},
        "express": {"slug": "express", "blocked": True, "priceOverride": None},
    }

    stored = json.loads(db.get(DeliveryHoliday, body["id"]).slot_overrides)
    assert stored[0] == {"slug": "midnight", "blocked": False, "priceOverride": 99}

    response = client.get("/api/delivery/availability", params={
        "productId": shop["product"].id, "cityId": shop["city"].id, "date": "2024-08-19",
    })
    slots = {s["slug"]: s for s in response.json()["data"]["slots"]}
    assert "express" not in slots
    assert slots["midnight"]["price"] == 99


@pytest.mark.parametrize("payload, error", [
    ({"reason": "Diwali"}, "Date and reason are required"),
    ({"date": "2024-11-01", "reason": "   "}, "Date and reason are required"),
    ({"date": "2024-11-01", "reason": "Diwali", "mode": "CUSTOM"}, "CUSTOM holidays need slot overrides"),
])
def test_create_holiday_validation(client, shop, payload, error):
    response = client.post("/api/admin/delivery/holidays", json=payload)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": error}


def test_create_holiday_rejects_unknown_mode_and_city(client, shop):
    response = client.post("/api/admin/delivery/holidays", json={
        "date": "2024-11-01", "reason": "Diwali", "mode": "HALF_DAY",
    })
    assert response.status_code == 400

    response = client.post("/api/admin/delivery/holidays", json={
        "date": "2024-11-01", "reason": "Diwali", "cityId": 999,
    })
    assert response.status_code == 404


def test_second_holiday_for_same_date_and_scope_conflicts(client, shop, make):
    make.holiday(date(2024, 11, 1), reason="Diwali", city=shop["city"])
    make.holiday(date(2024, 11, 2), reason="Govardhan Puja")

    response = client.post("/api/admin/delivery/holidays", json={
        "date": "2024-11-01", "reason": "Diwali again", "cityId": shop["city"].id,
    })
    assert response.status_code == 409
    assert response.json() == {"success": False, "error": "A holiday already exists for this date"}

    response = client.post("/api/admin/delivery/holidays", json={"date": "2024-11-02", "reason": "Duplicate"})
    assert response.status_code == 409

    # A global holiday may sit next to a city one on the same date
    response = client.post("/api/admin/delivery/holidays", json={"date": "2024-11-01", "reason": "National"})
    assert response.status_code == 201


def test_list_and_delete_holidays(client, shop, make, fake_redis):
    past = make.holiday(date(2024, 5, 1), reason="Labour Day")
    upcoming = make.holiday(date(2024, 8, 15), reason="Independence Day", city=shop["city"])

    listed = client.get("/api/admin/delivery/holidays").json()
    assert [h["id"] for h in listed] == [past.id, upcoming.id]

    listed = client.get("/api/admin/delivery/holidays", params={"upcoming": True}).json()
    assert [h["id"] for h in listed] == [upcoming.id]

    listed = client.get("/api/admin/delivery/holidays", params={"cityId": shop["city"].id}).json()
    assert [h["reason"] for h in listed] == ["Independence Day"]

    response = client.delete(f"/api/admin/delivery/holidays/{upcoming.id}")
    assert response.status_code == 204
    fake_redis.scan_iter.assert_called_once_with(match=f"delivery:dates:{shop['city'].id}:*")

    assert client.delete(f"/api/admin/delivery/holidays/{upcoming.id}").status_code == 404


# ── Surcharges ───────────────────────────────────────────────────────────


def test_surcharge_lifecycle(client, shop, fake_redis):
    response = client.post("/api/admin/delivery/surcharges", json={
        "name": " Monsoon ", "startDate": "2024-07-01", "endDate": "2024-07-31", "amount": 25,
    })

    assert response.status_code == 201
    created = response.json()
    assert created["name"] == "Monsoon"
    assert created["appliesTo"] == "all"
    assert created["isActive"] is True

    response = client.patch(f"/api/admin/delivery/surcharges/{created['id']}", json={"amount": 40})
    assert response.json()["amount"] == 40

    assert [s["id"] for s in client.get("/api/admin/delivery/surcharges").json()] == [created["id"]]

    assert client.delete(f"/api/admin/delivery/surcharges/{created['id']}").status_code == 204
    assert client.get("/api/admin/delivery/surcharges").json() == []
    assert fake_redis.scan_iter.call_count == 3


@pytest.mark.parametrize("payload, error", [
    ({"startDate": "2024-07-01", "endDate": "2024-07-31", "amount": 25}, "Name, dates, and amount are required"),
    ({"name": "Monsoon", "endDate": "2024-07-31", "amount": 25}, "Name, dates, and amount are required"),
    ({"name": "Monsoon", "startDate": "2024-07-01", "endDate": "2024-07-31"}, "Name, dates, and amount are required"),
    ({"name": "Monsoon", "startDate": "2024-07-31", "endDate": "2024-07-01", "amount": 25},
     "endDate cannot be before startDate"),
])
def test_create_surcharge_validation(client, payload, error):
    response = client.post("/api/admin/delivery/surcharges", json=payload)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": error}


def test_update_surcharge_keeps_date_order(client, make):
    surcharge = make.surcharge("Monsoon", 25, date(2024, 7, 1), date(2024, 7, 31))

    response = client.patch(f"/api/admin/delivery/surcharges/{surcharge.id}", json={"endDate": "2024-06-01"})
    assert response.status_code == 400

    listed = client.get("/api/admin/delivery/surcharges").json()
    assert listed[0]["endDate"] == "2024-07-31"

    assert client.patch("/api/admin/delivery/surcharges/999", json={"amount": 1}).status_code == 404


def test_negative_surcharge_is_rejected(client):
    response = client.post("/api/admin/delivery/surcharges", json={
        "name": "Refund", "startDate": "2024-07-01", "endDate": "2024-07-31", "amount": -5,
    })

    assert response.status_code == 400


# ── Recalculation ────────────────────────────────────────────────────────


def test_recalculate_all_cities(client, shop, make):
    other = make.city(name="Mohali", slug="mohali")
    make.city(name="Shimla", slug="shimla", is_active=False)

    response = client.post("/api/admin/recalculate-slots")

    assert response.status_code == 200
    assert response.json()["cityIds"] == [shop["city"].id, other.id]


def test_recalculate_unknown_city(client):
    response = client.post("/api/admin/recalculate-slots", json={"cityId": 999})

    assert response.status_code == 404
