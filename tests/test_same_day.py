from datetime import date, datetime

import pytest

from gifting.main import app
from gifting.services.delivery.clock import IST, FixedClock, get_clock
from gifting.services.delivery.same_day import format_cutoff


def same_day(client, **params):
    response = client.get("/api/products/same-day", params=params)
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.fixture
def bouquet(make, shop):
    flowers = make.category(name="Flowers", slug="flowers")
    product = make.product(name="Rose Bouquet", slug="rose-bouquet", category=flowers, tags='["roses"]')
    florist = make.vendor(shop["city"], name="Petal Point")
    # 21:00 close - 300 minutes = 16:00
    make.vendor_product(florist, product, preparation_time=300)
    make.working_hours(florist)
    return product


def test_products_sorted_by_cutoff(client, shop, bouquet):
    data = same_day(client, city="chandigarh")

    assert [p["slug"] for p in data["products"]] == ["rose-bouquet", "chocolate-truffle-cake"]
    rose, cake = data["products"]
    assert rose["cutoffMinutes"] == 960
    assert rose["cutoffTime"] == "4 PM"
    assert rose["tags"] == ["roses"]
    assert rose["category"]["slug"] == "flowers"
    assert cake["cutoffMinutes"] == 1140
    assert cake["cutoffTime"] == "7 PM"
    assert cake["images"] == ["cake.jpg"]
    assert cake["basePrice"] == 599
    assert data["generatedAt"] == "2024-06-03T10:00:00+05:30"


def test_city_id_param(client, shop):
    data = same_day(client, cityId=shop["city"].id)

    assert [p["id"] for p in data["products"]] == [shop["product"].id]


def test_category_filter(client, shop, bouquet):
    data = same_day(client, city="chandigarh", category="cakes")

    assert [p["slug"] for p in data["products"]] == ["chocolate-truffle-cake"]


def test_products_past_cutoff_are_dropped(client, shop, bouquet):
    app.dependency_overrides[get_clock] = lambda: FixedClock(datetime(2024, 6, 3, 16, 0, tzinfo=IST))
    data = same_day(client, city="chandigarh")

    assert [p["slug"] for p in data["products"]] == ["chocolate-truffle-cake"]


def test_latest_vendor_cutoff_wins(client, shop, make):
    late = make.vendor(shop["city"], name="Night Oven")
    make.vendor_product(late, shop["product"], preparation_time=60)
    make.working_hours(late, close_time="23:00")
    data = same_day(client, city="chandigarh")

    assert len(data["products"]) == 1
    assert data["products"][0]["cutoffMinutes"] == 22 * 60
    assert data["products"][0]["cutoffTime"] == "10 PM"


def test_ineligible_products_are_excluded(client, make):
    city = make.city()
    cake = make.product()
    vendor = make.vendor(city)
    make.vendor_product(vendor, cake, same_day=False)
    make.working_hours(vendor)

    no_hours = make.vendor(city, name="No Hours Bakery")
    make.vendor_product(no_hours, make.product(name="Brownie Box", slug="brownie-box"))

    pending = make.vendor(city, name="New Bakery", status="PENDING")
    make.vendor_product(pending, make.product(name="Cupcakes", slug="cupcakes"))
    make.working_hours(pending)

    assert same_day(client, city="chandigarh")["products"] == []


def test_vacationing_vendor_is_excluded(client, shop, db):
    shop["vendor"].vacation_end = date(2024, 6, 4)
    db.commit()

    assert same_day(client, city="chandigarh")["products"] == []

    # Back at work on the end date
    shop["vendor"].vacation_end = date(2024, 6, 3)
    db.commit()

    assert len(same_day(client, city="chandigarh")["products"]) == 1


def test_full_block_today_returns_nothing(client, shop, make):
    make.holiday(date(2024, 6, 3), reason="Bandh")

    assert same_day(client, city="chandigarh")["products"] == []


def test_city_holiday_wins_over_global_block(client, shop, make):
    make.holiday(date(2024, 6, 3), mode="FULL_BLOCK", reason="National")
    make.holiday(date(2024, 6, 3), mode="STANDARD_ONLY", city=shop["city"], reason="Local")

    assert len(same_day(client, city="chandigarh")["products"]) == 1


def test_city_is_required(client):
    response = client.get("/api/products/same-day")

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "city or cityId is required"}


def test_unknown_city(client, shop):
    response = client.get("/api/products/same-day", params={"city": "atlantis"})

    assert response.status_code == 404
    assert response.json()["error"] == "City not found"


@pytest.mark.parametrize("minutes, expected", [
    (0, "12 AM"),
    (30, "12:30 AM"),
    (570, "9:30 AM"),
    (720, "12 PM"),
    (1020, "5 PM"),
    (1050, "5:30 PM"),
])
def test_format_cutoff(minutes, expected):
    assert format_cutoff(minutes) == expected
