import json
import os
from datetime import datetime

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.pop("REDIS_URL", None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gifting.database import get_db
from gifting.main import app
from gifting.models.entities import (
    Base,
    Category,
    City,
    CityDeliveryConfig,
    DeliveryHoliday,
    DeliverySlot,
    DeliverySurcharge,
    Product,
    Vendor,
    VendorCapacity,
    VendorProduct,
    VendorSlot,
    VendorWorkingHours,
)
from gifting.redis_client import get_redis
from gifting.services.delivery.clock import IST, FixedClock, get_clock

# Monday 3 June 2024, 10:00 IST
DEFAULT_NOW = datetime(2024, 6, 3, 10, 0, tzinfo=IST)

PLATFORM_SLOTS = [
    ("Standard", "standard", "standard", "09:00", "21:00", 0),
    ("Fixed Slot", "fixed-slot", "fixed", "09:00", "21:00", 50),
    ("Midnight", "midnight", "midnight", "23:00", "23:59", 199),
    ("Early Morning", "early-morning", "early-morning", "06:00", "08:00", 149),
    ("Express", "express", "express", "00:00", "23:59", 249),
]


class Factory:
    """Inserts rows with sensible defaults."""

    def __init__(self, db):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj

    def city(self, name="Chandigarh", slug="chandigarh", is_active=True):
        return self._save(City(name=name, slug=slug, is_active=is_active))

    def slots(self, city=None):
        slots = {}
        for name, slug, group, start, end, charge in PLATFORM_SLOTS:
            slots[slug] = self._save(DeliverySlot(
                name=name, slug=slug, slot_group=group,
                start_time=start, end_time=end, base_charge=charge,
            ))
        if city is not None:
            for slot in slots.values():
                self.city_config(city, slot)
        return slots

    def city_config(self, city, slot, is_available=True, charge_override=None):
        return self._save(CityDeliveryConfig(
            city_id=city.id, slot_id=slot.id,
            is_available=is_available, charge_override=charge_override,
        ))

    def category(self, name="Cakes", slug="cakes"):
        return self._save(Category(name=name, slug=slug))

    def product(self, name="Chocolate Truffle Cake", slug="chocolate-truffle-cake", category=None, **kwargs):
        return self._save(Product(
            name=name, slug=slug, base_price=kwargs.pop("base_price", 599),
            category_id=category.id if category else None,
            images=json.dumps(kwargs.pop("images", ["cake.jpg"])),
            **kwargs,
        ))

    def vendor(self, city, name="Sweet Tooth Bakery", status="APPROVED", vacation_end=None):
        return self._save(Vendor(
            business_name=name, city_id=city.id, status=status, vacation_end=vacation_end,
        ))

    def vendor_product(self, vendor, product, preparation_time=120, same_day=True, is_available=True):
        return self._save(VendorProduct(
            vendor_id=vendor.id, product_id=product.id,
            preparation_time=preparation_time,
            is_same_day_eligible=same_day, is_available=is_available,
        ))

    def working_hours(self, vendor, open_time="09:00", close_time="21:00", days=range(7), is_closed=False):
        for dow in days:
            self.db.add(VendorWorkingHours(
                vendor_id=vendor.id, day_of_week=dow,
                open_time=open_time, close_time=close_time, is_closed=is_closed,
            ))
        self.db.commit()

    def vendor_slot(self, vendor, slot, is_enabled):
        return self._save(VendorSlot(vendor_id=vendor.id, slot_id=slot.id, is_enabled=is_enabled))

    def capacity(self, vendor, slot, on, booked, max_orders=None):
        return self._save(VendorCapacity(
            vendor_id=vendor.id, slot_id=slot.id, date=on,
            booked_orders=booked, max_orders=max_orders,
        ))

    def holiday(self, on, mode="FULL_BLOCK", city=None, reason="Diwali", customer_message=None, overrides=None):
        return self._save(DeliveryHoliday(
            date=on, mode=mode, city_id=city.id if city else None,
            reason=reason, customer_message=customer_message,
            slot_overrides=json.dumps(overrides) if overrides is not None else None,
        ))

    def surcharge(self, name, amount, start, end, city=None, is_active=True, applies_to="all"):
        return self._save(DeliverySurcharge(
            name=name, amount=amount, start_date=start, end_date=end,
            city_id=city.id if city else None, is_active=is_active, applies_to=applies_to,
        ))


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def make(db):
    return Factory(db)


@pytest.fixture
def clock():
    return FixedClock(DEFAULT_NOW)


@pytest.fixture
def redis_mock():
    return None


@pytest.fixture
def client(db, clock, redis_mock):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_redis] = lambda: redis_mock
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def shop(make):
    """A city with all platform slots, one cake and one approved bakery open 09:00-21:00."""
    city = make.city()
    slots = make.slots(city)
    category = make.category()
    product = make.product(category=category)
    vendor = make.vendor(city)
    make.vendor_product(vendor, product)
    make.working_hours(vendor)
    return {
        "city": city,
        "slots": slots,
        "category": category,
        "product": product,
        "vendor": vendor,
    }
