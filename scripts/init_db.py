"""
Create the delivery tables and seed the platform delivery slots.

Usage: python scripts/init_db.py [city-slug ...]
Each given city gets every slot enabled in city_delivery_configs.
"""

import logging
import sys
import pathlib

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1] / "backend"))

from gifting.database import SessionLocal, engine
from gifting.models.entities import Base, City, CityDeliveryConfig, DeliverySlot

logger = logging.getLogger("init_db")

PLATFORM_SLOTS = [
    # name, slug, group, start, end, base charge
    ("Standard", "standard", "standard", "09:00", "21:00", 0),
    ("Fixed Slot", "fixed-slot", "fixed", "09:00", "21:00", 50),
    ("Midnight", "midnight", "midnight", "23:00", "23:59", 199),
    ("Early Morning", "early-morning", "early-morning", "06:00", "08:00", 149),
    ("Express", "express", "express", "00:00", "23:59", 249),
]


def seed_slots(db) -> list[DeliverySlot]:
    slots = []
    for name, slug, group, start, end, charge in PLATFORM_SLOTS:
        slot = db.query(DeliverySlot).filter(DeliverySlot.slug == slug).first()
        if slot is None:
            slot = DeliverySlot(
                name=name,
                slug=slug,
                slot_group=group,
                start_time=start,
                end_time=end,
                base_charge=charge,
            )
            db.add(slot)
            logger.info("Created delivery slot %s", slug)
        slots.append(slot)
    db.flush()
    return slots


def link_city(db, city_slug: str, slots: list[DeliverySlot]) -> None:
    city = db.query(City).filter(City.slug == city_slug).first()
    if city is None:
        raise RuntimeError(f"City {city_slug!r} not found")
    for slot in slots:
        exists = db.query(CityDeliveryConfig).filter(
            CityDeliveryConfig.city_id == city.id,
            CityDeliveryConfig.slot_id == slot.id,
        ).first()
        if exists is None:
            db.add(CityDeliveryConfig(city_id=city.id, slot_id=slot.id, is_available=True))
    logger.info("Linked %d slots to %s", len(slots), city_slug)


def main(city_slugs: list[str]) -> None:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        slots = seed_slots(db)
        for city_slug in city_slugs:
            link_city(db, city_slug, slots)
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    main(sys.argv[1:])
