# backend/gifting/services/delivery/cutoff.py
"""
Per-city slot summary table (city_slot_cutoff).

One row per active delivery slot with the number of approved vendors that
accept it. Recalculated on demand by admins; read by the storefront slot
list.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session, selectinload

from ...models.entities import (
    City as DBCity,
    CitySlotCutoff as DBCitySlotCutoff,
    DeliverySlot as DBDeliverySlot,
    Vendor as DBVendor,
)
from . import rules
from .config import DeliveryConfig, get_delivery_config
from .snapshot import VendorOffer

logger = logging.getLogger(__name__)


def recalculate_city_slot_cutoff(
    db: Session,
    city_id: int,
    now: datetime,
    config: DeliveryConfig | None = None,
) -> list[DBCitySlotCutoff]:
    """Upsert city_slot_cutoff rows for every active slot of the platform."""
    config = config or get_delivery_config()

    slots = (
        db.query(DBDeliverySlot)
        .filter(DBDeliverySlot.is_active.is_(True))
        .order_by(DBDeliverySlot.id)
        .all()
    )
    vendors = (
        db.query(DBVendor)
        .options(selectinload(DBVendor.slots))
        .filter(DBVendor.city_id == city_id, DBVendor.status == "APPROVED")
        .all()
    )
    offers = [
        VendorOffer(
            vendor_id=v.id,
            preparation_time=config.default_preparation_minutes,
            slot_preferences={vs.slot_id: bool(vs.is_enabled) for vs in v.slots},
        )
        for v in vendors
    ]

    existing = {
        row.slot_id: row
        for row in db.query(DBCitySlotCutoff).filter(DBCitySlotCutoff.city_id == city_id).all()
    }

    rows = []
    for slot in slots:
        vendor_count = sum(1 for offer in offers if rules.accepts_slot(offer, slot.id))
        row = existing.get(slot.id)
        if row is None:
            row = DBCitySlotCutoff(city_id=city_id, slot_id=slot.id)
            db.add(row)
        row.slot_name = slot.name
        row.slot_slug = slot.slug
        row.slot_start = slot.start_time
        row.slot_end = slot.end_time
        row.cutoff_hours = config.cutoff_for(slot.slot_group)
        row.base_charge = slot.base_charge
        row.min_vendors = vendor_count
        row.is_available = vendor_count > 0
        row.updated_at = now.replace(tzinfo=None)
        rows.append(row)

    db.commit()
    logger.info("Recalculated slot cutoff for city=%s (%d slots)", city_id, len(rows))
    return rows


def recalculate_all_cities(db: Session, now: datetime, config: DeliveryConfig | None = None) -> list[int]:
    """Recalculate every active city. Returns the processed city ids."""
    city_ids = [
        row.id
        for row in db.query(DBCity.id).filter(DBCity.is_active.is_(True)).order_by(DBCity.id).all()
    ]
    for city_id in city_ids:
        recalculate_city_slot_cutoff(db, city_id, now, config)
    return city_ids


def get_city_slot_cutoffs(db: Session, city_id: int) -> list[DBCitySlotCutoff]:
    return (
        db.query(DBCitySlotCutoff)
        .filter(
            DBCitySlotCutoff.city_id == city_id,
            DBCitySlotCutoff.is_available.is_(True),
        )
        .order_by(DBCitySlotCutoff.slot_start)
        .all()
    )
