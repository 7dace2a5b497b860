# backend/gifting/services/delivery/queries.py
"""
Database loading for the delivery engine.

Builds a DeliveryContext for one city, a set of products and a date range.
SQLAlchemy errors are not handled here; the endpoints turn them into 500s.
"""

import json
import logging
from datetime import date

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models.entities import (
    City as DBCity,
    CityDeliveryConfig as DBCityDeliveryConfig,
    DeliveryHoliday as DBDeliveryHoliday,
    DeliverySlot as DBDeliverySlot,
    DeliverySurcharge as DBDeliverySurcharge,
    Vendor as DBVendor,
    VendorProduct as DBVendorProduct,
)
from .config import DeliveryConfig, get_delivery_config
from .snapshot import (
    CapacityRow,
    DeliveryContext,
    Holiday,
    SlotConfig,
    SlotOverride,
    Surcharge,
    VendorOffer,
    WorkingHours,
)

logger = logging.getLogger(__name__)


def get_active_city(db: Session, city_id: int | None = None, slug: str | None = None) -> DBCity | None:
    """Get an active city by id or slug."""
    query = db.query(DBCity).filter(DBCity.is_active.is_(True))
    if city_id is not None:
        query = query.filter(DBCity.id == city_id)
    elif slug is not None:
        query = query.filter(DBCity.slug == slug)
    else:
        return None
    return query.first()


def load_delivery_context(
    db: Session,
    city_id: int,
    product_ids: list[int],
    date_from: date,
    date_to: date,
    today: date,
    config: DeliveryConfig | None = None,
) -> DeliveryContext:
    """
    Load the snapshot for [date_from, date_to] (inclusive).

    With no product_ids every eligible vendor of the city is an offer,
    using the default preparation time.
    """
    config = config or get_delivery_config()

    return DeliveryContext(
        city_id=city_id,
        slot_configs=tuple(_get_slot_configs(db, city_id)),
        holidays=tuple(_get_holidays(db, city_id, date_from, date_to)),
        surcharges=tuple(_get_surcharges(db, city_id, date_from, date_to)),
        offers=tuple(_get_vendor_offers(db, city_id, product_ids, date_from, date_to, today, config)),
    )


# ── Snapshot parts ───────────────────────────────────────────────────────


def _get_slot_configs(db: Session, city_id: int) -> list[SlotConfig]:
    rows = (
        db.query(DBCityDeliveryConfig)
        .options(selectinload(DBCityDeliveryConfig.slot))
        .filter(
            DBCityDeliveryConfig.city_id == city_id,
            DBCityDeliveryConfig.is_available.is_(True),
        )
        .order_by(DBCityDeliveryConfig.id)
        .all()
    )
    return [_to_slot_config(row.slot, row.charge_override) for row in rows if row.slot]


def _to_slot_config(slot: DBDeliverySlot, charge_override: float | None) -> SlotConfig:
    return SlotConfig(
        slot_id=slot.id,
        slug=slot.slug,
        name=slot.name,
        group=slot.slot_group,
        start_time=slot.start_time,
        end_time=slot.end_time,
        base_charge=slot.base_charge,
        is_active=bool(slot.is_active),
        charge_override=charge_override,
    )


def _get_holidays(db: Session, city_id: int, date_from: date, date_to: date) -> list[Holiday]:
    rows = (
        db.query(DBDeliveryHoliday)
        .filter(
            DBDeliveryHoliday.date >= date_from,
            DBDeliveryHoliday.date <= date_to,
            or_(DBDeliveryHoliday.city_id == city_id, DBDeliveryHoliday.city_id.is_(None)),
        )
        .order_by(DBDeliveryHoliday.date, DBDeliveryHoliday.id)
        .all()
    )
    return [
        Holiday(
            id=row.id,
            date=row.date,
            mode=row.mode,
            reason=row.reason,
            city_id=row.city_id,
            customer_message=row.customer_message,
            overrides=parse_slot_overrides(row.slot_overrides) if row.mode == "CUSTOM" else {},
        )
        for row in rows
    ]


def parse_slot_overrides(raw: str | None) -> dict[str, SlotOverride]:
    """
    Parse the JSON override list of a CUSTOM holiday.

    Accepts a list of {"slug", "blocked", "priceOverride"} objects, or the
    {"blockedSlots": [slug, ...]} form written by older admin screens.
    """
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed holiday slot overrides: %r", raw)
        return {}

    if isinstance(data, dict):
        data = [{"slug": slug, "blocked": True} for slug in data.get("blockedSlots") or []]
    if not isinstance(data, list):
        return {}

    overrides: dict[str, SlotOverride] = {}
    for item in data:
        if not isinstance(item, dict) or not item.get("slug"):
            continue
        price = item.get("priceOverride")
        overrides[item["slug"]] = SlotOverride(
            slug=item["slug"],
            blocked=bool(item.get("blocked", False)),
            price_override=float(price) if price is not None else None,
        )
    return overrides


def _get_surcharges(db: Session, city_id: int, date_from: date, date_to: date) -> list[Surcharge]:
    rows = (
        db.query(DBDeliverySurcharge)
        .filter(
            DBDeliverySurcharge.is_active.is_(True),
            DBDeliverySurcharge.start_date <= date_to,
            DBDeliverySurcharge.end_date >= date_from,
            or_(DBDeliverySurcharge.city_id == city_id, DBDeliverySurcharge.city_id.is_(None)),
        )
        .order_by(DBDeliverySurcharge.id)
        .all()
    )
    return [
        Surcharge(
            id=row.id,
            name=row.name,
            amount=row.amount,
            applies_to=row.applies_to,
            start_date=row.start_date,
            end_date=row.end_date,
        )
        for row in rows
    ]


def _get_eligible_vendors(db: Session, city_id: int, today: date) -> list[DBVendor]:
    """Approved vendors of the city that are not on vacation; the end date is the day they return."""
    return (
        db.query(DBVendor)
        .options(
            selectinload(DBVendor.working_hours),
            selectinload(DBVendor.slots),
            selectinload(DBVendor.capacity),
        )
        .filter(
            DBVendor.city_id == city_id,
            DBVendor.status == "APPROVED",
            or_(DBVendor.vacation_end.is_(None), DBVendor.vacation_end <= today),
        )
        .order_by(DBVendor.id)
        .all()
    )


def _get_vendor_offers(
    db: Session,
    city_id: int,
    product_ids: list[int],
    date_from: date,
    date_to: date,
    today: date,
    config: DeliveryConfig,
) -> list[VendorOffer]:
    vendors = _get_eligible_vendors(db, city_id, today)
    if not vendors:
        return []

    if not product_ids:
        preparation = {v.id: config.default_preparation_minutes for v in vendors}
    else:
        wanted = set(product_ids)
        rows = (
            db.query(DBVendorProduct)
            .filter(
                DBVendorProduct.vendor_id.in_([v.id for v in vendors]),
                DBVendorProduct.product_id.in_(wanted),
                DBVendorProduct.is_available.is_(True),
            )
            .all()
        )
        carried: dict[int, dict[int, int]] = {}
        for row in rows:
            carried.setdefault(row.vendor_id, {})[row.product_id] = row.preparation_time

        # One vendor fulfils the whole order, so it must carry every product
        preparation = {
            vendor_id: max(times.values())
            for vendor_id, times in carried.items()
            if set(times) == wanted
        }

    offers = []
    for vendor in vendors:
        if vendor.id not in preparation:
            continue
        offers.append(VendorOffer(
            vendor_id=vendor.id,
            preparation_time=preparation[vendor.id],
            working_hours={
                wh.day_of_week: WorkingHours(
                    day_of_week=wh.day_of_week,
                    open_time=wh.open_time,
                    close_time=wh.close_time,
                    is_closed=bool(wh.is_closed),
                )
                for wh in vendor.working_hours
            },
            slot_preferences={vs.slot_id: bool(vs.is_enabled) for vs in vendor.slots},
            capacity={
                (cap.date, cap.slot_id): CapacityRow(
                    slot_id=cap.slot_id,
                    date=cap.date,
                    booked_orders=cap.booked_orders,
                    max_orders=cap.max_orders,
                )
                for cap in vendor.capacity
                if date_from <= cap.date <= date_to
            },
        ))
    return offers
