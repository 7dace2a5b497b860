# backend/gifting/services/delivery/same_day.py
"""
Products that can still be delivered today in a city.

A product qualifies when some eligible vendor marks it same-day eligible
and can finish preparing it before closing: now + preparation < close.
The product's cutoff is the latest such close - preparation.
"""

import json
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ...models.entities import (
    Category as DBCategory,
    DeliveryHoliday as DBDeliveryHoliday,
    Product as DBProduct,
    Vendor as DBVendor,
    VendorProduct as DBVendorProduct,
)
from . import rules
from .clock import day_of_week
from .snapshot import VendorOffer, WorkingHours


def find_same_day_products(
    db: Session,
    city_id: int,
    now: datetime,
    category_slug: str | None = None,
) -> list[dict]:
    """
    Same-day products sorted by cutoff, most urgent first.

    Returns:
        List of product dicts with cutoffMinutes and cutoffTime.
    """
    today = now.date()
    if _is_fully_blocked(db, city_id, today):
        return []

    dow = day_of_week(today)
    current_minutes = now.hour * 60 + now.minute

    latest_cutoff: dict[int, int] = {}
    products: dict[int, DBProduct] = {}

    for vp in _get_same_day_vendor_products(db, city_id, today, category_slug):
        offer = VendorOffer(
            vendor_id=vp.vendor_id,
            preparation_time=vp.preparation_time,
            working_hours={
                wh.day_of_week: WorkingHours(wh.day_of_week, wh.open_time, wh.close_time, bool(wh.is_closed))
                for wh in vp.vendor.working_hours
            },
        )
        if not rules.can_dispatch_same_day(offer, dow, current_minutes):
            continue
        cutoff = rules.dispatch_cutoff(offer, dow)
        if cutoff > latest_cutoff.get(vp.product_id, -1):
            latest_cutoff[vp.product_id] = cutoff
            products[vp.product_id] = vp.product

    ordered = sorted(latest_cutoff.items(), key=lambda item: (item[1], item[0]))
    return [_product_payload(products[pid], cutoff) for pid, cutoff in ordered]


def format_cutoff(minutes: int) -> str:
    """Minutes since midnight as "5 PM" / "5:30 PM"."""
    hour, minute = divmod(minutes, 60)
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour - 12 if hour > 12 else (12 if hour == 0 else hour)
    if minute:
        return f"{display_hour}:{minute:02d} {period}"
    return f"{display_hour} {period}"


def _product_payload(product: DBProduct, cutoff: int) -> dict:
    category = None
    if product.category is not None:
        category = {
            "id": product.category.id,
            "name": product.category.name,
            "slug": product.category.slug,
        }
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "basePrice": product.base_price,
        "images": _json_list(product.images),
        "avgRating": product.avg_rating,
        "totalReviews": product.total_reviews,
        "weight": product.weight,
        "tags": _json_list(product.tags),
        "category": category,
        "cutoffMinutes": cutoff,
        "cutoffTime": format_cutoff(cutoff),
    }


def _json_list(raw: str | None) -> list:
    try:
        value = json.loads(raw) if raw else []
    except json.JSONDecodeError:
        value = []
    return value if isinstance(value, list) else []


# ── Database helpers ─────────────────────────────────────────────────────


def _is_fully_blocked(db: Session, city_id: int, today) -> bool:
    holidays = (
        db.query(DBDeliveryHoliday)
        .filter(
            DBDeliveryHoliday.date == today,
            or_(DBDeliveryHoliday.city_id == city_id, DBDeliveryHoliday.city_id.is_(None)),
        )
        .all()
    )
    # City-specific holiday takes priority over a global one
    holiday = next((h for h in holidays if h.city_id == city_id), None)
    if holiday is None:
        holiday = next((h for h in holidays if h.city_id is None), None)
    return holiday is not None and holiday.mode == "FULL_BLOCK"


def _get_same_day_vendor_products(db: Session, city_id: int, today, category_slug: str | None) -> list:
    query = (
        db.query(DBVendorProduct)
        .join(DBVendor, DBVendorProduct.vendor_id == DBVendor.id)
        .join(DBProduct, DBVendorProduct.product_id == DBProduct.id)
        .options(
            selectinload(DBVendorProduct.vendor).selectinload(DBVendor.working_hours),
            selectinload(DBVendorProduct.product).selectinload(DBProduct.category),
        )
        .filter(
            DBVendorProduct.is_same_day_eligible.is_(True),
            DBVendorProduct.is_available.is_(True),
            DBVendor.city_id == city_id,
            DBVendor.status == "APPROVED",
            or_(DBVendor.vacation_end.is_(None), DBVendor.vacation_end <= today),
            DBProduct.is_active.is_(True),
        )
    )
    if category_slug:
        query = query.join(DBCategory, DBProduct.category_id == DBCategory.id).filter(
            DBCategory.slug == category_slug
        )
    return query.order_by(DBVendorProduct.id).all()
