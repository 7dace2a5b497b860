# backend/gifting/services/delivery/capacity.py
"""
Booking-time capacity bookkeeping.

Reservations are a single conditional UPDATE, so two orders racing for the
last place in a slot cannot both succeed. Called by order placement.
"""

import logging
from datetime import date

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models.entities import VendorCapacity as DBVendorCapacity
from .config import get_delivery_config

logger = logging.getLogger(__name__)


def _increment(db: Session, vendor_id: int, slot_id: int, target_date: date, default_max: int) -> int:
    result = db.execute(
        update(DBVendorCapacity)
        .where(
            DBVendorCapacity.vendor_id == vendor_id,
            DBVendorCapacity.slot_id == slot_id,
            DBVendorCapacity.date == target_date,
            DBVendorCapacity.booked_orders < func.coalesce(DBVendorCapacity.max_orders, default_max),
        )
        .values(booked_orders=DBVendorCapacity.booked_orders + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def _row_exists(db: Session, vendor_id: int, slot_id: int, target_date: date) -> bool:
    return db.query(DBVendorCapacity.id).filter(
        DBVendorCapacity.vendor_id == vendor_id,
        DBVendorCapacity.slot_id == slot_id,
        DBVendorCapacity.date == target_date,
    ).first() is not None


def reserve_capacity(db: Session, vendor_id: int, slot_id: int, target_date: date) -> bool:
    """
    Take one place in a vendor's slot for a date.

    Returns:
        True if reserved, False if the slot is full.
    """
    default_max = get_delivery_config().default_max_orders

    if _increment(db, vendor_id, slot_id, target_date, default_max):
        db.commit()
        return True

    if _row_exists(db, vendor_id, slot_id, target_date):
        db.rollback()
        logger.info("Capacity full: vendor=%s slot=%s date=%s", vendor_id, slot_id, target_date)
        return False

    db.add(DBVendorCapacity(
        vendor_id=vendor_id,
        slot_id=slot_id,
        date=target_date,
        booked_orders=1,
    ))
    try:
        db.commit()
        return True
    except IntegrityError:
        # Another order created the row first
        db.rollback()

    reserved = bool(_increment(db, vendor_id, slot_id, target_date, default_max))
    db.commit()
    return reserved


def release_capacity(db: Session, vendor_id: int, slot_id: int, target_date: date) -> bool:
    """Give back one place, e.g. after a cancellation. Never goes below zero."""
    result = db.execute(
        update(DBVendorCapacity)
        .where(
            DBVendorCapacity.vendor_id == vendor_id,
            DBVendorCapacity.slot_id == slot_id,
            DBVendorCapacity.date == target_date,
            DBVendorCapacity.booked_orders > 0,
        )
        .values(booked_orders=DBVendorCapacity.booked_orders - 1)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount > 0
