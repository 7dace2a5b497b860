# backend/gifting/services/delivery/calendar.py
"""
Available delivery dates for a product in a city.

A date is available when the resolver offers at least one available slot
on it. One snapshot is loaded for the whole range and the resolver runs
once per day against it.
"""

from datetime import datetime, timedelta

from redis import Redis
from sqlalchemy.orm import Session

from .cache import AvailableDatesCache
from .config import DeliveryConfig, get_delivery_config
from .queries import load_delivery_context
from .resolver import resolve_slots


def calculate_available_dates(
    db: Session,
    city_id: int,
    product_id: int,
    now: datetime,
    days: int | None = None,
    config: DeliveryConfig | None = None,
    redis: Redis | None = None,
    cache_ttl: int = 300,
) -> list[str]:
    """
    Dates from today through today + days (IST) with an available slot.

    Returns:
        Sorted list of "YYYY-MM-DD" strings.
    """
    config = config or get_delivery_config()
    if days is None:
        days = config.available_dates_days
    days = max(1, min(days, config.max_available_dates_days))
    today = now.date()

    cache = AvailableDatesCache(redis, cache_ttl) if redis is not None else None
    if cache is not None:
        cached = cache.get(city_id, product_id, today, days)
        if cached is not None:
            return cached

    end = today + timedelta(days=days)
    context = load_delivery_context(db, city_id, [product_id], today, end, today, config)

    available = []
    if context.offers and context.slot_configs:
        for offset in range(days + 1):
            target = today + timedelta(days=offset)
            if resolve_slots(context, target, now, config).has_available_slot:
                available.append(target.isoformat())

    if cache is not None:
        cache.store(city_id, product_id, today, days, available)
    return available
