# backend/gifting/services/delivery/__init__.py
"""
Delivery availability module.

Snapshot loading (queries) → pure resolution (resolver) → response
projections. Calendar, same-day listing and cutoff summaries reuse the
same rules.
"""

from .config import DeliveryConfig, get_delivery_config
from .clock import Clock, FixedClock, SystemClock, get_clock, parse_local_date
from .resolver import DayAvailability, resolve_slots
from .queries import load_delivery_context, get_active_city
from .projections import availability_payload, slots_summary_payload
from .calendar import calculate_available_dates
from .cache import invalidate_available_dates

__all__ = [
    "DeliveryConfig",
    "get_delivery_config",
    "Clock",
    "FixedClock",
    "SystemClock",
    "get_clock",
    "parse_local_date",
    "DayAvailability",
    "resolve_slots",
    "load_delivery_context",
    "get_active_city",
    "availability_payload",
    "slots_summary_payload",
    "calculate_available_dates",
    "invalidate_available_dates",
]
