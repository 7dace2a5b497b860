# backend/gifting/services/delivery/rules.py
"""
Vendor rules with explicit defaults.

Missing vendor data is meaningful: no working hours means open every day,
no slot preference means the slot is enabled, no capacity row means not
full. Each rule reports a RuleState so the default is applied in one place.
"""

from enum import Enum

from .clock import stored_time_to_minutes
from .snapshot import CapacityRow, VendorOffer, WorkingHours


class RuleState(Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    UNSET = "unset"

    @classmethod
    def of(cls, value: bool | None) -> "RuleState":
        if value is None:
            return cls.UNSET
        return cls.ENABLED if value else cls.DISABLED

    def resolve(self, default: bool) -> bool:
        if self is RuleState.UNSET:
            return default
        return self is RuleState.ENABLED


# Defaults applied to UNSET
OPEN_BY_DEFAULT = True
SLOT_ENABLED_BY_DEFAULT = True
FULL_BY_DEFAULT = False


def working_day_state(offer: VendorOffer, dow: int) -> RuleState:
    hours = offer.working_hours.get(dow)
    if hours is None:
        return RuleState.UNSET
    return RuleState.of(not hours.is_closed)


def is_open_on(offer: VendorOffer, dow: int) -> bool:
    return working_day_state(offer, dow).resolve(OPEN_BY_DEFAULT)


def slot_preference_state(offer: VendorOffer, slot_id: int) -> RuleState:
    return RuleState.of(offer.slot_preferences.get(slot_id))


def accepts_slot(offer: VendorOffer, slot_id: int) -> bool:
    return slot_preference_state(offer, slot_id).resolve(SLOT_ENABLED_BY_DEFAULT)


def capacity_state(capacity: CapacityRow | None, default_max_orders: int) -> RuleState:
    """ENABLED means the vendor is full for that date and slot."""
    if capacity is None:
        return RuleState.UNSET
    max_orders = capacity.max_orders if capacity.max_orders is not None else default_max_orders
    return RuleState.of(capacity.booked_orders >= max_orders)


def is_full(capacity: CapacityRow | None, default_max_orders: int) -> bool:
    return capacity_state(capacity, default_max_orders).resolve(FULL_BY_DEFAULT)


def open_hours(offer: VendorOffer, dow: int) -> WorkingHours | None:
    """Working hours usable for time checks: present and not closed."""
    hours = offer.working_hours.get(dow)
    if hours is None or hours.is_closed:
        return None
    return hours


def dispatch_cutoff(offer: VendorOffer, dow: int) -> int | None:
    """
    Latest minute of the day an order can be accepted and still be ready
    before the vendor closes. None when the vendor has no usable hours.
    """
    hours = open_hours(offer, dow)
    if hours is None:
        return None
    return stored_time_to_minutes(hours.close_time) - offer.preparation_time


def can_dispatch_same_day(offer: VendorOffer, dow: int, current_minutes: int) -> bool:
    """current + preparation < close; vendors without hours cannot prove it."""
    cutoff = dispatch_cutoff(offer, dow)
    return cutoff is not None and current_minutes < cutoff


def covers_window(offer: VendorOffer, dow: int, start_hour: int, end_hour: int) -> bool:
    hours = open_hours(offer, dow)
    if hours is None:
        return False
    open_hour = stored_time_to_minutes(hours.open_time) // 60
    close_hour = stored_time_to_minutes(hours.close_time) // 60
    return start_hour >= open_hour and end_hour <= close_hour
