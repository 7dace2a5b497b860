# backend/gifting/services/delivery/snapshot.py
"""
Read-only snapshot of everything the resolver needs.

Loaded once per request by queries.py, then evaluated in memory. The
resolver never touches the database.
"""

from dataclasses import dataclass, field
from datetime import date


@dataclass(frozen=True)
class SlotConfig:
    """A delivery slot enabled for the city, with the city's charge override."""
    slot_id: int
    slug: str
    name: str
    group: str
    start_time: str
    end_time: str
    base_charge: float
    is_active: bool = True
    charge_override: float | None = None

    @property
    def charge(self) -> float:
        return self.charge_override if self.charge_override is not None else self.base_charge


@dataclass(frozen=True)
class SlotOverride:
    slug: str
    blocked: bool = False
    price_override: float | None = None


@dataclass(frozen=True)
class Holiday:
    id: int
    date: date
    mode: str
    reason: str
    city_id: int | None = None
    customer_message: str | None = None
    overrides: dict[str, SlotOverride] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return self.customer_message or self.reason


@dataclass(frozen=True)
class Surcharge:
    id: int
    name: str
    amount: float
    applies_to: str
    start_date: date
    end_date: date

    def covers(self, d: date) -> bool:
        return self.start_date <= d <= self.end_date


@dataclass(frozen=True)
class WorkingHours:
    day_of_week: int
    open_time: str
    close_time: str
    is_closed: bool = False


@dataclass(frozen=True)
class CapacityRow:
    slot_id: int
    date: date
    booked_orders: int
    max_orders: int | None = None


@dataclass(frozen=True)
class VendorOffer:
    """
    An eligible vendor able to fulfil the requested products.

    preparation_time is the longest preparation among those products.
    Empty mappings mean "no rows", which the rules module turns into defaults.
    """
    vendor_id: int
    preparation_time: int
    working_hours: dict[int, WorkingHours] = field(default_factory=dict)
    slot_preferences: dict[int, bool] = field(default_factory=dict)
    capacity: dict[tuple[date, int], CapacityRow] = field(default_factory=dict)

    def capacity_for(self, d: date, slot_id: int) -> CapacityRow | None:
        return self.capacity.get((d, slot_id))


@dataclass(frozen=True)
class DeliveryContext:
    city_id: int
    slot_configs: tuple[SlotConfig, ...] = ()
    holidays: tuple[Holiday, ...] = ()
    surcharges: tuple[Surcharge, ...] = ()
    offers: tuple[VendorOffer, ...] = ()

    def holiday_for(self, d: date) -> Holiday | None:
        """City-specific holiday wins over a global one for the same date."""
        global_holiday = None
        for holiday in self.holidays:
            if holiday.date != d:
                continue
            if holiday.city_id == self.city_id:
                return holiday
            if holiday.city_id is None and global_holiday is None:
                global_holiday = holiday
        return global_holiday

    def surcharges_for(self, d: date) -> list[Surcharge]:
        return [s for s in self.surcharges if s.covers(d)]

    def max_preparation_time(self, default: int) -> int:
        """Longest preparation among the offers; default when there are none."""
        return max((offer.preparation_time for offer in self.offers), default=default)
