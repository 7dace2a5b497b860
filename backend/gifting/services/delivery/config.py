# backend/gifting/services/delivery/config.py
"""
Delivery engine configuration.
"""

from dataclasses import dataclass, field
from functools import lru_cache


@dataclass(frozen=True)
class FixedWindow:
    """A platform-defined 2-hour window inside the fixed slot group."""
    label: str
    start_hour: int
    end_hour: int

    @property
    def start(self) -> str:
        return f"{self.start_hour:02d}:00"

    @property
    def end(self) -> str:
        return f"{self.end_hour:02d}:00"


DEFAULT_FIXED_WINDOWS = (
    FixedWindow("9AM–11AM", 9, 11),
    FixedWindow("11AM–1PM", 11, 13),
    FixedWindow("1PM–3PM", 13, 15),
    FixedWindow("3PM–5PM", 15, 17),
    FixedWindow("5PM–7PM", 17, 19),
    FixedWindow("7PM–9PM", 19, 21),
)


@dataclass(frozen=True)
class DeliveryConfig:
    """
    Configuration for delivery availability.

    Attributes:
        default_max_orders: Capacity of a vendor/date/slot when max_orders is NULL
        default_preparation_minutes: Preparation time assumed when no product is given
        available_dates_days: Default look-ahead for the available dates calendar
        max_available_dates_days: Upper bound for the look-ahead
        group_order: Output order of slot groups
        fixed_windows: Windows offered by the fixed slot group
        cutoff_hours: Booking cutoff per slot group (informational, city_slot_cutoff)
    """
    default_max_orders: int = 10
    default_preparation_minutes: int = 120
    available_dates_days: int = 15
    max_available_dates_days: int = 60
    group_order: tuple[str, ...] = ("standard", "fixed", "midnight", "early-morning", "express")
    fixed_windows: tuple[FixedWindow, ...] = DEFAULT_FIXED_WINDOWS
    cutoff_hours: dict[str, int] = field(default_factory=lambda: {
        "midnight": 6,
        "early-morning": 12,
        "express": 2,
        "fixed": 4,
        "standard": 4,
    })
    default_cutoff_hours: int = 4

    def __post_init__(self):
        """Validate configuration."""
        if self.default_max_orders < 1:
            raise ValueError(f"default_max_orders must be positive, got {self.default_max_orders}")
        if self.available_dates_days > self.max_available_dates_days:
            raise ValueError("available_dates_days cannot exceed max_available_dates_days")

    def group_rank(self, group: str) -> int:
        """Position of a slot group in the output; unknown groups go last."""
        try:
            return self.group_order.index(group)
        except ValueError:
            return len(self.group_order)

    def cutoff_for(self, group: str) -> int:
        return self.cutoff_hours.get(group, self.default_cutoff_hours)


@lru_cache
def get_delivery_config() -> DeliveryConfig:
    """Get delivery configuration (singleton)."""
    return DeliveryConfig()
