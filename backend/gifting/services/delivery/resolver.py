# backend/gifting/services/delivery/resolver.py
"""
Delivery slot availability for one (products, city, date).

Pure function over a DeliveryContext and the current IST time:

1. FULL_BLOCK holiday → no slots at all
2. STANDARD_ONLY holiday → only the standard group
3. CUSTOM holiday → per-slug block / price override
4. Active surcharges for the date are summed and added to every price
   that is not a holiday override
5. Per slot: qualifying vendors (slot preference + working day),
   fullness (every qualifying vendor at capacity), same-day reachability
   (some vendor can finish preparation before closing)
6. Fixed group expands into 2-hour windows covered by vendor hours
7. Output ordered by slot group, then by config load order
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from . import rules
from .clock import day_of_week
from .config import DeliveryConfig, FixedWindow, get_delivery_config
from .snapshot import DeliveryContext, Holiday, SlotConfig, SlotOverride, VendorOffer


REASON_NO_VENDORS = "No vendors available for this slot"
REASON_FULLY_BOOKED = "All slots are fully booked"
REASON_PREPARATION_TIME = "Preparation time exceeds vendor closing time"


@dataclass(frozen=True)
class SurchargeSummary:
    amount: float
    name: str
    applies_to: str


@dataclass(frozen=True)
class ResolvedWindow:
    label: str
    start: str
    end: str
    start_hour: int
    end_hour: int
    is_full: bool
    is_available: bool


@dataclass(frozen=True)
class ResolvedSlot:
    slot_id: int
    slug: str
    name: str
    group: str
    start_time: str
    end_time: str
    is_available: bool
    is_full: bool
    charge: float
    surcharge: float
    price: float
    price_label: str
    reason: str | None = None
    windows: tuple[ResolvedWindow, ...] | None = None


@dataclass(frozen=True)
class DayAvailability:
    date: date
    is_today: bool
    fully_blocked: bool
    holiday: Holiday | None = None
    surcharge: SurchargeSummary | None = None
    slots: tuple[ResolvedSlot, ...] = field(default_factory=tuple)

    @property
    def holiday_reason(self) -> str | None:
        return self.holiday.message if self.holiday else None

    @property
    def has_available_slot(self) -> bool:
        return any(slot.is_available for slot in self.slots)


def resolve_slots(
    context: DeliveryContext,
    target_date: date,
    now: datetime,
    config: DeliveryConfig | None = None,
) -> DayAvailability:
    """
    Resolve delivery slots for target_date.

    Args:
        context: Snapshot loaded for a range containing target_date
        target_date: IST calendar date of delivery
        now: Current IST wall-clock time
    """
    config = config or get_delivery_config()
    is_today = target_date == now.date()
    current_minutes = now.hour * 60 + now.minute

    holiday = context.holiday_for(target_date)
    if holiday is not None and holiday.mode == "FULL_BLOCK":
        return DayAvailability(
            date=target_date,
            is_today=is_today,
            fully_blocked=True,
            holiday=holiday,
        )

    slot_configs = [c for c in context.slot_configs if c.is_active]
    if holiday is not None and holiday.mode == "STANDARD_ONLY":
        slot_configs = [c for c in slot_configs if c.group == "standard"]
    overrides = holiday.overrides if holiday is not None and holiday.mode == "CUSTOM" else {}

    surcharge = _summarize_surcharges(context, target_date)
    dow = day_of_week(target_date)

    resolved: list[ResolvedSlot] = []
    for slot_config in slot_configs:
        override = overrides.get(slot_config.slug)
        if override is not None and override.blocked:
            continue
        resolved.append(_resolve_slot(
            slot_config,
            override,
            context.offers,
            target_date,
            dow,
            is_today,
            now.hour,
            current_minutes,
            surcharge,
            config,
        ))

    # sorted() is stable, so configs keep their load order inside a group
    resolved.sort(key=lambda s: config.group_rank(s.group))

    return DayAvailability(
        date=target_date,
        is_today=is_today,
        fully_blocked=False,
        holiday=holiday,
        surcharge=surcharge,
        slots=tuple(resolved),
    )


def _summarize_surcharges(context: DeliveryContext, target_date: date) -> SurchargeSummary | None:
    active = context.surcharges_for(target_date)
    if not active:
        return None
    return SurchargeSummary(
        amount=sum(s.amount for s in active),
        name=", ".join(s.name for s in active),
        applies_to=", ".join(s.applies_to for s in active),
    )


def _resolve_slot(
    slot_config: SlotConfig,
    override: SlotOverride | None,
    offers: tuple[VendorOffer, ...],
    target_date: date,
    dow: int,
    is_today: bool,
    current_hour: int,
    current_minutes: int,
    surcharge: SurchargeSummary | None,
    config: DeliveryConfig,
) -> ResolvedSlot:
    qualifying = [
        offer for offer in offers
        if rules.accepts_slot(offer, slot_config.slot_id) and rules.is_open_on(offer, dow)
    ]

    is_full = bool(qualifying) and all(
        rules.is_full(offer.capacity_for(target_date, slot_config.slot_id), config.default_max_orders)
        for offer in qualifying
    )

    is_available = bool(qualifying)
    reason = None
    if is_available and is_today:
        if not any(rules.can_dispatch_same_day(o, dow, current_minutes) for o in qualifying):
            is_available = False
            reason = REASON_PREPARATION_TIME
    if not qualifying:
        reason = REASON_NO_VENDORS
    if is_full:
        is_available = False
        reason = REASON_FULLY_BOOKED

    if override is not None and override.price_override is not None:
        charge = override.price_override
        applied_surcharge = 0.0
    else:
        charge = slot_config.charge
        applied_surcharge = surcharge.amount if surcharge else 0.0
    price = charge + applied_surcharge

    windows = None
    if slot_config.group == "fixed":
        windows = tuple(_resolve_windows(
            config.fixed_windows, qualifying, dow, is_today, current_hour, is_full, is_available,
        ))

    return ResolvedSlot(
        slot_id=slot_config.slot_id,
        slug=slot_config.slug,
        name=slot_config.name,
        group=slot_config.group,
        start_time=slot_config.start_time,
        end_time=slot_config.end_time,
        is_available=is_available,
        is_full=is_full,
        charge=charge,
        surcharge=applied_surcharge,
        price=price,
        price_label=format_price_label(price, slot_config.group),
        reason=reason,
        windows=windows,
    )


def _resolve_windows(
    fixed_windows: tuple[FixedWindow, ...],
    qualifying: list[VendorOffer],
    dow: int,
    is_today: bool,
    current_hour: int,
    slot_full: bool,
    slot_available: bool,
):
    # Capacity is tracked per slot, not per window
    for window in fixed_windows:
        if is_today and current_hour >= window.start_hour:
            continue
        if not any(rules.covers_window(o, dow, window.start_hour, window.end_hour) for o in qualifying):
            continue
        yield ResolvedWindow(
            label=window.label,
            start=window.start,
            end=window.end,
            start_hour=window.start_hour,
            end_hour=window.end_hour,
            is_full=slot_full,
            is_available=slot_available,
        )


def format_price_label(price: float, group: str) -> str:
    if price == 0:
        return "Free"
    amount = f"₹{format_amount(price)}"
    if group == "fixed":
        return f"From {amount}"
    return amount


def format_amount(value: float) -> int | float:
    """Whole rupees print without decimals."""
    return int(value) if float(value).is_integer() else value
