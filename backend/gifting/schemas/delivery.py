# backend/gifting/schemas/delivery.py
"""
Pydantic schemas for storefront delivery API.

Field names are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ── /delivery/availability ───────────────────────────────────────────────


class SlotWindow(CamelModel):
    """A 2-hour window of the fixed slot group."""
    label: str
    start_hour: int
    end_hour: int
    is_full: bool
    is_available: bool


class SlotAvailability(CamelModel):
    id: int
    name: str
    slug: str
    start_time: str
    end_time: str
    is_available: bool
    is_full: bool
    price: int | float
    price_label: str
    reason: str | None = None
    windows: list[SlotWindow] | None = None


class SurchargeInfo(CamelModel):
    surcharge_active: bool
    surcharge_amount: int | float
    surcharge_applies_to: str
    surcharge_name: str


class AvailabilityData(CamelModel):
    slots: list[SlotAvailability]
    fully_blocked: bool
    date: str
    surcharge: SurchargeInfo | None = None
    reason: str | None = None  # Holiday message when fully blocked


class AvailabilityResponse(CamelModel):
    success: bool = True
    data: AvailabilityData


# ── /delivery/slots ──────────────────────────────────────────────────────


class GroupSummary(CamelModel):
    available: bool
    charge: int | float


class CutoffGroupSummary(GroupSummary):
    cutoff_passed: bool


class FixedWindowSummary(CamelModel):
    label: str
    start: str
    end: str
    charge: int | float
    available: bool


class SlotsSurcharge(CamelModel):
    name: str
    amount: int | float


class SlotsSummaryData(CamelModel):
    standard: GroupSummary
    fixed_windows: list[FixedWindowSummary]
    early_morning: CutoffGroupSummary
    express: GroupSummary
    midnight: CutoffGroupSummary
    surcharge: SlotsSurcharge | None = None
    fully_blocked: bool
    holiday_reason: str | None = None
    max_preparation_time: int


class SlotsSummaryResponse(CamelModel):
    success: bool = True
    data: SlotsSummaryData


# ── /delivery/available-dates ────────────────────────────────────────────


class AvailableDatesData(CamelModel):
    available_dates: list[str]


class AvailableDatesResponse(CamelModel):
    success: bool = True
    data: AvailableDatesData


# ── /delivery/city-slots ─────────────────────────────────────────────────


class CitySlot(CamelModel):
    slot_id: int
    name: str
    slug: str
    start_time: str
    end_time: str
    cutoff_hours: int
    base_charge: int | float


class CitySlotsData(CamelModel):
    city_id: int
    slots: list[CitySlot]
    updated_at: str | None = None


class CitySlotsResponse(CamelModel):
    success: bool = True
    data: CitySlotsData


# ── /products/same-day ───────────────────────────────────────────────────


class CategoryRef(CamelModel):
    id: int
    name: str
    slug: str


class SameDayProduct(CamelModel):
    id: int
    name: str
    slug: str
    base_price: int | float
    images: list[str] = []
    avg_rating: float = 0
    total_reviews: int = 0
    weight: str | None = None
    tags: list[str] = []
    category: CategoryRef | None = None
    cutoff_minutes: int
    cutoff_time: str


class SameDayData(CamelModel):
    products: list[SameDayProduct]
    generated_at: str


class SameDayResponse(CamelModel):
    success: bool = True
    data: SameDayData
