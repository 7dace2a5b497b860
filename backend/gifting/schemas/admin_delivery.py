# backend/gifting/schemas/admin_delivery.py

from datetime import date as date_type
from typing import Literal, Optional

from pydantic import Field, field_validator

from ..services.delivery.clock import time_str_to_minutes
from .delivery import CamelModel

HolidayMode = Literal["FULL_BLOCK", "STANDARD_ONLY", "CUSTOM"]


# ── Delivery slots ───────────────────────────────────────────────────────


class DeliverySlotRead(CamelModel):
    id: int
    name: str
    slug: str
    slot_group: str
    start_time: str
    end_time: str
    base_charge: float
    is_active: bool


class DeliverySlotUpdate(CamelModel):
    name: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    base_charge: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        """Validate HH:MM format."""
        if v is not None:
            time_str_to_minutes(v)
        return v


# ── City config ──────────────────────────────────────────────────────────


class CitySlotConfigUpdate(CamelModel):
    slot_id: int
    is_available: bool
    charge_override: Optional[float] = Field(None, ge=0)


class CityConfigUpdate(CamelModel):
    base_delivery_charge: Optional[float] = Field(None, ge=0)
    free_delivery_above: Optional[float] = Field(None, ge=0)
    slots: Optional[list[CitySlotConfigUpdate]] = None


class CitySlotConfigRead(CamelModel):
    slot_id: int
    slug: str
    name: str
    slot_group: str
    is_available: bool
    charge_override: Optional[float] = None


class CityConfigRead(CamelModel):
    city_id: int
    base_delivery_charge: float
    free_delivery_above: Optional[float] = None
    slots: list[CitySlotConfigRead]


# ── Holidays ─────────────────────────────────────────────────────────────


class SlotOverrideIn(CamelModel):
    slug: str
    blocked: bool = False
    price_override: Optional[float] = Field(None, ge=0)


class HolidayCreate(CamelModel):
    date: Optional[date_type] = None
    city_id: Optional[int] = None
    reason: Optional[str] = None
    customer_message: Optional[str] = None
    mode: Optional[HolidayMode] = None
    slot_overrides: Optional[list[SlotOverrideIn]] = None
    blocked_slots: Optional[list[str]] = None


class HolidayRead(CamelModel):
    id: int
    date: date_type
    city_id: Optional[int] = None
    city_name: Optional[str] = None
    reason: str
    customer_message: Optional[str] = None
    mode: str
    slot_overrides: list[SlotOverrideIn] = []


# ── Surcharges ───────────────────────────────────────────────────────────


class SurchargeCreate(CamelModel):
    name: Optional[str] = None
    start_date: Optional[date_type] = None
    end_date: Optional[date_type] = None
    amount: Optional[float] = Field(None, ge=0)
    applies_to: str = "all"
    is_active: bool = True
    city_id: Optional[int] = None


class SurchargeUpdate(CamelModel):
    name: Optional[str] = None
    start_date: Optional[date_type] = None
    end_date: Optional[date_type] = None
    amount: Optional[float] = Field(None, ge=0)
    applies_to: Optional[str] = None
    is_active: Optional[bool] = None
    city_id: Optional[int] = None


class SurchargeRead(CamelModel):
    id: int
    name: str
    start_date: date_type
    end_date: date_type
    amount: float
    applies_to: str
    is_active: bool
    city_id: Optional[int] = None


# ── Recalculation ────────────────────────────────────────────────────────


class RecalculateRequest(CamelModel):
    city_id: Optional[int] = None


class RecalculateResponse(CamelModel):
    success: bool = True
    city_ids: list[int]
