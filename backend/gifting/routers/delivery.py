# backend/gifting/routers/delivery.py
"""
Storefront delivery endpoints.

GET /api/delivery/availability    - Slots for one product, city and date
GET /api/delivery/slots           - Per-group summary for a city and date (cart)
GET /api/delivery/available-dates - Calendar of deliverable dates for a product
GET /api/delivery/city-slots      - Precomputed slot list of a city
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..redis_client import get_redis
from ..schemas.delivery import (
    AvailabilityResponse,
    AvailableDatesResponse,
    CitySlotsResponse,
    SlotsSummaryResponse,
)
from ..services.delivery import (
    Clock,
    availability_payload,
    calculate_available_dates,
    get_active_city,
    get_clock,
    get_delivery_config,
    load_delivery_context,
    parse_local_date,
    resolve_slots,
    slots_summary_payload,
)
from ..services.delivery.cutoff import get_city_slot_cutoffs

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/delivery", tags=["delivery"])


def parse_id(value: str | None, name: str) -> int:
    """Positive integer id from a query string value, else 400."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{name} must be an integer")
    if parsed <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{name} must be positive")
    return parsed


def parse_id_list(value: str | None, name: str) -> list[int]:
    if not value:
        return []
    return [parse_id(part.strip(), name) for part in value.split(",") if part.strip()]


def parse_date_param(value: str):
    try:
        return parse_local_date(value)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


def require_city(db: Session, city_id: int):
    city = get_active_city(db, city_id=city_id)
    if not city:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
    return city


@router.get("/availability", response_model=AvailabilityResponse)
def get_delivery_availability(
    productId: str | None = None,
    cityId: str | None = None,
    date: str | None = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Delivery slots for a product in a city on a date."""
    if not productId or not cityId or not date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="productId, cityId, and date are required",
        )
    product_id = parse_id(productId, "productId")
    city_id = parse_id(cityId, "cityId")
    target_date = parse_date_param(date)

    try:
        require_city(db, city_id)
        now = clock.now()
        context = load_delivery_context(
            db, city_id, [product_id], target_date, target_date, now.date()
        )
        day = resolve_slots(context, target_date, now)
    except SQLAlchemyError:
        logger.exception("Delivery availability failed for product=%s city=%s", product_id, city_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch delivery availability",
        )

    return AvailabilityResponse(data=availability_payload(day))


@router.get("/slots", response_model=SlotsSummaryResponse)
def get_delivery_slots(
    cityId: str | None = None,
    date: str | None = None,
    productIds: str | None = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Per-group slot summary for a city and date, optionally for a cart."""
    if not cityId or not date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="cityId and date are required",
        )
    city_id = parse_id(cityId, "cityId")
    target_date = parse_date_param(date)
    product_ids = parse_id_list(productIds, "productIds")
    config = get_delivery_config()

    try:
        require_city(db, city_id)
        now = clock.now()
        context = load_delivery_context(
            db, city_id, product_ids, target_date, target_date, now.date(), config
        )
        day = resolve_slots(context, target_date, now, config)
        max_preparation = context.max_preparation_time(config.default_preparation_minutes)
    except SQLAlchemyError:
        logger.exception("Delivery slots failed for city=%s date=%s", city_id, target_date)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch delivery slots",
        )

    return SlotsSummaryResponse(data=slots_summary_payload(day, max_preparation))


@router.get("/available-dates", response_model=AvailableDatesResponse)
def get_available_dates(
    productId: str | None = None,
    cityId: str | None = None,
    days: str | None = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    redis: Redis | None = Depends(get_redis),
):
    """Dates in the coming days with at least one available slot."""
    if not productId or not cityId:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="productId and cityId are required",
        )
    product_id = parse_id(productId, "productId")
    city_id = parse_id(cityId, "cityId")
    horizon = parse_id(days, "days") if days else None

    try:
        require_city(db, city_id)
        dates = calculate_available_dates(
            db,
            city_id,
            product_id,
            clock.now(),
            days=horizon,
            redis=redis,
            cache_ttl=settings.available_dates_cache_ttl,
        )
    except SQLAlchemyError:
        logger.exception("Available dates failed for product=%s city=%s", product_id, city_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch available dates",
        )

    return AvailableDatesResponse(data={"available_dates": dates})


@router.get("/city-slots", response_model=CitySlotsResponse)
def get_city_slots(
    cityId: str | None = None,
    db: Session = Depends(get_db),
):
    """Slots of a city as last recalculated by an admin."""
    if not cityId:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="cityId required")
    city_id = parse_id(cityId, "cityId")

    try:
        cutoffs = get_city_slot_cutoffs(db, city_id)
    except SQLAlchemyError:
        logger.exception("City slots failed for city=%s", city_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch city slots",
        )

    updated_at = cutoffs[0].updated_at if cutoffs else None
    return CitySlotsResponse(data={
        "city_id": city_id,
        "slots": [
            {
                "slot_id": c.slot_id,
                "name": c.slot_name,
                "slug": c.slot_slug,
                "start_time": c.slot_start,
                "end_time": c.slot_end,
                "cutoff_hours": c.cutoff_hours,
                "base_charge": c.base_charge,
            }
            for c in cutoffs
        ],
        "updated_at": updated_at.isoformat() if updated_at else None,
    })
