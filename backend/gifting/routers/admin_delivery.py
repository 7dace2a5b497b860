# backend/gifting/routers/admin_delivery.py
"""
Admin delivery settings: slots, per-city configuration, holidays, surcharges.

Authentication happens in front of this service. Every write drops the
cached available-dates calendars it can affect.
"""

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from redis import Redis
from sqlalchemy.orm import Session, selectinload

from ..database import get_db
from ..models.entities import (
    City as DBCity,
    CityDeliveryConfig as DBCityDeliveryConfig,
    DeliveryHoliday as DBDeliveryHoliday,
    DeliverySlot as DBDeliverySlot,
    DeliverySurcharge as DBDeliverySurcharge,
)
from ..redis_client import get_redis
from ..schemas.admin_delivery import (
    CityConfigRead,
    CityConfigUpdate,
    DeliverySlotRead,
    DeliverySlotUpdate,
    HolidayCreate,
    HolidayRead,
    RecalculateRequest,
    RecalculateResponse,
    SurchargeCreate,
    SurchargeRead,
    SurchargeUpdate,
)
from ..services.delivery import Clock, get_clock, invalidate_available_dates
from ..services.delivery.cutoff import recalculate_all_cities, recalculate_city_slot_cutoff
from ..services.delivery.queries import parse_slot_overrides

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin_delivery"])


# ── Delivery slots ───────────────────────────────────────────────────────


@router.get("/delivery/slots", response_model=list[DeliverySlotRead])
def list_delivery_slots(db: Session = Depends(get_db)):
    return db.query(DBDeliverySlot).order_by(DBDeliverySlot.id).all()


@router.patch("/delivery/slots/{id}", response_model=DeliverySlotRead)
def update_delivery_slot(
    id: int,
    data: DeliverySlotUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = db.get(DBDeliverySlot, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Delivery slot not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    invalidate_available_dates(redis)
    return obj


# ── City config ──────────────────────────────────────────────────────────


def _city_config_read(db: Session, city: DBCity) -> CityConfigRead:
    configs = (
        db.query(DBCityDeliveryConfig)
        .options(selectinload(DBCityDeliveryConfig.slot))
        .filter(DBCityDeliveryConfig.city_id == city.id)
        .order_by(DBCityDeliveryConfig.id)
        .all()
    )
    return CityConfigRead(
        city_id=city.id,
        base_delivery_charge=city.base_delivery_charge,
        free_delivery_above=city.free_delivery_above,
        slots=[
            {
                "slot_id": c.slot_id,
                "slug": c.slot.slug,
                "name": c.slot.name,
                "slot_group": c.slot.slot_group,
                "is_available": c.is_available,
                "charge_override": c.charge_override,
            }
            for c in configs
        ],
    )


@router.get("/delivery/city-config/{city_id}", response_model=CityConfigRead)
def get_city_config(city_id: int, db: Session = Depends(get_db)):
    city = db.get(DBCity, city_id)
    if not city:
        raise HTTPException(status_code=404, detail="City not found")
    return _city_config_read(db, city)


@router.patch("/delivery/city-config/{city_id}", response_model=CityConfigRead)
def update_city_config(
    city_id: int,
    data: CityConfigUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    city = db.get(DBCity, city_id)
    if not city:
        raise HTTPException(status_code=404, detail="City not found")

    if data.base_delivery_charge is not None:
        city.base_delivery_charge = data.base_delivery_charge
    if "free_delivery_above" in data.model_fields_set:
        city.free_delivery_above = data.free_delivery_above

    for item in data.slots or []:
        if not db.get(DBDeliverySlot, item.slot_id):
            raise HTTPException(status_code=404, detail=f"Delivery slot {item.slot_id} not found")
        config = (
            db.query(DBCityDeliveryConfig)
            .filter(
                DBCityDeliveryConfig.city_id == city_id,
                DBCityDeliveryConfig.slot_id == item.slot_id,
            )
            .first()
        )
        if config is None:
            config = DBCityDeliveryConfig(city_id=city_id, slot_id=item.slot_id)
            db.add(config)
        config.is_available = item.is_available
        config.charge_override = item.charge_override

    db.commit()
    invalidate_available_dates(redis, city_id)
    return _city_config_read(db, city)


# ── Holidays ─────────────────────────────────────────────────────────────


def _holiday_read(obj: DBDeliveryHoliday) -> HolidayRead:
    overrides = parse_slot_overrides(obj.slot_overrides)
    return HolidayRead(
        id=obj.id,
        date=obj.date,
        city_id=obj.city_id,
        city_name=obj.city.name if obj.city else None,
        reason=obj.reason,
        customer_message=obj.customer_message,
        mode=obj.mode,
        slot_overrides=[
            {"slug": o.slug, "blocked": o.blocked, "price_override": o.price_override}
            for o in overrides.values()
        ],
    )


@router.get("/delivery/holidays", response_model=list[HolidayRead])
def list_holidays(
    cityId: int | None = None,
    upcoming: bool = False,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    query = db.query(DBDeliveryHoliday).options(selectinload(DBDeliveryHoliday.city))
    if cityId is not None:
        query = query.filter(DBDeliveryHoliday.city_id == cityId)
    if upcoming:
        query = query.filter(DBDeliveryHoliday.date >= clock.today())
    return [_holiday_read(h) for h in query.order_by(DBDeliveryHoliday.date, DBDeliveryHoliday.id).all()]


@router.post("/delivery/holidays", response_model=HolidayRead, status_code=status.HTTP_201_CREATED)
def create_holiday(
    data: HolidayCreate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    reason = (data.reason or "").strip()
    if data.date is None or not reason:
        raise HTTPException(status_code=400, detail="Date and reason are required")
    if data.city_id is not None and not db.get(DBCity, data.city_id):
        raise HTTPException(status_code=404, detail="City not found")

    # One holiday per date and scope (a city, or every city)
    scope = (
        DBDeliveryHoliday.city_id == data.city_id
        if data.city_id is not None
        else DBDeliveryHoliday.city_id.is_(None)
    )
    if db.query(DBDeliveryHoliday.id).filter(DBDeliveryHoliday.date == data.date, scope).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A holiday already exists for this date",
        )

    overrides = [o.model_dump() for o in data.slot_overrides or []]
    overrides += [{"slug": slug, "blocked": True, "price_override": None} for slug in data.blocked_slots or []]

    mode = data.mode or ("CUSTOM" if overrides else "FULL_BLOCK")
    if mode == "CUSTOM" and not overrides:
        raise HTTPException(status_code=400, detail="CUSTOM holidays need slot overrides")

    obj = DBDeliveryHoliday(
        date=data.date,
        city_id=data.city_id,
        reason=reason,
        customer_message=data.customer_message,
        mode=mode,
        slot_overrides=json.dumps([
            {"slug": o["slug"], "blocked": o["blocked"], "priceOverride": o["price_override"]}
            for o in overrides
        ]) if mode == "CUSTOM" else None,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("Delivery holiday %s created for %s (city=%s, mode=%s)", obj.id, obj.date, obj.city_id, mode)

    invalidate_available_dates(redis, data.city_id)
    return _holiday_read(obj)


@router.delete("/delivery/holidays/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_holiday(
    id: int,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = db.get(DBDeliveryHoliday, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Holiday not found")
    city_id = obj.city_id
    db.delete(obj)
    db.commit()
    invalidate_available_dates(redis, city_id)


# ── Surcharges ───────────────────────────────────────────────────────────


@router.get("/delivery/surcharges", response_model=list[SurchargeRead])
def list_surcharges(db: Session = Depends(get_db)):
    return (
        db.query(DBDeliverySurcharge)
        .order_by(DBDeliverySurcharge.start_date, DBDeliverySurcharge.id)
        .all()
    )


@router.post("/delivery/surcharges", response_model=SurchargeRead, status_code=status.HTTP_201_CREATED)
def create_surcharge(
    data: SurchargeCreate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    name = (data.name or "").strip()
    if not name or data.start_date is None or data.end_date is None or data.amount is None:
        raise HTTPException(status_code=400, detail="Name, dates, and amount are required")
    if data.end_date < data.start_date:
        raise HTTPException(status_code=400, detail="endDate cannot be before startDate")

    obj = DBDeliverySurcharge(**data.model_dump(exclude={"name"}), name=name)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    invalidate_available_dates(redis, data.city_id)
    return obj


@router.patch("/delivery/surcharges/{id}", response_model=SurchargeRead)
def update_surcharge(
    id: int,
    data: SurchargeUpdate,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = db.get(DBDeliverySurcharge, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Surcharge not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(obj, field, value)
    if obj.end_date < obj.start_date:
        db.rollback()
        raise HTTPException(status_code=400, detail="endDate cannot be before startDate")

    db.commit()
    db.refresh(obj)
    invalidate_available_dates(redis)
    return obj


@router.delete("/delivery/surcharges/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_surcharge(
    id: int,
    db: Session = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
):
    obj = db.get(DBDeliverySurcharge, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Surcharge not found")
    db.delete(obj)
    db.commit()
    invalidate_available_dates(redis)


# ── Slot cutoff recalculation ────────────────────────────────────────────


@router.post("/recalculate-slots", response_model=RecalculateResponse)
def recalculate_slots(
    data: RecalculateRequest | None = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    now = clock.now()
    if data is not None and data.city_id is not None:
        if not db.get(DBCity, data.city_id):
            raise HTTPException(status_code=404, detail="City not found")
        recalculate_city_slot_cutoff(db, data.city_id, now)
        return RecalculateResponse(city_ids=[data.city_id])

    return RecalculateResponse(city_ids=recalculate_all_cities(db, now))
