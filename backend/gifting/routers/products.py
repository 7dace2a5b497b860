# backend/gifting/routers/products.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.delivery import SameDayResponse
from ..services.delivery import Clock, get_active_city, get_clock
from ..services.delivery.same_day import find_same_day_products
from .delivery import parse_id

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("/same-day", response_model=SameDayResponse)
def get_same_day_products(
    city: str | None = None,
    cityId: str | None = None,
    category: str | None = None,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Products that vendors can still prepare and dispatch today."""
    if not city and not cityId:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="city or cityId is required",
        )
    city_id = parse_id(cityId, "cityId") if cityId else None

    try:
        db_city = get_active_city(db, city_id=city_id, slug=city)
        if not db_city:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="City not found")
        now = clock.now()
        products = find_same_day_products(db, db_city.id, now, category_slug=category)
    except SQLAlchemyError:
        logger.exception("Same-day products failed for city=%s", city or cityId)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch same-day products",
        )

    return SameDayResponse(data={
        "products": products,
        "generatedAt": now.isoformat(),
    })
