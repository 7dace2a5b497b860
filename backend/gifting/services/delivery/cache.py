# backend/gifting/services/delivery/cache.py
"""
Redis cache for the available dates calendar.

Key format: delivery:dates:{city_id}:{product_id}:{today}:{days}
Value: JSON list of "YYYY-MM-DD" strings, expiring after a short TTL.

The key contains today's IST date, so a new day never reads yesterday's
calendar. Admin writes drop every key of the affected city.
"""

import json
import logging
from datetime import date

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class AvailableDatesCache:
    """Redis wrapper for cached available dates."""

    KEY_PREFIX = "delivery:dates"

    def __init__(self, redis: Redis, ttl_seconds: int = 300):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, city_id: int, product_id: int, today: date, days: int) -> str:
        return f"{self.KEY_PREFIX}:{city_id}:{product_id}:{today.isoformat()}:{days}"

    def get(self, city_id: int, product_id: int, today: date, days: int) -> list[str] | None:
        """Cached dates, or None on miss. Redis failures and corrupt values count as a miss."""
        try:
            raw = self.redis.get(self._key(city_id, product_id, today, days))
        except RedisError:
            logger.warning("Available dates cache read failed", exc_info=True)
            return None
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode()
        try:
            dates = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt available dates cache entry for city=%s product=%s", city_id, product_id)
            return None
        return dates if isinstance(dates, list) else None

    def store(self, city_id: int, product_id: int, today: date, days: int, dates: list[str]) -> None:
        try:
            self.redis.setex(
                self._key(city_id, product_id, today, days),
                self.ttl_seconds,
                json.dumps(dates),
            )
        except RedisError:
            logger.warning("Available dates cache write failed", exc_info=True)

    def invalidate(self, city_id: int | None = None) -> int:
        """
        Delete cached calendars.

        Args:
            city_id: City to invalidate, or None for every city

        Returns:
            Number of deleted keys
        """
        pattern = f"{self.KEY_PREFIX}:{city_id}:*" if city_id is not None else f"{self.KEY_PREFIX}:*"
        try:
            keys = list(self.redis.scan_iter(match=pattern))
            if not keys:
                return 0
            return self.redis.delete(*keys)
        except RedisError:
            logger.warning("Available dates cache invalidation failed for city=%s", city_id, exc_info=True)
            return 0


def invalidate_available_dates(redis: Redis | None, city_id: int | None = None) -> int:
    """Invalidate cached calendars; no-op without Redis."""
    if redis is None:
        return 0
    return AvailableDatesCache(redis).invalidate(city_id)
