# backend/gifting/redis_client.py

from redis import Redis

from .config import settings

# Caching is optional: without REDIS_URL every read goes to the database
redis_client: Redis | None = (
    Redis.from_url(settings.redis_url, decode_responses=True)
    if settings.redis_url
    else None
)


def get_redis() -> Redis | None:
    return redis_client
