# callcrm/db/redis_client.py
import os
import redis.asyncio as redis

# Load Redis URL from environment, fallback to default
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# Seconds a freshly created lead's phone/externalId stays in the duplicate cache
LEAD_CACHE_TTL = int(os.getenv("LEAD_CACHE_TTL", "3600"))

# Create a Redis client instance
redis_client = redis.from_url(REDIS_URL, decode_responses=True)


async def get_redis():
    """
    Dependency to provide Redis client in FastAPI endpoints
    Usage: `redis: redis.Redis = Depends(get_redis)`
    """
    # The client persists for the app lifetime; closed in the lifespan hook
    yield redis_client


async def close_redis() -> None:
    await redis_client.aclose()
