import redis.asyncio as redis
from ticket_engine.core.config import REDIS_URL


async def create_redis(url: str | None = REDIS_URL) -> redis.Redis | None:
    """Client for the audit stream; None when Redis is not configured."""
    if not url:
        return None
    return redis.from_url(
        url,
        decode_responses=True,
        health_check_interval=30,
        retry_on_timeout=True,
        socket_connect_timeout=5,
    )
