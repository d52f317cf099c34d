"""Redis client for the notification relay, created on first use."""

from typing import Optional

import redis.asyncio as aioredis

from ondemand.config import settings

_client: Optional[aioredis.Redis] = None


async def get_redis() -> aioredis.Redis:
    global _client
    if _client is None:
        _client = aioredis.from_url(settings.redis_url, decode_responses=True)
    return _client


async def close_redis() -> None:
    """Release pooled connections; called on application shutdown."""
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
