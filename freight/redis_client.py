"""Shared Redis connection for the rule store.

Connect and read timeouts are kept short so that a down Redis fails fast
and the repository switches to the local rules file instead of hanging
the request.
"""

from typing import Optional

import redis.asyncio as redis

from freight.config import settings

_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Rule store client, created on first use."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.redis_url,
            decode_responses=True,
            socket_connect_timeout=settings.redis_timeout_s,
            socket_timeout=settings.redis_timeout_s,
        )
    return _redis_client


async def close_redis_client() -> None:
    """Close the rule store client if one was opened."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def get_redis() -> redis.Redis:
    """FastAPI dependency for the rule store client."""
    return get_redis_client()
