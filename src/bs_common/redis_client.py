"""Lazily created Redis client.

Redis only backs the fixed-window rate limiter. Books, accounts and
transactions never live in Redis; PostgreSQL is their system of record, so a
Redis outage degrades to "no rate limiting" rather than to errors.
"""

import redis.asyncio as aioredis

from config.settings import settings

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=1.0,
            socket_timeout=1.0,
        )
    return _client


async def close_redis() -> None:
    """Release the pool on shutdown; safe to call when it was never opened."""
    global _client  # noqa: PLW0603
    client, _client = _client, None
    if client is not None:
        await client.aclose()
