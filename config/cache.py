# config/cache.py
from typing import Optional
from redis.asyncio import Redis, from_url
from config.settings import settings

_client: Optional[Redis] = None


async def get_redis() -> Redis:
    """
    Shared client for the value store backend and the store lock.

    No connection is made here: reachability is what `has_access` reports, and
    a dead backend surfaces as RedisError on the first command, bounded by
    STORE_SOCKET_TIMEOUT_SECONDS.
    """
    global _client
    if _client is None:
        _client = from_url(
            settings.REDIS_URL,
            decode_responses=False,  # node names and values are decoded by the repository
            socket_timeout=settings.STORE_SOCKET_TIMEOUT_SECONDS,
            socket_connect_timeout=settings.STORE_SOCKET_TIMEOUT_SECONDS,
            socket_keepalive=True,
            health_check_interval=30,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
