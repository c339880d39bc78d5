"""Redis implementation of IConnectionPool."""

from __future__ import annotations

import logging
from typing import Any

from redis.asyncio import ConnectionPool, Redis

from ..primitives.exceptions import StoreConnectionError

logger = logging.getLogger("mrsw_lock.redis.pool")


class RedisConnectionPool:
    """
    Lends ``redis.asyncio.Redis`` clients bound to one shared pool.

    A lent client checks a connection out of the pool only while a command
    or a ``MULTI``/``EXEC`` batch runs and returns it right after, so a lock
    operation never holds more than one pooled connection at a time and
    ``max_connections`` bounds concurrent round-trips, not concurrent lock
    calls. :meth:`release` drops the client without closing the shared pool.

    Example:
        ```python
        pool = RedisConnectionPool.from_url(
            "redis://localhost:6379/0", max_connections=20
        )
        client = await pool.acquire()
        try:
            await client.ping()
        finally:
            await pool.release(client)
        ```
    """

    def __init__(self, connection_pool: ConnectionPool) -> None:
        self._pool = connection_pool
        self._closed = False

    @classmethod
    def from_url(cls, url: str, **options: Any) -> RedisConnectionPool:
        """
        Build a pool from a Redis URL.

        Args:
            url: ``redis://``, ``rediss://`` or ``unix://`` URL.
            **options: Forwarded to ``ConnectionPool.from_url``
                (e.g. ``max_connections``, ``socket_timeout``).
        """
        pool = cls(ConnectionPool.from_url(url, **options))
        logger.info("Created Redis connection pool for %s", _redact(url))
        return pool

    async def acquire(self) -> Redis:
        if self._closed:
            raise StoreConnectionError("Redis connection pool is closed")
        return Redis(connection_pool=self._pool)

    async def release(self, connection: Redis) -> None:
        await connection.aclose(close_connection_pool=False)

    async def close(self) -> None:
        self._closed = True
        await self._pool.disconnect()
        logger.info("Redis connection pool closed")


def _redact(url: str) -> str:
    """Hide the password part of a Redis URL for logging."""
    scheme, sep, rest = url.partition("://")
    if not sep or "@" not in rest:
        return url
    credentials, _, host = rest.rpartition("@")
    user = credentials.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}" if user else f"{scheme}://***@{host}"
