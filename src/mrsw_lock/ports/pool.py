"""IConnectionPool: protocol for borrowing store connections."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IConnectionPool(Protocol):
    """
    Pool of connections to the backing store.

    The lock manager borrows exactly one connection per operation and
    returns it exactly once, on success and on every error path. The
    connection must expose the async ``redis.asyncio.Redis`` command
    surface used by the protocol: ``pipeline``, ``eval``, ``delete``,
    ``keys``, ``get`` and ``ping``.
    """

    async def acquire(self) -> Any:
        """
        Borrow a connection.

        Raises:
            StoreConnectionError: If no connection can be provided.
        """
        ...

    async def release(self, connection: Any) -> None:
        """Return a connection obtained from :meth:`acquire`."""
        ...

    async def close(self) -> None:
        """Close the pool and every idle connection."""
        ...
