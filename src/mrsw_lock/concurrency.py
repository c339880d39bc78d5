"""Scoped lock sections built on top of a lock manager."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Literal

from .primitives.exceptions import StoreError

if TYPE_CHECKING:
    from .ports.locking import IMRSWLockManager
    from .primitives.identifiers import LockId

logger = logging.getLogger("mrsw_lock.concurrency")


class LockedSection:
    """
    Async context manager holding a read or write lock for its body.

    Usage:
        ```python
        async with manager.reading(("Report", "2024-q1")) as token:
            data = await load_report()

        async with manager.writing("Account:123"):
            await apply_transfer()
        ```

    The lock is released on exit even when the body raises. A release that
    fails on the store is logged rather than raised, so it never replaces
    the body's own exception; the key expires on its TTL.
    """

    def __init__(
        self,
        manager: IMRSWLockManager,
        lock_id: LockId,
        mode: Literal["read", "write"],
    ) -> None:
        self._manager = manager
        self._lock_id = lock_id
        self._mode = mode
        self.token: str | None = None

    @property
    def mode(self) -> Literal["read", "write"]:
        return self._mode

    async def __aenter__(self) -> str:
        if self.token is not None:
            raise RuntimeError("LockedSection is not reentrant")
        if self._mode == "read":
            self.token = await self._manager.read_lock(self._lock_id)
        else:
            self.token = await self._manager.write_lock(self._lock_id)
        return self.token

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        token, self.token = self.token, None
        if token is None:
            return
        try:
            if self._mode == "read":
                released = await self._manager.read_release(self._lock_id, token)
            else:
                released = await self._manager.write_release(self._lock_id, token)
        except StoreError as exc:
            logger.warning(
                "Failed to release %s lock on %r: %s (will auto-expire)",
                self._mode,
                self._lock_id,
                exc,
            )
            return

        if released is None:
            logger.warning(
                "%s lock on %r expired before the section ended",
                self._mode.capitalize(),
                self._lock_id,
            )
