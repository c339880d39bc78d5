"""IMRSWLockManager: protocol for multiple-reader/single-writer locking.

Lock TTL guidance:
- Read locks default to a long TTL (240s): readers are expected to hold the
  resource for the duration of a request or job.
- Write locks default to a short TTL (30s): a crashed writer blocks every
  reader and writer until expiry, so keep it close to the real critical
  section length.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..concurrency import LockedSection
    from ..primitives.identifiers import LockId


class LockState(str, enum.Enum):
    """Observed state of one identifier."""

    FREE = "free"
    READ_HELD = "read_held"
    WRITE_HELD = "write_held"


@dataclass(frozen=True)
class LockSnapshot:
    """
    Point-in-time view of the keys held for one identifier.

    Used by :meth:`IMRSWLockManager.inspect` for monitoring and debugging.
    The snapshot is not atomic with respect to concurrent lockers.
    """

    id_str: str
    readers: int
    writer_token: str | None = None

    @property
    def state(self) -> LockState:
        # A refused writer's key can coexist with readers for the duration
        # of one batch; the writer does not own the resource then.
        if self.readers:
            return LockState.READ_HELD
        if self.writer_token is not None:
            return LockState.WRITE_HELD
        return LockState.FREE


@runtime_checkable
class IMRSWLockManager(Protocol):
    """
    Distributed multiple-reader/single-writer lock.

    Many readers may hold an identifier at once; a writer only when no other
    writer and no reader holds it. All mutual exclusion lives in the shared
    store, never in process memory.

    Example:
        ```python
        token = await manager.write_lock(("Account", "123"))
        try:
            ...
        finally:
            await manager.write_release(("Account", "123"), token)
        ```
    """

    async def read_lock(self, lock_id: LockId) -> str:
        """
        Acquire a shared lock.

        Returns:
            The token required by :meth:`read_release`.

        Raises:
            LockTimeoutError: If a writer held the resource on every attempt.
            StoreError: On connection or command failure.
        """
        ...

    async def write_lock(self, lock_id: LockId) -> str:
        """
        Acquire the exclusive lock.

        Returns:
            The owner token required by :meth:`write_release`.

        Raises:
            LockTimeoutError: If readers or another writer held the resource
                on every attempt.
            StoreError: On connection or command failure.
        """
        ...

    async def read_release(self, lock_id: LockId, token: str) -> str | None:
        """
        Release a shared lock.

        Returns:
            ``token`` if a lock was released, ``None`` if it was already gone.
        """
        ...

    async def write_release(self, lock_id: LockId, token: str) -> str | None:
        """
        Release the exclusive lock if ``token`` still owns it.

        Returns:
            ``token`` if released, ``None`` if the lock expired or is now owned
            by someone else. Neither case is an error.
        """
        ...

    def reading(self, lock_id: LockId) -> LockedSection:
        """Scoped shared lock: ``async with manager.reading(id) as token:``."""
        ...

    def writing(self, lock_id: LockId) -> LockedSection:
        """Scoped exclusive lock: ``async with manager.writing(id) as token:``."""
        ...

    async def inspect(self, lock_id: LockId) -> LockSnapshot:
        """Report the readers and writer currently registered for ``lock_id``."""
        ...

    async def health_check(self) -> bool:
        """
        Verify that the backing store is reachable.

        Returns:
            True if the store answered a ping, False otherwise.
        """
        ...

    async def close(self) -> None:
        """Release pooled resources."""
        ...
