"""Exception hierarchy for mrsw-lock."""

from __future__ import annotations

from typing import Literal


class MRSWLockError(Exception):
    """Root exception for the entire mrsw-lock package."""


class InvalidLockIdError(MRSWLockError, ValueError):
    """Raised when a lock identifier cannot be normalized to a key."""


class ConcurrencyError(MRSWLockError):
    """Base class for contention outcomes (the resource is held by others)."""


class LockTimeoutError(ConcurrencyError):
    """Failed to acquire a lock within the configured number of attempts.

    This is the normal outcome under contention, not a fault. Carries the
    normalized identifier, the requested mode and how many attempts were made.
    """

    def __init__(
        self,
        lock_id: str,
        mode: Literal["read", "write"],
        attempts: int,
        reason: str | None = None,
    ) -> None:
        self.lock_id = lock_id
        self.mode = mode
        self.attempts = attempts
        self.reason = reason

        msg = f"Cannot get {mode} lock on {lock_id!r} after {attempts} retries"
        if reason:
            msg += f" - {reason}"

        super().__init__(msg)


class InfrastructureError(MRSWLockError):
    """Base class for all infrastructure-related errors."""


class StoreError(InfrastructureError):
    """Base class for failures of the backing key-value store."""


class StoreConnectionError(StoreError):
    """Raised when a connection cannot be borrowed from the pool."""


class StoreCommandError(StoreError):
    """Raised when an individual store command or batch fails.

    Raised after best-effort cleanup of any key the failed attempt created.
    """

    def __init__(self, operation: str, key: str, cause: BaseException) -> None:
        self.operation = operation
        self.key = key
        self.cause = cause
        super().__init__(f"Store command failed during {operation} on {key}: {cause}")


class CleanupError(StoreError):
    """A cleanup delete failed after a refused or failed attempt.

    Never raised out of the lock manager: it is logged, since key TTLs
    guarantee the leftover key expires on its own.
    """

    def __init__(self, key: str, cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"Failed to clean up {key} (will auto-expire): {cause}")
