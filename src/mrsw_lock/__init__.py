"""mrsw-lock: distributed multiple-reader/single-writer locks on Redis.

Readers share a resource, a writer owns it exclusively, and every rule is
enforced by atomic commands on the shared store so independent processes
can coordinate without any in-process state.
"""

from __future__ import annotations

from .backoff import JitteredBackoff
from .concurrency import LockedSection
from .config import LockSettings
from .correlation import (
    correlation_scope,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)
from .instrumentation import (
    HookRegistry,
    LockHook,
    get_hook_registry,
    set_hook_registry,
)

# ── Ports ────────────────────────────────────────────────────────
from .ports import IConnectionPool, IMRSWLockManager, LockSnapshot, LockState

# ── Primitives ───────────────────────────────────────────────────
from .primitives import (
    CleanupError,
    ConcurrencyError,
    IIDGenerator,
    InfrastructureError,
    InvalidLockIdError,
    LockId,
    LockKeys,
    LockTimeoutError,
    MRSWLockError,
    StoreCommandError,
    StoreConnectionError,
    StoreError,
    UUID4Generator,
    normalize_id,
)

# ── Redis backend ────────────────────────────────────────────────
from .redis import RedisConnectionPool, RedisMRSWLockManager

__all__ = [
    "CleanupError",
    "ConcurrencyError",
    "HookRegistry",
    "IConnectionPool",
    "IIDGenerator",
    "IMRSWLockManager",
    "InfrastructureError",
    "LockHook",
    "InvalidLockIdError",
    "JitteredBackoff",
    "LockId",
    "LockKeys",
    "LockSettings",
    "LockSnapshot",
    "LockState",
    "LockTimeoutError",
    "LockedSection",
    "MRSWLockError",
    "RedisConnectionPool",
    "RedisMRSWLockManager",
    "StoreCommandError",
    "StoreConnectionError",
    "StoreError",
    "UUID4Generator",
    "correlation_scope",
    "generate_correlation_id",
    "get_correlation_id",
    "get_hook_registry",
    "normalize_id",
    "set_correlation_id",
    "set_hook_registry",
]
