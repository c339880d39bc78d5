"""Redis backend for mrsw-lock."""

from __future__ import annotations

from .manager import COMPARE_AND_DELETE_SCRIPT, RedisMRSWLockManager
from .pool import RedisConnectionPool

__all__ = [
    "COMPARE_AND_DELETE_SCRIPT",
    "RedisConnectionPool",
    "RedisMRSWLockManager",
]
