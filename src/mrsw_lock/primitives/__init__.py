"""Primitives: exceptions, key scheme, token generation."""

from __future__ import annotations

from .exceptions import (
    CleanupError,
    ConcurrencyError,
    InfrastructureError,
    InvalidLockIdError,
    LockTimeoutError,
    MRSWLockError,
    StoreCommandError,
    StoreConnectionError,
    StoreError,
)
from .id_generator import IIDGenerator, UUID4Generator
from .identifiers import (
    LockId,
    LockKeys,
    normalize_id,
    read_key,
    read_key_pattern,
    write_key,
)

__all__ = [
    "CleanupError",
    "ConcurrencyError",
    "IIDGenerator",
    "InfrastructureError",
    "InvalidLockIdError",
    "LockId",
    "LockKeys",
    "LockTimeoutError",
    "MRSWLockError",
    "StoreCommandError",
    "StoreConnectionError",
    "StoreError",
    "UUID4Generator",
    "normalize_id",
    "read_key",
    "read_key_pattern",
    "write_key",
]
