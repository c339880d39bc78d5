from .locking import IMRSWLockManager, LockSnapshot, LockState
from .pool import IConnectionPool

__all__ = [
    "IConnectionPool",
    "IMRSWLockManager",
    "LockSnapshot",
    "LockState",
]
