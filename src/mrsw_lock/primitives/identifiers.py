"""Key scheme: identifier normalization and store key construction.

Key layout (shared with every deployment talking to the same store):

- ``read:<id_str>:<token>`` one key per held read lock, sentinel value.
- ``write:<id_str>`` at most one, value is the owner token.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from .exceptions import InvalidLockIdError

LockId = Union[str, int, float, Iterable[Any], Mapping[Any, Any]]

READ_PREFIX = "read"
WRITE_PREFIX = "write"

# Glob metacharacters understood by KEYS/SCAN MATCH.
_GLOB_SPECIALS = re.compile(r"([*?\[\]\\])")


def normalize_id(lock_id: LockId) -> str:
    """
    Normalize a caller-supplied identifier to its canonical string.

    Strings are used as-is. Collections are reduced to the sorted string forms
    of their elements joined with ``,`` (mappings contribute their values), so
    ``["b", "a"]`` and ``("a", "b")`` both become ``"a,b"``. Scalars such as
    ints use their string form.

    Exact collision-freedom is not guaranteed: ``["a,b"]`` and ``["a", "b"]``
    normalize identically.

    ``""`` is the one string that is not passed through: it is rejected
    rather than locking the bare ``write:`` and ``read::`` keys.

    Raises:
        InvalidLockIdError: For ``None``, empty strings and empty collections.
    """
    if lock_id is None:
        raise InvalidLockIdError("Lock id must not be None")

    if isinstance(lock_id, str):
        id_str = lock_id
    elif isinstance(lock_id, (bytes, bytearray)):
        raise InvalidLockIdError("Lock id must be text, not bytes")
    elif isinstance(lock_id, Mapping):
        id_str = ",".join(sorted(str(v) for v in lock_id.values()))
    elif isinstance(lock_id, Iterable):
        id_str = ",".join(sorted(str(v) for v in lock_id))
    else:
        id_str = str(lock_id)

    if not id_str:
        raise InvalidLockIdError(f"Lock id {lock_id!r} normalizes to an empty key")
    return id_str


def read_key(id_str: str, token: str) -> str:
    return f"{READ_PREFIX}:{id_str}:{token}"


def write_key(id_str: str) -> str:
    return f"{WRITE_PREFIX}:{id_str}"


def read_key_pattern(id_str: str) -> str:
    """Glob matching every read key of ``id_str`` and nothing else."""
    escaped = _GLOB_SPECIALS.sub(r"\\\1", id_str)
    return f"{READ_PREFIX}:{escaped}:*"


@dataclass(frozen=True)
class LockKeys:
    """
    All store keys for one normalized identifier.

    Examples:
        >>> keys = LockKeys.for_id(["b", "a"])
        >>> keys.write_key
        'write:a,b'
        >>> keys.read_key("t1")
        'read:a,b:t1'
    """

    id_str: str

    @classmethod
    def for_id(cls, lock_id: LockId) -> LockKeys:
        return cls(normalize_id(lock_id))

    @property
    def write_key(self) -> str:
        return write_key(self.id_str)

    @property
    def read_pattern(self) -> str:
        return read_key_pattern(self.id_str)

    def read_key(self, token: str) -> str:
        return read_key(self.id_str, token)

    def __str__(self) -> str:
        return self.id_str
