"""Correlation id attached to every lock operation's hook attributes."""

from __future__ import annotations

import contextlib
import uuid
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

# Child tasks inherit a copy of the caller's id.
_current: ContextVar[str | None] = ContextVar("mrsw_correlation_id", default=None)


def get_correlation_id() -> str | None:
    return _current.get()


def set_correlation_id(correlation_id: str | None) -> None:
    _current.set(correlation_id)


def generate_correlation_id() -> str:
    return uuid.uuid4().hex


@contextlib.contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Use ``correlation_id`` (or a fresh one) until the block exits."""
    cid = correlation_id or generate_correlation_id()
    token = _current.set(cid)
    try:
        yield cid
    finally:
        _current.reset(token)
