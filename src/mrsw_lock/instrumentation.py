"""Hooks wrapped around lock operations.

A hook is an async callable ``hook(operation, attributes, next_handler)``.
It must await ``next_handler()`` and return (or re-raise) its outcome, which
lets it time acquisitions, open tracing spans or count contention without
the lock manager knowing about any tracing library.

Operations:

- ``mrsw.read_lock`` / ``mrsw.write_lock``
- ``mrsw.read_release`` / ``mrsw.write_release``

Attributes: ``lock.id``, ``lock.mode``, ``correlation_id`` and, for
releases, ``lock.token``.
"""

from __future__ import annotations

import bisect
import fnmatch
import functools
import logging
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

logger = logging.getLogger("mrsw_lock.instrumentation")


@runtime_checkable
class LockHook(Protocol):
    async def __call__(
        self,
        operation: str,
        attributes: dict[str, Any],
        next_handler: Callable[[], Awaitable[Any]],
    ) -> Any: ...


@dataclass(eq=False)
class HookBinding:
    """
    A hook bound into a registry.

    ``operations`` holds ``fnmatch`` patterns and ``modes`` restricts the hook
    to ``"read"`` or ``"write"`` locks; empty means "everything".
    """

    hook: LockHook
    priority: int = 0
    operations: tuple[str, ...] = ()
    modes: frozenset[str] = field(default_factory=frozenset)
    enabled: bool = True

    def applies_to(self, operation: str, attributes: dict[str, Any]) -> bool:
        if not self.enabled:
            return False
        if self.modes and attributes.get("lock.mode") not in self.modes:
            return False
        return not self.operations or any(
            fnmatch.fnmatchcase(operation, pattern) for pattern in self.operations
        )


class HookRegistry:
    """Hooks ordered by priority; the lowest value wraps outermost."""

    def __init__(self) -> None:
        self._bindings: list[HookBinding] = []
        self._keys: list[int] = []

    def register(
        self,
        hook: LockHook,
        *,
        priority: int = 0,
        operations: Iterable[str] | None = None,
        modes: Iterable[str] | None = None,
        enabled: bool = True,
    ) -> HookBinding:
        binding = HookBinding(
            hook,
            priority=priority,
            operations=tuple(operations or ()),
            modes=frozenset(modes or ()),
            enabled=enabled,
        )
        # Equal priorities keep registration order.
        index = bisect.bisect_right(self._keys, priority)
        self._keys.insert(index, priority)
        self._bindings.insert(index, binding)
        return binding

    def unregister(self, binding: HookBinding) -> None:
        for index, candidate in enumerate(self._bindings):
            if candidate is binding:
                del self._bindings[index]
                del self._keys[index]
                return

    def clear(self) -> None:
        self._bindings.clear()
        self._keys.clear()

    def __len__(self) -> int:
        return len(self._bindings)

    async def execute_all(
        self,
        operation: str,
        attributes: dict[str, Any],
        next_handler: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Call ``next_handler`` through every hook that applies."""
        applicable = [b for b in self._bindings if b.applies_to(operation, attributes)]
        if not applicable:
            return await next_handler()

        logger.debug("Wrapping %s in %d hook(s)", operation, len(applicable))
        chain: Callable[[], Awaitable[Any]] = next_handler
        for binding in reversed(applicable):
            chain = functools.partial(binding.hook, operation, attributes, chain)
        return await chain()


_current_registry: ContextVar[HookRegistry | None] = ContextVar(
    "mrsw_hook_registry", default=None
)


def get_hook_registry() -> HookRegistry:
    """Registry of the current context, created on first use.

    Contexts copied before the first call each get their own registry, so
    tests and unrelated tasks do not see each other's hooks.
    """
    registry = _current_registry.get()
    if registry is None:
        registry = HookRegistry()
        _current_registry.set(registry)
    return registry


def set_hook_registry(registry: HookRegistry) -> None:
    _current_registry.set(registry)
