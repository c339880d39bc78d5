"""Redis-based multiple-reader/single-writer distributed lock."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Literal, cast

from ..backoff import JitteredBackoff
from ..concurrency import LockedSection
from ..config import LockSettings
from ..correlation import get_correlation_id
from ..instrumentation import get_hook_registry
from ..ports.locking import IMRSWLockManager, LockSnapshot
from ..primitives.exceptions import (
    CleanupError,
    LockTimeoutError,
    MRSWLockError,
    StoreCommandError,
    StoreConnectionError,
)
from ..primitives.id_generator import UUID4Generator
from ..primitives.identifiers import LockKeys
from .pool import RedisConnectionPool

if TYPE_CHECKING:
    import random
    from collections.abc import AsyncIterator, Awaitable, Callable

    from ..ports.pool import IConnectionPool
    from ..primitives.id_generator import IIDGenerator
    from ..primitives.identifiers import LockId

logger = logging.getLogger("mrsw_lock.redis.manager")

# Only the existence of a read key matters; its value is never compared.
READ_SENTINEL = "anyvalue"

# KEYS[1] = write key, ARGV[1] = token expected to own it.
COMPARE_AND_DELETE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
else
    return 0
end
"""

Mode = Literal["read", "write"]


def _as_int(value: Any) -> int:
    if isinstance(value, (str, bytes)):
        return int(value)
    return int(value or 0)


class RedisMRSWLockManager(IMRSWLockManager):
    """
    Multiple-reader/single-writer lock coordinated through one Redis endpoint.

    Protocol:
    - Read lock: ``SET read:<id>:<token> NX PX`` and ``GET write:<id>`` in one
      ``MULTI``/``EXEC``; granted iff the key was created and no writer exists.
    - Write lock: ``SET write:<id> <token> NX PX`` and ``KEYS read:<id>:*`` in
      one ``MULTI``/``EXEC``; granted iff the key was created and no reader
      exists.
    - Refused attempts remove what they created (the read key, or the write
      key via compare-and-delete) and retry with jittered exponential backoff
      up to ``max_retries`` attempts.
    - Write release and write cleanup are a single Lua compare-and-delete, so
      a key that expired and was re-acquired by another process is never
      deleted.

    Every held lock carries a TTL, so a crashed holder never blocks the
    resource forever.

    Example:
        ```python
        manager = RedisMRSWLockManager.from_url(
            "redis://localhost:6379/0",
            LockSettings(max_write_lock_time=10),
        )

        async with manager.writing(("Account", "123")):
            ...

        token = await manager.read_lock("report:2024")
        try:
            ...
        finally:
            await manager.read_release("report:2024", token)
        ```
    """

    def __init__(
        self,
        pool: IConnectionPool,
        settings: LockSettings | Mapping[str, Any] | None = None,
        *,
        id_generator: IIDGenerator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the lock manager.

        Args:
            pool: Source of store connections; one is borrowed per operation.
            settings: TTLs and retry/backoff configuration, either a
                :class:`LockSettings` or a mapping of field overrides
                validated against it.
            id_generator: Token source (UUIDv4 by default).
            rng: Random source for backoff jitter (seeded in tests).
        """
        self._pool = pool
        self._settings = _coerce_settings(settings)
        self._ids = id_generator or UUID4Generator()
        self._rng = rng

    @classmethod
    def from_url(
        cls,
        url: str,
        settings: LockSettings | Mapping[str, Any] | None = None,
        **pool_options: Any,
    ) -> RedisMRSWLockManager:
        """
        Create a manager backed by a new :class:`RedisConnectionPool`.

        Lock settings go in ``settings`` (a model or a mapping such as
        ``{"max_retries": 5}``); keyword options are for the Redis pool.
        """
        lock_settings = _coerce_settings(settings)
        return cls(RedisConnectionPool.from_url(url, **pool_options), lock_settings)

    @property
    def settings(self) -> LockSettings:
        return self._settings

    # ── Connection scope ─────────────────────────────────────────────

    @contextlib.asynccontextmanager
    async def _borrow(self) -> AsyncIterator[Any]:
        """Borrow one connection and hand it back exactly once."""
        try:
            client = await self._pool.acquire()
        except MRSWLockError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise StoreConnectionError(
                f"Cannot borrow a store connection: {exc}"
            ) from exc

        try:
            yield client
        finally:
            try:
                await self._pool.release(client)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to return connection to pool: %s", exc)

    def _attributes(
        self, keys: LockKeys, mode: Mode, token: str | None = None
    ) -> dict[str, Any]:
        attributes: dict[str, Any] = {
            "lock.id": keys.id_str,
            "lock.mode": mode,
            "correlation_id": get_correlation_id(),
        }
        if token is not None:
            attributes["lock.token"] = token
        return attributes

    # ── Acquisition ──────────────────────────────────────────────────

    async def read_lock(self, lock_id: LockId) -> str:
        keys = LockKeys.for_id(lock_id)
        return cast(
            "str",
            await get_hook_registry().execute_all(
                "mrsw.read_lock",
                self._attributes(keys, "read"),
                lambda: self._read_lock_internal(keys),
            ),
        )

    async def write_lock(self, lock_id: LockId) -> str:
        keys = LockKeys.for_id(lock_id)
        return cast(
            "str",
            await get_hook_registry().execute_all(
                "mrsw.write_lock",
                self._attributes(keys, "write"),
                lambda: self._write_lock_internal(keys),
            ),
        )

    async def _read_lock_internal(self, keys: LockKeys) -> str:
        token = self._ids.next_id()
        read_key = keys.read_key(token)

        async def attempt(client: Any) -> str | None:
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(
                    read_key, READ_SENTINEL, nx=True, px=self._settings.read_ttl_ms
                )
                pipe.get(keys.write_key)
                created, writer = await pipe.execute()
            if writer is not None:
                return "write lock held"
            if not created:
                return f"read key {read_key} already exists"
            return None

        async def discard(client: Any, cause: BaseException | None) -> None:
            try:
                await client.delete(read_key)
            except Exception as exc:  # noqa: BLE001
                _log_cleanup_failure(CleanupError(read_key, exc), cause)

        return await self._acquire(keys, "read", token, read_key, attempt, discard)

    async def _write_lock_internal(self, keys: LockKeys) -> str:
        token = self._ids.next_id()
        write_key = keys.write_key

        async def attempt(client: Any) -> str | None:
            async with client.pipeline(transaction=True) as pipe:
                pipe.set(write_key, token, nx=True, px=self._settings.write_ttl_ms)
                pipe.keys(keys.read_pattern)
                created, readers = await pipe.execute()
            if not created:
                return "write lock held by another owner"
            if readers:
                return f"{len(readers)} read lock(s) held"
            return None

        async def discard(client: Any, cause: BaseException | None) -> None:
            try:
                await client.eval(COMPARE_AND_DELETE_SCRIPT, 1, write_key, token)
            except Exception as exc:  # noqa: BLE001
                _log_cleanup_failure(CleanupError(write_key, exc), cause)

        return await self._acquire(keys, "write", token, write_key, attempt, discard)

    async def _acquire(
        self,
        keys: LockKeys,
        mode: Mode,
        token: str,
        key: str,
        attempt: Callable[[Any], Awaitable[str | None]],
        discard: Callable[[Any, BaseException | None], Awaitable[None]],
    ) -> str:
        """Run ``attempt`` until granted, a store failure, or retries run out.

        ``attempt`` returns ``None`` when the lock is granted and the refusal
        reason otherwise. ``discard`` removes whatever a refused or failed
        attempt created.
        """
        backoff = JitteredBackoff.from_settings(self._settings, self._rng)
        logger.debug("Trying to lock %s for %s (token=%s)", keys, mode, token)

        async with self._borrow() as client:
            while True:
                try:
                    refusal = await attempt(client)
                except Exception as exc:  # noqa: BLE001
                    logger.error(
                        "Store failure while locking %s for %s: %s", keys, mode, exc
                    )
                    await discard(client, exc)
                    raise StoreCommandError(f"{mode}_lock", key, exc) from exc

                if refusal is None:
                    logger.debug(
                        "Locked %s for %s (token=%s, attempt=%d)",
                        keys,
                        mode,
                        token,
                        backoff.attempts + 1,
                    )
                    return token

                await discard(client, None)
                delay = backoff.record_attempt()
                if backoff.exhausted:
                    logger.warning(
                        "Giving up %s lock on %s after %d attempts: %s",
                        mode,
                        keys,
                        backoff.attempts,
                        refusal,
                    )
                    raise LockTimeoutError(
                        keys.id_str, mode, backoff.attempts, reason=refusal
                    )

                logger.debug(
                    "%s lock on %s refused (%s), retrying in %.3fs",
                    mode.capitalize(),
                    keys,
                    refusal,
                    delay,
                )
                await asyncio.sleep(delay)

    # ── Release ──────────────────────────────────────────────────────

    async def read_release(self, lock_id: LockId, token: str) -> str | None:
        keys = LockKeys.for_id(lock_id)
        return cast(
            "str | None",
            await get_hook_registry().execute_all(
                "mrsw.read_release",
                self._attributes(keys, "read", token),
                lambda: self._read_release_internal(keys, token),
            ),
        )

    async def write_release(self, lock_id: LockId, token: str) -> str | None:
        keys = LockKeys.for_id(lock_id)
        return cast(
            "str | None",
            await get_hook_registry().execute_all(
                "mrsw.write_release",
                self._attributes(keys, "write", token),
                lambda: self._write_release_internal(keys, token),
            ),
        )

    async def _read_release_internal(self, keys: LockKeys, token: str) -> str | None:
        read_key = keys.read_key(token)
        logger.debug("Releasing read lock %s (token=%s)", keys, token)

        async with self._borrow() as client:
            try:
                deleted = _as_int(await client.delete(read_key))
            except Exception as exc:  # noqa: BLE001
                logger.error("Error while releasing read lock %s: %s", keys, exc)
                raise StoreCommandError("read_release", read_key, exc) from exc

        if deleted:
            logger.debug("Read lock released %s (token=%s)", keys, token)
            return token
        logger.debug("Read lock %s (token=%s) already gone", keys, token)
        return None

    async def _write_release_internal(self, keys: LockKeys, token: str) -> str | None:
        write_key = keys.write_key
        logger.debug("Releasing write lock %s (token=%s)", keys, token)

        async with self._borrow() as client:
            try:
                deleted = _as_int(
                    await client.eval(COMPARE_AND_DELETE_SCRIPT, 1, write_key, token)
                )
            except Exception as exc:  # noqa: BLE001
                logger.error("Error while releasing write lock %s: %s", keys, exc)
                raise StoreCommandError("write_release", write_key, exc) from exc

        if deleted:
            logger.debug("Write lock released %s (token=%s)", keys, token)
            return token
        logger.debug(
            "Write lock %s not owned by token %s (expired or re-acquired)",
            keys,
            token,
        )
        return None

    # ── Scoped sections ──────────────────────────────────────────────

    def reading(self, lock_id: LockId) -> LockedSection:
        return LockedSection(self, lock_id, "read")

    def writing(self, lock_id: LockId) -> LockedSection:
        return LockedSection(self, lock_id, "write")

    # ── Monitoring ───────────────────────────────────────────────────

    async def inspect(self, lock_id: LockId) -> LockSnapshot:
        keys = LockKeys.for_id(lock_id)
        async with self._borrow() as client:
            try:
                async with client.pipeline(transaction=True) as pipe:
                    pipe.keys(keys.read_pattern)
                    pipe.get(keys.write_key)
                    readers, writer = await pipe.execute()
            except Exception as exc:  # noqa: BLE001
                raise StoreCommandError("inspect", keys.write_key, exc) from exc

        if isinstance(writer, bytes):
            writer = writer.decode()
        return LockSnapshot(
            id_str=keys.id_str,
            readers=len(readers or ()),
            writer_token=writer,
        )

    async def health_check(self) -> bool:
        """Ping the store through a borrowed connection."""
        try:
            async with self._borrow() as client:
                return bool(await client.ping())
        except Exception as exc:  # noqa: BLE001
            logger.debug("Health check failed: %s", exc)
            return False

    async def close(self) -> None:
        await self._pool.close()


def _log_cleanup_failure(error: CleanupError, cause: BaseException | None) -> None:
    if cause is None:
        logger.warning("%s", error)
    else:
        logger.warning("%s (after: %s)", error, cause)


def _coerce_settings(
    settings: LockSettings | Mapping[str, Any] | None,
) -> LockSettings:
    if settings is None:
        return LockSettings()
    if isinstance(settings, LockSettings):
        return settings
    return LockSettings.model_validate(dict(settings))
