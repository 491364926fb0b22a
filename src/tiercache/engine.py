"""Two-level cache engine: a bounded in-process tier over an optional persistent tier.

:class:`CacheEngine` is the only object callers talk to. Reads consult the
:class:`~tiercache.fast_tier.FastTier` first and fall back to the
:class:`~tiercache.persistent.base.PersistentTierClient` on a miss, promoting
live entries back into memory. Writes always land in the fast tier and are
written through to the persistent tier when the caller asks for
``persist=True``.

The persistent tier can never make an engine call fail. Every call into it
goes through :meth:`CacheEngine._call`, which turns exceptions into a
:class:`~tiercache.persistent.base.PersistenceResult`; the engine logs the
error and carries on with a miss or a write that is not durable. Only a
defect in the fast tier's own logic can raise out of the engine.

The engine is not a singleton. Build one at startup (see
:func:`tiercache.factory.create_engine`) and pass it to the code that
needs it.
"""

from __future__ import annotations

import inspect
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from tiercache.exceptions import (
    PersistenceClearError,
    PersistenceDeleteError,
    PersistenceError,
    PersistenceReadError,
    PersistenceWriteError,
)
from tiercache.fast_tier import FastTier
from tiercache.models import CacheStats, Entry
from tiercache.persistent.base import PersistenceResult, PersistentTierClient

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_MAX_SIZE = 100

_module_logger = logging.getLogger(__name__)


class CacheEngine:
    """Orchestrates get/set/invalidate/clear across the fast and persistent tiers.

    Args:
        persistent: Optional persistent tier. The engine references it but
            never closes or resets it.
        default_ttl: Seconds an entry stays live when :meth:`set` is called
            without ``ttl``.
        max_size: Capacity of the in-process tier.
        clock: Callable returning the current POSIX time in seconds.
        logger: Logger receiving hit/miss and failure messages. Defaults to
            this module's logger.

    Raises:
        ValueError: If *default_ttl* is not positive or *max_size* is below 1.

    Example::

        engine = CacheEngine(InMemoryTierClient(), default_ttl=60, max_size=500)
        await engine.set("user:1", {"name": "Ada"}, persist=True)
        await engine.get("user:1")   # {"name": "Ada"}
    """

    def __init__(
        self,
        persistent: Optional[PersistentTierClient] = None,
        *,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if default_ttl <= 0:
            raise ValueError(f"default_ttl must be positive, got {default_ttl}")
        self._fast = FastTier(max_size)
        self._persistent = persistent
        self._default_ttl = default_ttl
        self._clock = clock
        self._logger = logger or _module_logger

        self._counter_lock = threading.Lock()
        self._counters = {
            "fast_hits": 0,
            "persistent_hits": 0,
            "misses": 0,
            "expirations": 0,
            "persistence_failures": 0,
        }

    @property
    def default_ttl(self) -> float:
        """Seconds applied when :meth:`set` receives no ``ttl``."""
        return self._default_ttl

    @property
    def max_size(self) -> int:
        """Capacity of the in-process tier."""
        return self._fast.max_size

    @property
    def fast_size(self) -> int:
        """Number of entries currently held in memory, expired ones included."""
        return self._fast.size

    @property
    def persistent(self) -> Optional[PersistentTierClient]:
        """The persistent tier, if one is attached."""
        return self._persistent

    # ------------------------------------------------------------------ #
    # Public cache operations
    # ------------------------------------------------------------------ #

    async def get(self, key: str) -> Optional[Any]:
        """Return the live value for *key*, or ``None``.

        An expired fast-tier entry is dropped and the persistent tier is
        consulted next. A live persistent entry is promoted into the fast
        tier unless a ``set``, ``invalidate`` or ``clear`` touched the fast
        tier while the read was in flight; an expired one is deleted from
        the persistent tier. A failing persistent tier is logged and
        treated as a miss.
        """
        now = self._clock()

        while True:
            entry = self._fast.get(key)
            if entry is None:
                break
            if entry.is_live(now):
                self._count("fast_hits")
                self._logger.debug("Fast tier hit: %s", key)
                return entry.value
            # Another writer may have replaced the stale entry meanwhile.
            if self._fast.delete_if(key, entry):
                self._count("expirations")
                self._logger.debug("Fast tier entry expired: %s", key)
                break

        if self._persistent is None:
            self._count("misses")
            return None

        generation = self._fast.generation
        result = await self._call(PersistenceReadError, key, self._persistent.get, key)
        stored = result.value if result.ok else None
        if stored is not None and not isinstance(stored, Entry):
            self._count("persistence_failures")
            self._logger.warning(
                "Persistent tier returned %s for '%s', expected an Entry",
                type(stored).__name__,
                key,
            )
            stored = None

        if stored is not None:
            if stored.is_live(now):
                self._count("persistent_hits")
                if self._fast.put_if_unchanged(key, stored, generation):
                    self._logger.debug("Persistent tier hit, promoted: %s", key)
                else:
                    self._logger.debug("Persistent tier hit, %s changed during read", key)
                return stored.value
            self._count("expirations")
            self._logger.debug("Persistent tier entry expired: %s", key)
            await self._call(PersistenceDeleteError, key, self._persistent.delete, key)

        self._count("misses")
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[float] = None,
        persist: bool = False,
    ) -> None:
        """Store *value* under *key* for *ttl* seconds.

        The fast tier is always written. With ``persist=True`` the entry is
        also written to the persistent tier; if that write fails the error
        is logged and the call still succeeds.

        Args:
            key: Cache key.
            value: Value to cache.
            ttl: Lifetime in seconds. Defaults to :attr:`default_ttl`.
            persist: Also write the entry to the persistent tier.

        Raises:
            ValueError: If *ttl* is given and not positive.
        """
        if ttl is not None and ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        lifetime = self._default_ttl if ttl is None else ttl
        entry: Entry[Any] = Entry(value=value, expires_at=self._clock() + lifetime)

        self._fast.put(key, entry)

        if persist:
            if self._persistent is None:
                self._logger.debug("No persistent tier attached, '%s' kept in memory only", key)
                return
            await self._call(PersistenceWriteError, key, self._persistent.put, key, entry)

    async def invalidate(self, key: str) -> None:
        """Remove *key* from both tiers. Persistent failures are logged, not raised."""
        self._fast.delete(key)
        self._logger.info("Invalidated %s", key)
        if self._persistent is not None:
            await self._call(PersistenceDeleteError, key, self._persistent.delete, key)

    async def clear(self) -> None:
        """Empty both tiers. Persistent failures are logged, not raised."""
        removed = self._fast.clear()
        self._logger.info("Cleared %d entries from fast tier", removed)
        if self._persistent is not None:
            await self._call(PersistenceClearError, None, self._persistent.clear)

    async def get_or_set(
        self,
        key: str,
        factory: Callable[[], Union[T, Awaitable[T]]],
        ttl: Optional[float] = None,
        persist: bool = False,
    ) -> T:
        """Return the cached value for *key*, computing and storing it on a miss.

        *factory* may be a plain function or a coroutine function. If it
        raises, nothing is stored and the exception propagates.
        """
        cached = await self.get(key)
        if cached is not None:
            return cached
        value = factory()
        if inspect.isawaitable(value):
            value = await value
        await self.set(key, value, ttl=ttl, persist=persist)
        return value  # type: ignore[return-value]

    def contains(self, key: str) -> bool:
        """Whether the fast tier holds a live entry for *key*.

        Neither the recency order nor the persistent tier is touched.
        """
        entry = self._fast.peek(key)
        return entry is not None and entry.is_live(self._clock())

    def stats(self) -> CacheStats:
        """Return a snapshot of the engine's counters."""
        with self._counter_lock:
            counters = dict(self._counters)
        return CacheStats(
            **counters,
            evictions=self._fast.evictions,
            size=self._fast.size,
            max_size=self._fast.max_size,
            persistent=self._persistent is not None,
        )

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _count(self, name: str) -> None:
        with self._counter_lock:
            self._counters[name] += 1

    async def _call(
        self,
        error_type: type[PersistenceError],
        key: Optional[str],
        func: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> PersistenceResult[T]:
        """Invoke a persistent-tier method and capture the outcome.

        Typed persistence errors are kept as-is; anything else a client
        raises is wrapped in *error_type*. ``asyncio.CancelledError`` is not
        an ``Exception`` and still propagates.
        """
        try:
            value = await func(*args)
        except PersistenceError as exc:
            error = exc
        except Exception as exc:
            error = error_type(f"{type(exc).__name__}: {exc}", key)
            error.__cause__ = exc
        else:
            return PersistenceResult(value=value)

        self._count("persistence_failures")
        self._logger.warning(
            "Persistent tier %s failed for %s: %s",
            error_type.operation,
            f"'{key}'" if key is not None else "all keys",
            error,
        )
        return PersistenceResult(error=error)
