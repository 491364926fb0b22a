"""Disk-backed persistent tier built on :mod:`diskcache`.

:class:`DiskTierClient` stores :class:`~tiercache.models.Entry` objects in
a :class:`diskcache.Cache` directory so that entries written with
``persist=True`` survive a process restart. ``diskcache`` is a blocking,
SQLite-backed library, so every call is pushed onto a worker thread with
:func:`asyncio.to_thread` and optionally bounded by
:func:`asyncio.wait_for`.

Expiry is carried inside the entry rather than delegated to diskcache's
own ``expire`` argument; the engine decides what is stale when it reads.

Any failure from the store, including a timeout, is re-raised as the
typed error for the operation (see :mod:`tiercache.exceptions`).
"""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import diskcache
from pydantic import ValidationError

from tiercache.exceptions import (
    PersistenceClearError,
    PersistenceDeleteError,
    PersistenceReadError,
    PersistenceWriteError,
)
from tiercache.models import Entry
from tiercache.persistent.base import PersistentTierClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DiskTierClient(PersistentTierClient):
    """Persistent tier stored in a :class:`diskcache.Cache` directory.

    Args:
        directory: Directory holding the diskcache database. Created if
            missing.
        timeout: Optional per-call timeout in seconds. A call that takes
            longer fails with the operation's typed error, but its worker
            thread cannot be interrupted and runs to completion: a ``put``
            reported as failed may still land on disk. :meth:`close` waits
            for such calls before closing the store.

    Example::

        client = DiskTierClient("/tmp/tiercache-store", timeout=2.0)
        engine = CacheEngine(persistent=client)
        ...
        client.close()
    """

    def __init__(self, directory: str | Path, timeout: Optional[float] = None) -> None:
        self._directory = Path(directory)
        self._timeout = timeout
        self._cache: Optional[diskcache.Cache] = diskcache.Cache(str(self._directory))
        self._inflight = 0
        self._idle = threading.Condition()

    @property
    def name(self) -> str:
        return "disk"

    @property
    def directory(self) -> Path:
        """Filesystem location of the store."""
        return self._directory

    def __len__(self) -> int:
        return len(self._require_open())

    async def get(self, key: str) -> Optional[Entry[Any]]:
        try:
            raw = await self._run(self._require_open().get, key)
        except Exception as exc:
            raise PersistenceReadError(f"Cannot read '{key}' from {self._directory}: {exc}", key) from exc
        if raw is None:
            return None
        if isinstance(raw, Entry):
            return raw
        # Entries written by other tools may arrive as plain mappings.
        try:
            return Entry.model_validate(raw)
        except ValidationError as exc:
            raise PersistenceReadError(f"Stored value for '{key}' is not a cache entry", key) from exc

    async def put(self, key: str, entry: Entry[Any]) -> None:
        try:
            await self._run(self._require_open().set, key, entry)
        except Exception as exc:
            raise PersistenceWriteError(f"Cannot write '{key}' to {self._directory}: {exc}", key) from exc

    async def delete(self, key: str) -> None:
        try:
            await self._run(self._require_open().delete, key)
        except Exception as exc:
            raise PersistenceDeleteError(f"Cannot delete '{key}' from {self._directory}: {exc}", key) from exc

    async def clear(self) -> None:
        try:
            removed = await self._run(self._require_open().clear)
        except Exception as exc:
            raise PersistenceClearError(f"Cannot clear {self._directory}: {exc}") from exc
        logger.debug("Cleared %d entries from %s", removed, self._directory)

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`. Safe to call twice.

        Blocks until worker threads left behind by timed-out calls finish.
        """
        with self._idle:
            self._idle.wait_for(lambda: self._inflight == 0)
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def __enter__(self) -> DiskTierClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _require_open(self) -> diskcache.Cache:
        if self._cache is None:
            raise RuntimeError(f"Disk tier at {self._directory} is closed")
        return self._cache

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking diskcache call on a worker thread, honouring the timeout."""
        return await asyncio.wait_for(
            asyncio.to_thread(self._tracked, func, *args), timeout=self._timeout
        )

    def _tracked(self, func: Callable[..., T], *args: Any) -> T:
        with self._idle:
            self._inflight += 1
        try:
            return func(*args)
        finally:
            with self._idle:
                self._inflight -= 1
                self._idle.notify_all()
