"""Dictionary-backed persistent tier for tests and single-process development.

:class:`InMemoryTierClient` satisfies the
:class:`~tiercache.persistent.base.PersistentTierClient` contract without
any I/O. It outlives the engines that reference it, which makes it the
simplest way to model a process restart: build a second
:class:`~tiercache.engine.CacheEngine` over the same client and the
entries written with ``persist=True`` are still there.
"""

from __future__ import annotations

from typing import Any, Optional

from tiercache.models import Entry
from tiercache.persistent.base import PersistentTierClient


class InMemoryTierClient(PersistentTierClient):
    """Persistent tier that keeps entries in a plain ``dict``.

    Example::

        store = InMemoryTierClient()
        await store.put("k", Entry(value=1, expires_at=later))
        assert "k" in store
    """

    def __init__(self) -> None:
        self._data: dict[str, Entry[Any]] = {}

    @property
    def name(self) -> str:
        return "memory"

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    async def get(self, key: str) -> Optional[Entry[Any]]:
        return self._data.get(key)

    async def put(self, key: str, entry: Entry[Any]) -> None:
        self._data[key] = entry

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    async def clear(self) -> None:
        self._data.clear()
