"""Bounded in-process cache tier with least-recently-used eviction.

:class:`FastTier` maps keys to :class:`~tiercache.models.Entry` objects and
keeps them in recency order inside a :class:`collections.OrderedDict`: the
least recently used key sits at the front, the most recently used at the
back. ``move_to_end`` and ``popitem(last=False)`` keep every operation O(1).

All operations are synchronous and serialised by a single
:class:`threading.Lock`, so the tier can be shared by an event loop and by
worker threads alike. The lock is only ever held for the dictionary
manipulation itself.

The tier knows nothing about expiry. It hands entries back as stored and
leaves the live/expired decision to :class:`~tiercache.engine.CacheEngine`.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Any, Optional

from tiercache.models import Entry

logger = logging.getLogger(__name__)


class FastTier:
    """Size-bounded, recency-ordered ``key -> Entry`` map.

    Args:
        max_size: Maximum number of entries. Must be at least 1.

    Raises:
        ValueError: If *max_size* is smaller than 1.

    Example::

        tier = FastTier(max_size=2)
        tier.put("a", Entry(value=1, expires_at=later))
        tier.put("b", Entry(value=2, expires_at=later))
        tier.get("a")                                     # "a" is now MRU
        tier.put("c", Entry(value=3, expires_at=later))   # evicts "b"
    """

    def __init__(self, max_size: int) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")
        self._max_size = max_size
        self._entries: OrderedDict[str, Entry[Any]] = OrderedDict()
        self._lock = threading.Lock()
        self._evictions = 0
        self._removals = 0

    @property
    def max_size(self) -> int:
        """Capacity of the tier."""
        return self._max_size

    @property
    def size(self) -> int:
        """Current number of entries."""
        return len(self._entries)

    @property
    def evictions(self) -> int:
        """Number of entries removed to make room for new keys."""
        return self._evictions

    @property
    def generation(self) -> int:
        """Counter bumped by every :meth:`delete`, :meth:`delete_if` and :meth:`clear`.

        Capacity evictions do not change it.
        """
        return self._removals

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> Optional[Entry[Any]]:
        """Return the entry for *key* and mark it most recently used.

        The recency update happens on any raw hit, including entries the
        caller is about to discard as expired.

        Returns:
            The stored entry, or ``None`` if the key is absent.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                self._entries.move_to_end(key)
            return entry

    def peek(self, key: str) -> Optional[Entry[Any]]:
        """Return the entry for *key* without touching the recency order."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, entry: Entry[Any]) -> Optional[str]:
        """Insert or replace *key*, placing it at the most recently used end.

        Replacing an existing key never evicts. Inserting a new key into a
        full tier first drops the least recently used key.

        Returns:
            The evicted key, or ``None`` if nothing was evicted.
        """
        with self._lock:
            evicted = self._insert(key, entry)
        self._log_eviction(evicted, key)
        return evicted

    def put_if_unchanged(self, key: str, entry: Entry[Any], generation: int) -> bool:
        """Insert *key* only if it is absent and nothing was removed since *generation*.

        Used for promotion from the persistent tier: a ``put``, ``delete``
        or ``clear`` that lands while the persistent read is in flight
        wins over the promoted entry.

        Returns:
            ``True`` if the entry was inserted.
        """
        with self._lock:
            if key in self._entries or self._removals != generation:
                return False
            evicted = self._insert(key, entry)
        self._log_eviction(evicted, key)
        return True

    def delete(self, key: str) -> bool:
        """Remove *key* if present.

        Returns:
            ``True`` if an entry was removed, ``False`` otherwise.
        """
        with self._lock:
            self._removals += 1
            return self._entries.pop(key, None) is not None

    def delete_if(self, key: str, entry: Entry[Any]) -> bool:
        """Remove *key* only while it still maps to this very *entry* object.

        Returns:
            ``True`` if the entry was removed, ``False`` if the key is gone
            or now holds a different entry.
        """
        with self._lock:
            if self._entries.get(key) is not entry:
                return False
            del self._entries[key]
            self._removals += 1
            return True

    def clear(self) -> int:
        """Remove every entry.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            self._removals += 1
            count = len(self._entries)
            self._entries.clear()
            return count

    def _insert(self, key: str, entry: Entry[Any]) -> Optional[str]:
        # Caller holds the lock.
        evicted: Optional[str] = None
        if key in self._entries:
            self._entries[key] = entry
            self._entries.move_to_end(key)
        else:
            if len(self._entries) >= self._max_size:
                evicted, _ = self._entries.popitem(last=False)
                self._evictions += 1
            self._entries[key] = entry
        return evicted

    @staticmethod
    def _log_eviction(evicted: Optional[str], key: str) -> None:
        if evicted is not None:
            logger.debug("Evicted '%s' from fast tier to admit '%s'", evicted, key)
