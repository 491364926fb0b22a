"""Abstract interface for the persistent cache tier.

:class:`PersistentTierClient` is the contract
:class:`~tiercache.engine.CacheEngine` calls when the fast tier misses or
when a caller asks for a durable write. The storage engine behind it is an
external collaborator; this package ships two adapters
(:class:`~tiercache.persistent.memory.InMemoryTierClient` and
:class:`~tiercache.persistent.disk.DiskTierClient`).

Implementations signal failure by raising the typed errors from
:mod:`tiercache.exceptions`. The engine does not rely on that alone: it
wraps every call into a :class:`PersistenceResult` and inspects the result
instead of letting anything propagate.

See Also:
    :class:`~tiercache.engine.CacheEngine` -- the only caller of this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from tiercache.exceptions import PersistenceError
from tiercache.models import Entry

T = TypeVar("T")


class PersistentTierClient(ABC):
    """Asynchronous, fallible key/value store holding :class:`~tiercache.models.Entry` objects.

    The client is shared with other subsystems and may be mutated
    concurrently from outside the engine. It is referenced, never owned,
    by the engine: closing it is the responsibility of whoever created it.
    """

    @property
    def name(self) -> str:
        """Short backend name used in log messages and stats."""
        return type(self).__name__

    @abstractmethod
    async def get(self, key: str) -> Optional[Entry[Any]]:
        """Return the stored entry for *key*, or ``None`` when absent.

        Raises:
            PersistenceReadError: If the underlying store cannot be read.
        """

    @abstractmethod
    async def put(self, key: str, entry: Entry[Any]) -> None:
        """Store *entry* under *key*, replacing any previous entry.

        Raises:
            PersistenceWriteError: If the entry cannot be written.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*. Deleting an absent key is not an error.

        Raises:
            PersistenceDeleteError: If the store rejects the removal.
        """

    @abstractmethod
    async def clear(self) -> None:
        """Remove every entry from the store.

        Raises:
            PersistenceClearError: If the store cannot be cleared.
        """


@dataclass(frozen=True)
class PersistenceResult(Generic[T]):
    """Outcome of one persistent-tier call: either a value or a typed error.

    Attributes:
        value: The call's return value (``None`` for ``put``/``delete``/``clear``
            and for a ``get`` miss).
        error: The failure, if the call did not succeed.
    """

    value: Optional[T] = None
    error: Optional[PersistenceError] = None

    @property
    def ok(self) -> bool:
        """Whether the call succeeded."""
        return self.error is None
