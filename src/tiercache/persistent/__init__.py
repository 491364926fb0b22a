"""Persistent tier interface and bundled adapters.

* :class:`PersistentTierClient` -- the async contract the engine calls.
* :class:`PersistenceResult` -- value-or-error wrapper the engine inspects.
* :class:`InMemoryTierClient` -- dict-backed store for tests and development.
* :class:`DiskTierClient` -- :mod:`diskcache`-backed store that survives restarts.
"""

from tiercache.persistent.base import PersistenceResult, PersistentTierClient
from tiercache.persistent.disk import DiskTierClient
from tiercache.persistent.memory import InMemoryTierClient

__all__ = [
    "PersistentTierClient",
    "PersistenceResult",
    "InMemoryTierClient",
    "DiskTierClient",
]
