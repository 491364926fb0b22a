"""tiercache -- a two-level cache: bounded in-memory LRU tier over a persistent store.

Callers talk to a single :class:`CacheEngine`. Reads hit the in-process
tier first and fall back to the persistent tier, promoting what they find;
writes land in memory and, on request, are written through. Both tiers
honour per-entry time-to-live. Persistent-tier failures are logged and
never reach the caller.

Typical use::

    from tiercache import CacheEngine, InMemoryTierClient

    engine = CacheEngine(InMemoryTierClient(), default_ttl=60, max_size=500)
    await engine.set("user:1", {"name": "Ada"}, persist=True)
    await engine.get("user:1")

Modules:
    engine: The two-tier :class:`CacheEngine`.
    fast_tier: The bounded LRU in-process tier.
    persistent: Persistent tier interface and adapters.
    models: Pydantic models for entries, stats and configuration.
    config: XDG-aware configuration loading and precedence resolution.
    factory: Build an engine from configuration.
    log: Logging setup.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer CLI entry point.
"""

__version__ = "0.1.0"

from tiercache.engine import CacheEngine
from tiercache.exceptions import (
    PersistenceClearError,
    PersistenceDeleteError,
    PersistenceError,
    PersistenceReadError,
    PersistenceWriteError,
    TierCacheError,
)
from tiercache.factory import create_engine
from tiercache.fast_tier import FastTier
from tiercache.models import CacheStats, Entry
from tiercache.persistent import DiskTierClient, InMemoryTierClient, PersistentTierClient

__all__ = [
    "CacheEngine",
    "CacheStats",
    "DiskTierClient",
    "Entry",
    "FastTier",
    "InMemoryTierClient",
    "PersistenceClearError",
    "PersistenceDeleteError",
    "PersistenceError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "PersistentTierClient",
    "TierCacheError",
    "create_engine",
]
