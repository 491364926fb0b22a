"""Canonical Pydantic models shared across all tiercache modules.

The models fall into two groups:

**Cache data models** -- the values that flow between the tiers:
    :class:`Entry` and :class:`CacheStats`.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`CacheConfig`, :class:`PersistenceConfig`,
:class:`LoggingConfig` and :class:`GlobalConfig`.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

V = TypeVar("V")


# --- Cache data ---


class Entry(BaseModel, Generic[V]):
    """An immutable value/expiry pair stored in either cache tier.

    Entries are never mutated after construction. Storing a new value for
    a key replaces the entry; expiry is decided by comparing
    :attr:`expires_at` against the current time when the entry is read.

    Attributes:
        value: The cached value.
        expires_at: POSIX timestamp (seconds) after which the entry is stale.

    Example::

        entry = Entry(value={"id": 1}, expires_at=time.time() + 300)
        entry.is_live(time.time())  # True
    """

    model_config = ConfigDict(frozen=True)

    value: V
    expires_at: float

    def is_live(self, now: float) -> bool:
        """Return ``True`` while ``expires_at`` lies strictly after *now*."""
        return self.expires_at > now


class CacheStats(BaseModel):
    """Counters reported by :meth:`~tiercache.engine.CacheEngine.stats`.

    Attributes:
        fast_hits: Lookups answered by the in-process tier.
        persistent_hits: Lookups answered (and promoted) from the persistent tier.
        misses: Lookups that returned nothing.
        expirations: Expired entries found and dropped on access, in either tier.
        evictions: Entries removed from the fast tier under capacity pressure.
        persistence_failures: Persistent-tier calls that failed and were degraded.
        size: Current number of entries in the fast tier.
        max_size: Capacity of the fast tier.
        persistent: Whether a persistent tier is attached.
    """

    fast_hits: int = 0
    persistent_hits: int = 0
    misses: int = 0
    expirations: int = 0
    evictions: int = 0
    persistence_failures: int = 0
    size: int = 0
    max_size: int = 0
    persistent: bool = False

    @property
    def hit_rate(self) -> float:
        """Ratio of hits (either tier) to total lookups, ``0.0`` before any lookup."""
        hits = self.fast_hits + self.persistent_hits
        total = hits + self.misses
        return hits / total if total > 0 else 0.0


# --- Configuration ---


class CacheConfig(BaseModel):
    """Fast-tier sizing and default expiry, fixed when the engine is built."""

    default_ttl_seconds: float = Field(
        default=300, gt=0, description="TTL applied when set() is called without one"
    )
    max_size: int = Field(
        default=100, ge=1, description="Maximum number of entries held in memory"
    )


class PersistenceConfig(BaseModel):
    """Selects and configures the persistent tier behind the fast tier."""

    backend: Literal["none", "memory", "disk"] = Field(
        default="disk", description="Persistent tier backend: none, memory, disk"
    )
    directory: Optional[str] = Field(
        default=None,
        description="Directory for the disk backend (default: <cache dir>/store)",
    )
    timeout_seconds: Optional[float] = Field(
        default=None, gt=0, description="Per-call timeout for persistent operations"
    )


class LoggingConfig(BaseModel):
    """Log level and handler style for the ``tiercache`` logger."""

    level: str = Field(default="WARNING", description="Standard logging level name")
    rich: bool = Field(default=True, description="Render log records with Rich")


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/tiercache/config.json``.

    Loaded and saved by :func:`~tiercache.config.load_global_config` and
    :func:`~tiercache.config.save_global_config`. See
    :func:`~tiercache.config.resolve_config` for the precedence chain.
    """

    cache: CacheConfig = Field(default_factory=CacheConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
