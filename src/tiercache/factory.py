"""Build a :class:`~tiercache.engine.CacheEngine` from configuration.

Applications construct one engine at startup and hand it to the code that
needs it; there is no module-level instance.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from tiercache.config import get_store_dir
from tiercache.engine import CacheEngine
from tiercache.exceptions import PersistenceError
from tiercache.models import GlobalConfig
from tiercache.persistent import DiskTierClient, InMemoryTierClient, PersistentTierClient

logger = logging.getLogger(__name__)


def create_persistent_client(config: GlobalConfig) -> Optional[PersistentTierClient]:
    """Return the persistent tier selected by ``config.persistence.backend``.

    Returns:
        ``None`` for the ``none`` backend, otherwise a new client. The
        caller owns the client and closes it when done.

    Raises:
        PersistenceError: If the disk store cannot be opened.
    """
    backend = config.persistence.backend
    if backend == "none":
        return None
    if backend == "memory":
        return InMemoryTierClient()
    directory = get_store_dir(config)
    logger.debug("Opening disk tier at %s", directory)
    try:
        return DiskTierClient(directory, timeout=config.persistence.timeout_seconds)
    except (OSError, sqlite3.Error) as exc:
        raise PersistenceError(f"Cannot open disk tier at {directory}: {exc}") from exc


def create_engine(
    config: Optional[GlobalConfig] = None,
    persistent: Optional[PersistentTierClient] = None,
) -> CacheEngine:
    """Create a :class:`~tiercache.engine.CacheEngine` for *config*.

    Args:
        config: Effective configuration. Defaults to :class:`GlobalConfig`.
        persistent: Pre-built persistent tier. When omitted, one is created
            from ``config.persistence``.
    """
    config = config or GlobalConfig()
    if persistent is None:
        persistent = create_persistent_client(config)
    return CacheEngine(
        persistent,
        default_ttl=config.cache.default_ttl_seconds,
        max_size=config.cache.max_size,
    )
