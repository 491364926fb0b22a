"""Exception hierarchy for tiercache.

All exceptions inherit from :class:`TierCacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`tiercache.exit_codes`.
The CLI entry point in :func:`tiercache.app.main` catches ``TierCacheError``
and exits with the matching code.

The persistence errors are raised by
:class:`~tiercache.persistent.base.PersistentTierClient` implementations.
:class:`~tiercache.engine.CacheEngine` never lets them escape: it logs them
and degrades to a miss or a non-durable write.

Subclass hierarchy::

    TierCacheError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConfigError                (exit 1)
    +-- PersistenceError           (exit 5)
        +-- PersistenceReadError
        +-- PersistenceWriteError
        +-- PersistenceDeleteError
        +-- PersistenceClearError
"""

from __future__ import annotations

from typing import Optional

from tiercache.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PERSISTENCE_ERROR,
)


class TierCacheError(Exception):
    """Base exception for all tiercache errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(TierCacheError):
    """Raised for invalid CLI arguments or values that cannot be decoded."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(TierCacheError):
    """Raised for configuration problems (invalid JSON, bad values, bad env vars)."""

    exit_code = EXIT_GENERIC_FAILURE


class PersistenceError(TierCacheError):
    """Base class for failures at the persistent tier boundary.

    Args:
        message: Human-readable error description.
        key: The cache key involved, or ``None`` for whole-store operations.
    """

    exit_code = EXIT_PERSISTENCE_ERROR
    operation: str = "access"

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class PersistenceReadError(PersistenceError):
    """Raised when the persistent store cannot be read."""

    operation = "read"


class PersistenceWriteError(PersistenceError):
    """Raised when an entry cannot be written to the persistent store."""

    operation = "write"


class PersistenceDeleteError(PersistenceError):
    """Raised when an entry cannot be removed from the persistent store."""

    operation = "delete"


class PersistenceClearError(PersistenceError):
    """Raised when the persistent store cannot be cleared."""

    operation = "clear"
