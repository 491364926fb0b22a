"""Numeric process exit codes for the ``tiercache`` command line.

Each constant maps to an error category and is referenced by the
corresponding :class:`~tiercache.exceptions.TierCacheError` subclass.
Shell scripts can branch on the exit code without parsing stderr.

Example::

    $ tiercache get session:42
    $ echo $?
    4   # EXIT_NOT_FOUND -- the key is absent or expired in both tiers
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or values."""

EXIT_NOT_FOUND = 4
"""The requested key is not present in any cache tier."""

EXIT_PERSISTENCE_ERROR = 5
"""The persistent tier could not be opened or operated on."""
