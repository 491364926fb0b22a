"""Logging setup for the ``tiercache`` logger hierarchy.

Library modules only ever call ``logging.getLogger(__name__)``; nothing is
configured on import. Applications (and the CLI) call
:func:`configure_logging` once at startup to attach a handler.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from tiercache.exceptions import ConfigError
from tiercache.models import LoggingConfig

LOGGER_NAME = "tiercache"


def configure_logging(
    config: Optional[LoggingConfig] = None,
    level: Optional[str] = None,
) -> logging.Logger:
    """Attach a single stderr handler to the ``tiercache`` logger.

    Calling it again replaces the previous handler, so the CLI can
    reconfigure after parsing ``--verbose``.

    Args:
        config: Logging settings. Defaults to :class:`~tiercache.models.LoggingConfig`.
        level: Level name overriding ``config.level``.

    Returns:
        The configured ``tiercache`` logger.

    Raises:
        ConfigError: If the level name is not a standard logging level.
    """
    config = config or LoggingConfig()
    level_name = (level or config.level).upper()
    numeric = logging.getLevelName(level_name)
    if not isinstance(numeric, int):
        raise ConfigError(f"Unknown log level: {level_name}")

    handler: logging.Handler
    if config.rich:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    logger = logging.getLogger(LOGGER_NAME)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(numeric)
    logger.propagate = False
    return logger
