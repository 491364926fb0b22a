"""Typer application and CLI entry point for tiercache.

The root callback resolves configuration (file, ``TIERCACHE_*`` environment
variables, CLI flags), installs the :class:`~tiercache.output.OutputManager`
and configures logging before any sub-command runs. Cache commands live in
:mod:`tiercache.commands.cache`; configuration commands in
:mod:`tiercache.commands.config`.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. :class:`~tiercache.exceptions.TierCacheError` exits with
the error's code; anything else writes a crash log under the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from tiercache import __version__
from tiercache.commands.cache import (
    cache_clear,
    cache_get,
    cache_invalidate,
    cache_set,
    cache_stats,
)
from tiercache.commands.config import config_app
from tiercache.exit_codes import EXIT_GENERIC_FAILURE

app = typer.Typer(
    name="tiercache",
    help="Two-tier cache with an in-memory LRU tier over a persistent store.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command("get")(cache_get)
app.command("set")(cache_set)
app.command("invalidate")(cache_invalidate)
app.command("clear")(cache_clear)
app.command("stats")(cache_stats)
app.add_typer(config_app, name="config", help="Configuration management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tiercache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output and debug logging."
    ),
    backend: Optional[str] = typer.Option(
        None, "--backend", help="Persistent tier: none, memory, disk."
    ),
    directory: Optional[str] = typer.Option(
        None, "--dir", help="Directory for the disk persistent tier."
    ),
) -> None:
    """Resolve configuration and set up output and logging.

    The effective :class:`~tiercache.models.GlobalConfig` is stored in
    ``ctx.obj["config"]`` for the sub-commands.
    """
    from tiercache.config import resolve_config
    from tiercache.exceptions import ConfigError
    from tiercache.log import configure_logging
    from tiercache.output import OutputFormat, OutputManager, error, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    try:
        config = resolve_config(
            {"persistence.backend": backend, "persistence.directory": directory}
        )
        configure_logging(config.logging, level="DEBUG" if verbose else None)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to the data directory and return its path."""
    from tiercache.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``tiercache`` console script."""
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from tiercache.exceptions import TierCacheError
        from tiercache.output import error

        if isinstance(exc, TierCacheError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
