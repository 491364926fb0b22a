"""Cache commands -- read and modify the persistent-backed cache from a shell.

Each invocation builds a fresh :class:`~tiercache.engine.CacheEngine` over
the configured persistent tier, so the in-process tier starts empty and
every ``get`` exercises the promotion path. With the ``none`` backend
nothing outlives the command.
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import typer

from tiercache.engine import CacheEngine
from tiercache.exceptions import InvalidUsageError, TierCacheError
from tiercache.exit_codes import EXIT_NOT_FOUND
from tiercache.factory import create_engine, create_persistent_client
from tiercache.models import GlobalConfig
from tiercache.output import (
    debug,
    error,
    format_response,
    info,
    print_table,
    success,
    warning,
)


def _config(ctx: typer.Context) -> GlobalConfig:
    if ctx.obj and isinstance(ctx.obj.get("config"), GlobalConfig):
        return ctx.obj["config"]
    return GlobalConfig()


@asynccontextmanager
async def _open_engine(config: GlobalConfig) -> AsyncIterator[CacheEngine]:
    """Yield an engine over a freshly opened persistent tier, closing it afterwards."""
    client = create_persistent_client(config)
    try:
        debug(f"Persistent tier: {client.name if client else 'none'}")
        yield create_engine(config, persistent=client)
    finally:
        close = getattr(client, "close", None)
        if callable(close):
            close()


def _run(ctx: typer.Context, operation: Any) -> Any:
    """Run *operation(engine)* to completion, mapping tiercache errors to exit codes."""

    async def _main() -> Any:
        async with _open_engine(_config(ctx)) as engine:
            return await operation(engine)

    try:
        return asyncio.run(_main())
    except TierCacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _decode_value(raw: str, as_json: bool) -> Any:
    if not as_json:
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Value is not valid JSON: {exc}") from exc


def cache_get(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key."),
) -> None:
    """Print the live value stored under KEY.

    Exits with code 4 when the key is absent or expired in every tier.

    Example::

        tiercache get session:42
        tiercache --json get session:42
    """
    value = _run(ctx, lambda engine: engine.get(key))
    if value is None:
        error(f"Key not found: {key}")
        raise typer.Exit(code=EXIT_NOT_FOUND)
    format_response(value)


def cache_set(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key."),
    value: str = typer.Argument(help="Value to store."),
    ttl: Optional[float] = typer.Option(
        None, "--ttl", help="Lifetime in seconds (default: cache.default_ttl_seconds)."
    ),
    no_persist: bool = typer.Option(
        False, "--no-persist", help="Keep the entry in memory only."
    ),
    json_value: bool = typer.Option(
        False, "--json-value", help="Decode VALUE as JSON before storing."
    ),
) -> None:
    """Store VALUE under KEY, writing through to the persistent tier.

    Example::

        tiercache set greeting hello --ttl 60
        tiercache set user:1 '{"name": "Ada"}' --json-value
    """
    if ttl is not None and ttl <= 0:
        error(f"--ttl must be positive, got {ttl}")
        raise typer.Exit(code=InvalidUsageError.exit_code)
    try:
        decoded = _decode_value(value, json_value)
    except InvalidUsageError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    _run(ctx, lambda engine: engine.set(key, decoded, ttl=ttl, persist=not no_persist))
    success(f"Stored {key}")
    if not no_persist and _config(ctx).persistence.backend == "none":
        warning(f"No persistent tier configured, {key} is gone when this command exits")


def cache_invalidate(
    ctx: typer.Context,
    key: str = typer.Argument(help="Cache key."),
) -> None:
    """Remove KEY from every tier."""
    _run(ctx, lambda engine: engine.invalidate(key))
    success(f"Invalidated {key}")


def cache_clear(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Remove every entry from every tier.

    Asks for confirmation unless ``--force`` is given.
    """
    if not force:
        if not typer.confirm("Clear the whole cache?"):
            info("Cancelled.")
            raise typer.Exit()
    _run(ctx, lambda engine: engine.clear())
    success("Cache cleared.")


def cache_stats(ctx: typer.Context) -> None:
    """Show cache settings and the number of persisted entries."""
    config = _config(ctx)

    async def _collect(engine: CacheEngine) -> list[list[str]]:
        persistent = engine.persistent
        persisted = "-"
        if persistent is not None and hasattr(persistent, "__len__"):
            persisted = str(len(persistent))  # type: ignore[arg-type]
        return [
            ["default_ttl_seconds", str(engine.default_ttl)],
            ["max_size", str(engine.max_size)],
            ["backend", config.persistence.backend],
            ["persisted_entries", persisted],
        ]

    rows = _run(ctx, _collect)
    print_table(["setting", "value"], rows, title="tiercache")
