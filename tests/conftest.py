"""Shared test fixtures for tiercache.

Provides a controllable clock, persistent tier doubles (including one that
fails on demand), isolated XDG directories for config/CLI tests, and a
Typer CLI runner.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import pytest

from tiercache.engine import CacheEngine
from tiercache.exceptions import (
    PersistenceClearError,
    PersistenceDeleteError,
    PersistenceReadError,
    PersistenceWriteError,
)
from tiercache.models import Entry
from tiercache.output import reset_output
from tiercache.persistent import InMemoryTierClient


# ---------------------------------------------------------------------------
# Global state reset
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_global_state() -> None:
    """Reset the global OutputManager and the ``tiercache`` logger after every test.

    CLI tests call :func:`~tiercache.log.configure_logging`, which attaches
    a handler and stops propagation; ``caplog`` needs propagation back.
    """
    yield
    reset_output()
    logger = logging.getLogger("tiercache")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Clock and persistent tier doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced clock returning POSIX-like seconds."""

    def __init__(self, start: float = 1_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FlakyTierClient(InMemoryTierClient):
    """In-memory tier whose operations can be switched to fail.

    Add an operation name (``get``, ``put``, ``delete``, ``clear``) to
    :attr:`failing` to make it raise its typed error, or set
    :attr:`raw_error` to raise an arbitrary exception instead.
    """

    def __init__(self) -> None:
        super().__init__()
        self.failing: set[str] = set()
        self.raw_error: Optional[Exception] = None
        self.calls: list[tuple[str, Optional[str]]] = []

    def _maybe_fail(self, operation: str, key: Optional[str], error_type: type) -> None:
        self.calls.append((operation, key))
        if operation in self.failing:
            if self.raw_error is not None:
                raise self.raw_error
            raise error_type(f"{operation} failed", key)

    async def get(self, key: str) -> Optional[Entry[Any]]:
        self._maybe_fail("get", key, PersistenceReadError)
        return await super().get(key)

    async def put(self, key: str, entry: Entry[Any]) -> None:
        self._maybe_fail("put", key, PersistenceWriteError)
        await super().put(key, entry)

    async def delete(self, key: str) -> None:
        self._maybe_fail("delete", key, PersistenceDeleteError)
        await super().delete(key)

    async def clear(self) -> None:
        self._maybe_fail("clear", None, PersistenceClearError)
        await super().clear()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> FlakyTierClient:
    return FlakyTierClient()


@pytest.fixture
def engine(store: FlakyTierClient, clock: FakeClock) -> CacheEngine:
    """Engine with default TTL 300s, max_size 100, over the flaky store."""
    return CacheEngine(store, default_ttl=300, max_size=100, clock=clock)


# ---------------------------------------------------------------------------
# Isolated filesystem environment
# ---------------------------------------------------------------------------


@pytest.fixture
def xdg_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG directory at *tmp_path* and clear ``TIERCACHE_*`` env vars."""
    monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in (
        "TIERCACHE_DEFAULT_TTL",
        "TIERCACHE_MAX_SIZE",
        "TIERCACHE_BACKEND",
        "TIERCACHE_DIR",
        "TIERCACHE_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner that captures stdout and stderr separately."""
    from typer.testing import CliRunner

    return CliRunner()
