"""End-to-end tests for the tiercache CLI via typer's CliRunner.

Every invocation builds a new engine, so a ``get`` after a ``set`` in a
separate invocation exercises promotion from the disk tier.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from tiercache import __version__
from tiercache.app import app
from tiercache.config import load_global_config


@pytest.fixture
def invoke(cli_runner, xdg_home: Path):
    """Invoke the CLI with colour disabled inside an isolated XDG home."""

    def _invoke(*args: str, input: str | None = None):
        return cli_runner.invoke(app, ["--no-color", *args], input=input)

    return _invoke


class TestVersion:
    def test_version(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"tiercache {__version__}" in result.output


class TestCacheCommands:
    def test_set_then_get_across_invocations(self, invoke) -> None:
        assert invoke("set", "greeting", "hello").exit_code == 0

        result = invoke("get", "greeting")
        assert result.exit_code == 0
        assert result.stdout.strip() == "hello"

    def test_json_value_round_trip(self, invoke) -> None:
        invoke("set", "user:1", '{"name": "Ada", "roles": ["admin"]}', "--json-value")
        result = invoke("--json", "get", "user:1")
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"name": "Ada", "roles": ["admin"]}

    def test_missing_key_exits_not_found(self, invoke) -> None:
        result = invoke("get", "nope")
        assert result.exit_code == 4
        assert "Key not found: nope" in result.output

    def test_invalidate(self, invoke) -> None:
        invoke("set", "k", "v")
        assert invoke("invalidate", "k").exit_code == 0
        assert invoke("get", "k").exit_code == 4

    def test_clear_with_force(self, invoke) -> None:
        invoke("set", "a", "1")
        invoke("set", "b", "2")
        assert invoke("clear", "--force").exit_code == 0
        assert invoke("get", "a").exit_code == 4
        assert invoke("get", "b").exit_code == 4

    def test_clear_cancelled(self, invoke) -> None:
        invoke("set", "a", "1")
        result = invoke("clear", input="n\n")
        assert result.exit_code == 0
        assert "Cancelled." in result.output
        assert invoke("get", "a").exit_code == 0

    def test_no_persist_is_lost_between_invocations(self, invoke) -> None:
        invoke("set", "k", "v", "--no-persist")
        assert invoke("get", "k").exit_code == 4

    def test_none_backend_keeps_nothing(self, invoke) -> None:
        result = invoke("--backend", "none", "set", "k", "v")
        assert result.exit_code == 0
        assert "Warning: No persistent tier configured" in result.output
        assert invoke("--backend", "none", "get", "k").exit_code == 4

    def test_custom_directory(self, invoke, xdg_home: Path) -> None:
        store = xdg_home / "custom-store"
        invoke("--dir", str(store), "set", "k", "v")
        assert store.is_dir()
        assert invoke("--dir", str(store), "get", "k").exit_code == 0
        assert invoke("get", "k").exit_code == 4

    def test_invalid_json_value(self, invoke) -> None:
        result = invoke("set", "k", "{broken", "--json-value")
        assert result.exit_code == 2
        assert "not valid JSON" in result.output

    def test_non_positive_ttl(self, invoke) -> None:
        result = invoke("set", "k", "v", "--ttl", "0")
        assert result.exit_code == 2

    def test_stats(self, invoke) -> None:
        invoke("set", "a", "1")
        result = invoke("--json", "stats")
        assert result.exit_code == 0
        rows = {row["setting"]: row["value"] for row in json.loads(result.stdout)}
        assert rows["max_size"] == "100"
        assert rows["backend"] == "disk"
        assert rows["persisted_entries"] == "1"

    def test_invalid_backend_option(self, invoke) -> None:
        result = invoke("--backend", "redis", "get", "k")
        assert result.exit_code == 1
        assert "Invalid configuration value" in result.output

    def test_bad_env_var(self, invoke, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIERCACHE_MAX_SIZE", "lots")
        result = invoke("get", "k")
        assert result.exit_code == 1


class TestConfigCommands:
    def test_show(self, invoke) -> None:
        result = invoke("--json", "--quiet", "config", "show")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["cache"]["max_size"] == 100

    def test_set_int(self, invoke) -> None:
        result = invoke("config", "set", "cache.max_size", "5")
        assert result.exit_code == 0
        assert load_global_config().cache.max_size == 5

    def test_set_bool(self, invoke) -> None:
        assert invoke("config", "set", "logging.rich", "no").exit_code == 0
        assert load_global_config().logging.rich is False

    def test_set_unknown_key(self, invoke) -> None:
        result = invoke("config", "set", "cache.colour", "blue")
        assert result.exit_code == 2
        assert "Unknown config key" in result.output

    def test_set_invalid_value(self, invoke) -> None:
        result = invoke("config", "set", "cache.max_size", "0")
        assert result.exit_code == 2
        assert load_global_config().cache.max_size == 100

    def test_reset(self, invoke) -> None:
        invoke("config", "set", "cache.max_size", "5")
        assert invoke("config", "reset", "--force").exit_code == 0
        assert load_global_config().cache.max_size == 100

    def test_config_applies_to_cache_commands(self, invoke) -> None:
        invoke("config", "set", "persistence.backend", "none")
        invoke("set", "k", "v")
        assert invoke("get", "k").exit_code == 4
