"""Tests for tiercache.config -- XDG paths, atomic writes, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from tiercache.config import (
    _atomic_write,
    get_cache_dir,
    get_config_dir,
    get_data_dir,
    get_store_dir,
    global_config_path,
    load_global_config,
    resolve_config,
    save_global_config,
    set_dotted,
)
from tiercache.exceptions import ConfigError
from tiercache.models import CacheConfig, GlobalConfig, PersistenceConfig


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPaths:
    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "tiercache"
        assert result.is_dir()

    def test_cache_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "c"))

        assert get_cache_dir() == tmp_path / "c" / "tiercache"

    def test_empty_xdg_var_uses_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CACHE_HOME", "")
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_cache_dir() == tmp_path / ".cache" / "tiercache"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".local" / "share" / "tiercache"

    def test_non_xdg_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tiercache.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".tiercache"
        assert get_cache_dir() == tmp_path / ".tiercache" / "cache"
        assert get_data_dir() == tmp_path / ".tiercache" / "logs"

    def test_store_dir_default_and_override(self, xdg_home: Path) -> None:
        assert get_store_dir(GlobalConfig()) == xdg_home / "cache" / "tiercache" / "store"
        custom = GlobalConfig(persistence=PersistenceConfig(directory=str(xdg_home / "elsewhere")))
        assert get_store_dir(custom) == xdg_home / "elsewhere"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        _atomic_write(target, '{"a": 1}\n')
        assert target.read_text(encoding="utf-8") == '{"a": 1}\n'

    def test_failure_leaves_original_and_no_temp(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("original", encoding="utf-8")

        with patch("tiercache.config.os.replace", side_effect=OSError("boom")):
            with pytest.raises(OSError):
                _atomic_write(target, "new")

        assert target.read_text(encoding="utf-8") == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]


# ---------------------------------------------------------------------------
# Global config file
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_missing_file_gives_defaults(self, xdg_home: Path) -> None:
        assert load_global_config() == GlobalConfig()

    def test_save_then_load(self, xdg_home: Path) -> None:
        config = GlobalConfig(cache=CacheConfig(max_size=42, default_ttl_seconds=60))
        save_global_config(config)
        assert load_global_config() == config
        data = json.loads(global_config_path().read_text(encoding="utf-8"))
        assert data["cache"]["max_size"] == 42

    def test_invalid_json_raises(self, xdg_home: Path) -> None:
        global_config_path().write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_invalid_value_raises(self, xdg_home: Path) -> None:
        global_config_path().write_text('{"cache": {"max_size": 0}}', encoding="utf-8")
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self, xdg_home: Path) -> None:
        assert resolve_config() == GlobalConfig()

    def test_file_values_used(self, xdg_home: Path) -> None:
        save_global_config(GlobalConfig(cache=CacheConfig(max_size=10)))
        assert resolve_config().cache.max_size == 10

    def test_env_beats_file(self, xdg_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_global_config(GlobalConfig(cache=CacheConfig(max_size=10)))
        monkeypatch.setenv("TIERCACHE_MAX_SIZE", "25")
        monkeypatch.setenv("TIERCACHE_DEFAULT_TTL", "12.5")
        monkeypatch.setenv("TIERCACHE_BACKEND", "memory")
        monkeypatch.setenv("TIERCACHE_LOG_LEVEL", "DEBUG")

        config = resolve_config()
        assert config.cache.max_size == 25
        assert config.cache.default_ttl_seconds == 12.5
        assert config.persistence.backend == "memory"
        assert config.logging.level == "DEBUG"

    def test_overrides_beat_env(self, xdg_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIERCACHE_BACKEND", "memory")
        config = resolve_config({"persistence.backend": "none", "persistence.directory": None})
        assert config.persistence.backend == "none"
        assert config.persistence.directory is None

    def test_bad_env_value_raises(self, xdg_home: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TIERCACHE_MAX_SIZE", "lots")
        with pytest.raises(ConfigError, match="Invalid configuration value"):
            resolve_config()

    def test_unknown_override_key_raises(self, xdg_home: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown config key"):
            resolve_config({"cache.colour": "blue"})


class TestSetDotted:
    def test_sets_nested_value(self) -> None:
        data = {"cache": {"max_size": 1}}
        set_dotted(data, "cache.max_size", 5)
        assert data == {"cache": {"max_size": 5}}

    def test_invalid_parent_raises(self) -> None:
        with pytest.raises(ConfigError, match="Invalid config key"):
            set_dotted({"cache": 3}, "cache.max_size", 5)


def test_env_override_table_targets_real_fields() -> None:
    from tiercache.config import ENV_OVERRIDES

    data = GlobalConfig().model_dump(mode="json")
    for dotted in ENV_OVERRIDES.values():
        section, field = dotted.split(".")
        assert field in data[section]
    assert all(name.startswith("TIERCACHE_") for name in ENV_OVERRIDES)
    assert "TIERCACHE_DIR" in ENV_OVERRIDES
