"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.tiercache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir` and :func:`get_data_dir`.
* **Global config** -- a single :class:`~tiercache.models.GlobalConfig`
  JSON file holding cache sizing, persistence and logging settings.
* **Precedence resolution** -- :func:`resolve_config` layers explicit
  overrides and ``TIERCACHE_*`` environment variables over the file.

Writes use a temp-file-then-rename strategy (:func:`_atomic_write`) so a
crash never leaves a half-written config behind.
"""

from __future__ import annotations

import contextlib
import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from tiercache.exceptions import ConfigError
from tiercache.models import GlobalConfig

_APP_NAME = "tiercache"
_CONFIG_FILENAME = "config.json"
_STORE_DIRNAME = "store"

# Environment variable -> dotted config path.
ENV_OVERRIDES: dict[str, str] = {
    "TIERCACHE_DEFAULT_TTL": "cache.default_ttl_seconds",
    "TIERCACHE_MAX_SIZE": "cache.max_size",
    "TIERCACHE_BACKEND": "persistence.backend",
    "TIERCACHE_DIR": "persistence.directory",
    "TIERCACHE_LOG_LEVEL": "logging.level",
}


# --- Directories ---


def _is_xdg_platform() -> bool:
    """Linux and the BSDs follow the XDG base directory layout."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(xdg_var: str, xdg_default: tuple[str, ...], fallback: tuple[str, ...]) -> Path:
    """Return (and create) one of the per-user tiercache directories.

    On XDG platforms this is ``$<xdg_var>/tiercache`` with *xdg_default*
    under ``$HOME`` standing in for an unset variable; elsewhere it is
    ``~/.tiercache`` followed by *fallback*.
    """
    home = Path.home()
    if _is_xdg_platform():
        root = os.environ.get(xdg_var) or home.joinpath(*xdg_default)
        path = Path(root) / _APP_NAME
    else:
        path = home.joinpath(f".{_APP_NAME}", *fallback)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Directory holding ``config.json`` (``~/.config/tiercache`` on Linux)."""
    return _app_dir("XDG_CONFIG_HOME", (".config",), ())


def get_cache_dir() -> Path:
    """Directory under which the default disk store lives (``~/.cache/tiercache`` on Linux)."""
    return _app_dir("XDG_CACHE_HOME", (".cache",), ("cache",))


def get_data_dir() -> Path:
    """Directory for crash logs (``~/.local/share/tiercache`` on Linux)."""
    return _app_dir("XDG_DATA_HOME", (".local", "share"), ("logs",))


def get_store_dir(config: GlobalConfig) -> Path:
    """Return the directory used by the disk persistent tier for *config*."""
    if config.persistence.directory:
        return Path(config.persistence.directory).expanduser()
    return get_cache_dir() / _STORE_DIRNAME


# --- Config file ---


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one rename.

    The text goes to a sibling temp file first, is fsynced, then moved
    over *path*. On failure the temp file is removed and *path* is left
    as it was.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~tiercache.models.GlobalConfig`, or a
        default instance if the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def set_dotted(data: dict[str, Any], key: str, value: Any) -> None:
    """Assign *value* at the dot-separated *key* inside a nested dict.

    Raises:
        ConfigError: If any segment of *key* does not name an existing field.
    """
    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            raise ConfigError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise ConfigError(f"Unknown config key: {key}")
    target[parts[-1]] = value


def resolve_config(overrides: Optional[dict[str, Any]] = None) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. *overrides* (dotted keys, e.g. ``{"cache.max_size": 50}``)
        2. Environment variables (see :data:`ENV_OVERRIDES`)
        3. User config (``~/.config/tiercache/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the file is invalid or a layered value fails validation.
    """
    data = load_global_config().model_dump(mode="json")

    for env_var, dotted in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            set_dotted(data, dotted, value)

    for dotted, value in (overrides or {}).items():
        if value is not None:
            set_dotted(data, dotted, value)

    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc
