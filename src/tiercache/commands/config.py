"""Config commands -- view and modify the global configuration file.

Provides the ``tiercache config`` sub-command group for reading, updating
and resetting :class:`~tiercache.models.GlobalConfig`.
"""

from __future__ import annotations

import typer

from tiercache.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the configuration stored on disk.

    Example::

        tiercache config show
        tiercache --json config show
    """
    from tiercache.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'cache.max_size')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is validated against :class:`~tiercache.models.GlobalConfig`
    before saving; booleans accept ``true/1/yes``.

    Example::

        tiercache config set cache.max_size 500
        tiercache config set persistence.backend memory
        tiercache config set logging.rich false
    """
    from tiercache.config import load_global_config, save_global_config, set_dotted
    from tiercache.exceptions import ConfigError
    from tiercache.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    # Look up the current value to coerce booleans the way users type them.
    current: object = data
    for part in key.split("."):
        current = current.get(part) if isinstance(current, dict) else None
    coerced: object = value
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")

    try:
        set_dotted(data, key, coerced)
        new_config = GlobalConfig.model_validate(data)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=2) from None
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset configuration to defaults."""
    from tiercache.config import save_global_config
    from tiercache.models import GlobalConfig

    if not force:
        if not typer.confirm("Reset all config to defaults?"):
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
