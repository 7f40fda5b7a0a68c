"""Config commands -- view and modify the stored configuration.

Provides the ``battlenet-api config`` sub-command group for reading and
updating the configuration file (:class:`~battlenet_api.models.ApiConfig`).
Environment variables still take precedence over whatever is stored here.
"""

from __future__ import annotations

from typing import Any

import typer

from battlenet_api.exit_codes import EXIT_INVALID_USAGE
from battlenet_api.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


def _mask(secret: Any) -> Any:
    if not isinstance(secret, str) or not secret:
        return secret
    if len(secret) <= 4:
        return "*" * len(secret)
    return "*" * (len(secret) - 4) + secret[-4:]


@config_app.command("show")
def config_show() -> None:
    """Show the stored configuration with the API key masked.

    Example::

        battlenet-api config show
        battlenet-api --json config show
    """
    from battlenet_api.config import config_path, load_config

    config = load_config()
    data = config.model_dump(mode="json")
    data["api_key"] = _mask(data.get("api_key"))
    info(f"Config file: {config_path()}")
    format_response(data)


@config_app.command("path")
def config_path_command() -> None:
    """Print the path of the configuration file."""
    from battlenet_api.config import config_path
    from battlenet_api.output import get_output

    get_output().print_data(str(config_path()))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g. 'request.timeout')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the existing field (bool, int or
    str) and the result is validated before it is saved.

    Example::

        battlenet-api config set domain https://eu.api.battle.net
        battlenet-api config set cache_duration 1200
        battlenet-api config set request.verify_ssl false
    """
    from battlenet_api.config import load_config, save_config
    from battlenet_api.models import ApiConfig

    data = load_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if not isinstance(target.get(k), dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target:
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    coerced: Any = value
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes", "on")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    target[final_key] = coerced

    try:
        new_config = ApiConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_config(new_config)
    shown = _mask(coerced) if final_key == "api_key" else coerced
    success(f"Set {key} = {shown}")
