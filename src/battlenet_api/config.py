"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module is the configuration provider of the dispatch layer:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.battlenet-api/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir` and :func:`get_data_dir`.
* **Config file** -- A single :class:`~battlenet_api.models.ApiConfig` JSON
  file holding the API domain, API key, locale and cache settings.
* **Precedence resolution** -- :func:`resolve_config` layers environment
  variables and CLI flags over the file.
* **Validation** -- :func:`require_credentials` rejects a configuration that
  cannot be used to talk to the API.

The resolved :class:`~battlenet_api.models.ApiConfig` is passed explicitly to
:class:`~battlenet_api.client.BattlenetClient`; nothing in the client reads
the environment on its own.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from battlenet_api.exceptions import ConfigError
from battlenet_api.models import ApiConfig

_APP_NAME = "battlenet-api"
_CONFIG_FILENAME = "config.json"

ENV_DOMAIN = "BATTLENET_API_DOMAIN"
ENV_API_KEY = "BATTLENET_API_KEY"
ENV_LOCALE = "BATTLENET_API_LOCALE"
ENV_CACHE = "BATTLENET_API_CACHE"
ENV_CACHE_DURATION = "BATTLENET_API_CACHE_DURATION"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory spec (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from *env_var*, falling back to ``$HOME/<segments>``."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def _ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/battlenet-api/`` (default
    ``~/.config/battlenet-api/``). Elsewhere: ``~/.battlenet-api/``.
    """
    if _is_xdg_platform():
        return _ensure_dir(_xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME)
    return _ensure_dir(_fallback_base_dir())


def get_cache_dir() -> Path:
    """Return the directory holding the response cache, creating it if necessary.

    Cached responses can be deleted at any time; ``battlenet-api cache
    clear`` does exactly that.

    On Linux/BSD: ``$XDG_CACHE_HOME/battlenet-api/`` (default
    ``~/.cache/battlenet-api/``). Elsewhere: ``~/.battlenet-api/cache/``.
    """
    if _is_xdg_platform():
        return _ensure_dir(_xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME)
    return _ensure_dir(_fallback_base_dir() / "cache")


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary."""
    if _is_xdg_platform():
        return _ensure_dir(_xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME)
    return _ensure_dir(_fallback_base_dir() / "logs")


def config_path() -> Path:
    """Path to the config file (which may not exist yet)."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* through a sibling temp file and ``os.replace``.

    The temp file is removed again if anything goes wrong before the rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        if os.path.exists(tmp.name):
            os.unlink(tmp.name)
        raise


# --- Load / save ---


def load_config() -> ApiConfig:
    """Load the configuration file.

    Returns:
        The deserialised :class:`~battlenet_api.models.ApiConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = config_path()
    if not path.is_file():
        return ApiConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ApiConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config(config: ApiConfig) -> None:
    """Persist *config* atomically to :func:`config_path`."""
    data = config.model_dump(mode="json")
    _atomic_write(config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (true/false), got '{value}'")


def _env_overrides() -> dict[str, Any]:
    """Collect configuration overrides from ``BATTLENET_API_*`` variables."""
    overrides: dict[str, Any] = {}
    for env_var, key in ((ENV_DOMAIN, "domain"), (ENV_API_KEY, "api_key"), (ENV_LOCALE, "locale")):
        value = os.environ.get(env_var)
        if value:
            overrides[key] = value

    cache = os.environ.get(ENV_CACHE)
    if cache:
        overrides["cache"] = _parse_bool(ENV_CACHE, cache)

    duration = os.environ.get(ENV_CACHE_DURATION)
    if duration:
        try:
            overrides["cache_duration"] = int(duration)
        except ValueError as exc:
            raise ConfigError(
                f"{ENV_CACHE_DURATION} must be an integer number of seconds, got '{duration}'"
            ) from exc
    return overrides


def resolve_config(
    cli_domain: Optional[str] = None,
    cli_api_key: Optional[str] = None,
    cli_locale: Optional[str] = None,
    cli_cache: Optional[bool] = None,
) -> ApiConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``BATTLENET_API_DOMAIN``, ``BATTLENET_API_KEY``,
           ``BATTLENET_API_LOCALE``, ``BATTLENET_API_CACHE``,
           ``BATTLENET_API_CACHE_DURATION``)
        3. Config file
        4. Defaults

    Raises:
        ConfigError: If the file is invalid or an override has a bad value.
    """
    data = load_config().model_dump()
    data.update(_env_overrides())

    cli = {
        "domain": cli_domain,
        "api_key": cli_api_key,
        "locale": cli_locale,
        "cache": cli_cache,
    }
    data.update({key: value for key, value in cli.items() if value is not None})

    try:
        return ApiConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def require_credentials(config: ApiConfig) -> ApiConfig:
    """Check that *config* names an API domain and an API key.

    Returns:
        The same *config*, for chaining.

    Raises:
        ConfigError: If either value is missing.
    """
    if not config.domain:
        raise ConfigError(
            f"No API domain configured. Set {ENV_DOMAIN} or run "
            "'battlenet-api config set domain <url>'."
        )
    if not config.api_key:
        raise ConfigError(
            f"No API key configured. Set {ENV_API_KEY} or run "
            "'battlenet-api config set api_key <key>'."
        )
    return config
