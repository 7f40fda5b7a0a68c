"""Shared test fixtures for battlenet-api.

Provides isolated config/cache directories, a ready-to-use configuration,
a temporary response cache, quiet output and a CLI runner. These fixtures
are discovered by pytest automatically.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from battlenet_api.cache import ResponseCache
from battlenet_api.models import ApiConfig
from battlenet_api.output import OutputFormat, OutputManager, reset_output, set_output


API_DOMAIN = "https://eu.api.battle.net"
API_KEY = "test-api-key"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager holds on to sys.stdout/sys.stderr; once CliRunner
    restores the real streams those references go stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def api_config() -> ApiConfig:
    """A complete configuration with caching enabled."""
    return ApiConfig(domain=API_DOMAIN, api_key=API_KEY, locale="en_GB")


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration, cache and data directories to tmp_path.

    Forces the XDG layout, points XDG_* at subdirectories of tmp_path and
    clears every BATTLENET_API_* variable so tests never touch real user
    state.

    Returns:
        The tmp_path root directory.
    """
    monkeypatch.setattr("battlenet_api.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "BATTLENET_API_DOMAIN",
        "BATTLENET_API_KEY",
        "BATTLENET_API_LOCALE",
        "BATTLENET_API_CACHE",
        "BATTLENET_API_CACHE_DURATION",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------


@pytest.fixture
def response_cache(tmp_path: Path) -> ResponseCache:
    """A ResponseCache rooted in tmp_path, closed after the test."""
    cache = ResponseCache(tmp_path / "store")
    yield cache
    cache.close()


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN, quiet OutputManager for tests that ignore output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
