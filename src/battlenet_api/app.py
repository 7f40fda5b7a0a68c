"""Typer application and CLI entry point for battlenet-api.

The CLI is a thin caller of :class:`~battlenet_api.client.BattlenetClient`:
``battlenet-api get`` sends one cached, retrying GET and prints the result,
while the ``config`` and ``cache`` groups manage the stored configuration
and the response cache.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under the
data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from battlenet_api import __version__
from battlenet_api.commands.cache import cache_app
from battlenet_api.commands.config import config_app
from battlenet_api.exit_codes import EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="battlenet-api",
    help="Query the Battle.net API with caching and gateway-timeout retries.",
    no_args_is_help=True,
    add_completion=True,
    rich_markup_mode="rich",
)

app.add_typer(config_app, name="config", help="Configuration management.")
app.add_typer(cache_app, name="cache", help="Response cache management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"battlenet-api {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
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
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Show retries and cache hits on stderr."
    ),
) -> None:
    """Root callback: install the global output manager from the CLI flags."""
    from battlenet_api.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))


def _build_client(config: Any, endpoint_prefix: str) -> Any:
    """Create the client used by ``get``. Tests replace this to inject a mock transport."""
    from battlenet_api.client import BattlenetClient

    return BattlenetClient(config, endpoint_prefix=endpoint_prefix)


@app.command("get")
def get_command(
    path: str = typer.Argument(help="Endpoint path, e.g. '/realm/status'."),
    method: Optional[str] = typer.Option(
        None, "--method", "-m", help="Operation name used as cache key (defaults to path + query)."
    ),
    query: Optional[list[str]] = typer.Option(
        None, "--query", "-Q", help="Extra query parameter as key=value (repeatable)."
    ),
    prefix: str = typer.Option("", "--prefix", "-p", help="Endpoint prefix, e.g. '/wow'."),
    locale: Optional[str] = typer.Option(None, "--locale", help="Override the configured locale."),
    domain: Optional[str] = typer.Option(None, "--domain", help="Override the configured API domain."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Override the configured API key."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache."),
) -> None:
    """Fetch an endpoint and print the decoded result.

    Example::

        battlenet-api get /realm/status --prefix /wow -m getRealmStatus
        battlenet-api get /character/draenor/Thrall -p /wow -Q fields=items
    """
    from battlenet_api.client.options import parse_query_pairs
    from battlenet_api.config import resolve_config
    from battlenet_api.exceptions import BattlenetError, InvalidUsageError
    from battlenet_api.output import error, format_response, info

    try:
        try:
            params = parse_query_pairs(query)
        except ValueError as exc:
            raise InvalidUsageError(f"Invalid --query: {exc}") from exc
        config = resolve_config(
            cli_domain=domain,
            cli_api_key=api_key,
            cli_locale=locale,
            cli_cache=False if no_cache else None,
        )
        with _build_client(config, prefix) as client:
            result = client.dispatch(path, {"query": params}, method=method or "")
    except BattlenetError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    info(f"HTTP {result.status_code}")
    format_response(result.data)


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log() -> str:
    """Write the current traceback to the data directory and return the log path."""
    from battlenet_api.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now().strftime('%Y%m%d-%H%M%S')}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``battlenet-api`` console script.

    :class:`~battlenet_api.exceptions.BattlenetError` instances that escape
    a command exit with their ``exit_code``; anything else produces a crash
    log and a generic failure exit.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except Exception as exc:
        from battlenet_api.exceptions import BattlenetError
        from battlenet_api.output import error

        if isinstance(exc, BattlenetError):
            error(str(exc))
            sys.exit(exc.exit_code)
        log_path = _write_crash_log()
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
