"""battlenet-api -- a cached, retrying request layer for the Battle.net API.

Endpoint wrappers hand a path suffix, their options and an operation name to
:meth:`BattlenetClient.dispatch`; the client merges in the default
``locale``/``apikey`` query, serves the result from a disk cache when
possible, and retries upstream gateway timeouts before giving up.

Modules:
    app: Typer application and CLI entry point.
    client: Option merging, dispatch and the public client.
    cache: Cache policy and the diskcache-backed store.
    models: Pydantic models for configuration and per-call options.
    config: XDG-aware configuration loading and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting with Rich support.
"""

__version__ = "0.3.0"

from battlenet_api.client import ApiResult, BattlenetClient, create_client  # noqa: E402
from battlenet_api.models import ApiConfig, CacheOptions, RequestOptions  # noqa: E402

__all__ = [
    "ApiConfig",
    "ApiResult",
    "BattlenetClient",
    "CacheOptions",
    "RequestOptions",
    "__version__",
    "create_client",
]
