"""Public entry point: option merging, cache policy and cache-aside dispatch.

:class:`BattlenetClient` is what endpoint wrappers and the CLI call. Each
:meth:`~BattlenetClient.dispatch` runs the same pipeline:

1. merge the caller's options with the default query (``locale``, ``apikey``);
2. let the cache policy attach :class:`~battlenet_api.models.CacheOptions`;
3. if cache options are present, answer from the store via
   :meth:`~battlenet_api.cache.ResponseCache.remember`, otherwise call the
   :class:`~battlenet_api.client.dispatcher.RequestDispatcher` directly.
"""

from __future__ import annotations

from typing import Optional

import httpx

from battlenet_api.cache.policy import build_cache_options, request_method_name
from battlenet_api.cache.store import ResponseCache
from battlenet_api.client.dispatcher import RequestDispatcher
from battlenet_api.client.options import OptionsLike, merge_with_config
from battlenet_api.client.response import ApiResult
from battlenet_api.config import get_cache_dir, require_credentials, resolve_config
from battlenet_api.models import ApiConfig, RequestOptions
from battlenet_api.output import get_output


class BattlenetClient:
    """Cache-aware client for the Battle.net API.

    Args:
        config: Resolved configuration. ``domain`` and ``api_key`` must be
            set.
        cache: Store used when caching applies. When ``None`` and caching
            is enabled, a :class:`ResponseCache` under
            :func:`~battlenet_api.config.get_cache_dir` is opened lazily and
            closed with the client.
        endpoint_prefix: Path prefix shared by a family of endpoints
            (``"/wow"``, ``"/d3"``, ...).
        transport: Optional :mod:`httpx` transport forwarded to the
            dispatcher.

    Raises:
        ConfigError: If ``domain`` or ``api_key`` is missing.

    Example::

        with BattlenetClient(config, endpoint_prefix="/wow") as client:
            character = client.dispatch(
                "/character/draenor/Thrall",
                {"query": {"fields": "items"}},
                method="getCharacter",
            )
    """

    def __init__(
        self,
        config: ApiConfig,
        cache: Optional[ResponseCache] = None,
        endpoint_prefix: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = require_credentials(config)
        self._cache = cache
        self._owns_cache = False
        self._dispatcher = RequestDispatcher(config, endpoint_prefix, transport=transport)

    def __enter__(self) -> BattlenetClient:
        self._dispatcher.open()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        self._dispatcher.close()
        if self._owns_cache and self._cache is not None:
            self._cache.close()
            self._cache = None
            self._owns_cache = False

    @property
    def config(self) -> ApiConfig:
        return self._config

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    def prepare(self, path: str, options: OptionsLike = None, method: str = "") -> RequestOptions:
        """Run option merging and the cache policy without sending anything.

        Without a *method* the cache key is derived from the full request path
        and the merged query (see :func:`~battlenet_api.cache.policy.request_method_name`).
        """
        merged = merge_with_config(options, self._config)
        if not method:
            method = request_method_name(self._dispatcher.build_path(path), merged.query)
        return build_cache_options(method, merged, self._config)

    def dispatch(self, path: str, options: OptionsLike = None, method: str = "") -> ApiResult:
        """Fetch ``endpoint_prefix + path``, serving from the cache when configured.

        Args:
            path: Path suffix of the endpoint, e.g. ``"/realm/status"``.
            options: Caller options (mapping or
                :class:`~battlenet_api.models.RequestOptions`); may carry
                ``query``, ``headers`` and an explicit ``cache``.
            method: Logical operation name used for the cache key. When
                empty, the key is derived from the full path and the merged
                query so different requests never share an entry.

        Returns:
            The stored or freshly fetched :class:`ApiResult`.

        Raises:
            TransientUpstreamTimeout, ClientRequestError, ConnectivityError,
            InvalidResponseError: Propagated from the dispatcher.
            RuntimeError: If the client is used outside its context manager.
        """
        if not self._dispatcher.is_open:
            raise RuntimeError("Client not opened -- use it as a context manager")
        request_options = self.prepare(path, options, method)

        fetched = False

        def populate() -> ApiResult:
            nonlocal fetched
            fetched = True
            return self._dispatcher.dispatch(path, request_options)

        cache_options = request_options.cache
        if cache_options is None:
            return populate()

        result = self._get_cache().remember(
            cache_options.unique_key, cache_options.duration, populate
        )
        if not fetched:
            get_output().debug(f"Cache hit: {cache_options.unique_key}")
        return result

    def _get_cache(self) -> ResponseCache:
        if self._cache is None:
            self._cache = ResponseCache(get_cache_dir())
            self._owns_cache = True
        return self._cache


def create_client(
    config: Optional[ApiConfig] = None,
    endpoint_prefix: str = "",
    cache: Optional[ResponseCache] = None,
) -> BattlenetClient:
    """Build a :class:`BattlenetClient` from *config* or, if omitted, :func:`resolve_config`."""
    return BattlenetClient(
        config if config is not None else resolve_config(),
        cache=cache,
        endpoint_prefix=endpoint_prefix,
    )
