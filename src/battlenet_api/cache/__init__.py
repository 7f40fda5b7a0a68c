"""Response caching for battlenet-api.

:mod:`~battlenet_api.cache.policy` decides whether a call is cached and under
which key; :class:`ResponseCache` is the :mod:`diskcache`-backed store that
answers ``remember(key, ttl, populate)``.
"""

from battlenet_api.cache.policy import (
    build_cache_options,
    cache_key,
    normalize_method,
    request_method_name,
)
from battlenet_api.cache.store import ResponseCache

__all__ = [
    "ResponseCache",
    "build_cache_options",
    "cache_key",
    "normalize_method",
    "request_method_name",
]
