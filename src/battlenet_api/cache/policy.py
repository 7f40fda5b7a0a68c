"""Cache policy: decide whether a dispatch is cached and under which key.

Everything here is a pure function of the operation name, the request
options and the configuration. No network or cache-store access happens in
this module.
"""

from __future__ import annotations

import hashlib
import json
import re
from collections.abc import Mapping
from typing import Any

from battlenet_api.models import ApiConfig, CacheOptions, RequestOptions

CACHE_NAMESPACE = "battlenet_api.cache"
KEY_SEPARATOR = "."

_CAMEL_BOUNDARY_RE = re.compile(r"([a-z0-9])([A-Z])")
_ACRONYM_BOUNDARY_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_SEPARATOR_RE = re.compile(r"[^a-z0-9]+")


def normalize_method(name: str) -> str:
    """Normalise an operation name to lowercase, underscore-separated form.

    Example::

        >>> normalize_method("GetCharacter")
        'get_character'
        >>> normalize_method("get-character")
        'get_character'
        >>> normalize_method("getPvPLeaderboard")
        'get_pv_p_leaderboard'
    """
    result = _CAMEL_BOUNDARY_RE.sub(r"\1_\2", name.strip())
    result = _ACRONYM_BOUNDARY_RE.sub(r"\1_\2", result)
    result = _SEPARATOR_RE.sub("_", result.lower())
    result = result.strip("_")
    if not result:
        raise ValueError(f"Cannot derive a cache key from operation name {name!r}")
    return result


def cache_key(method: str) -> str:
    """Return the store key for *method*: ``battlenet_api.cache.<normalized method>``."""
    return KEY_SEPARATOR.join([CACHE_NAMESPACE, normalize_method(method)])


def request_method_name(path: str, query: Mapping[str, Any]) -> str:
    """Operation name for a call made without one.

    Combines the full request path with a digest of the sorted query, so
    calls that differ in prefix, path or any query value (locale, fields,
    ...) never share a cache entry.

    Example::

        >>> request_method_name("/wow/realm/status", {"locale": "en_GB"})[:16]
        'wow_realm_status'
    """
    canonical = json.dumps([path, sorted((str(k), str(v)) for k, v in query.items())])
    digest = hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
    return normalize_method(f"{path}_{digest}")


def build_cache_options(method: str, options: RequestOptions, config: ApiConfig) -> RequestOptions:
    """Attach :class:`CacheOptions` to *options* when caching applies.

    * Caching disabled in *config*: *options* is returned unchanged.
    * *options* already carries ``cache``: the caller's choice wins.
    * Otherwise a copy of *options* is returned with ``cache`` set to
      ``CacheOptions(method, cache_key(method), config.cache_duration)``.
    """
    if not config.cache or options.cache is not None:
        return options

    normalized = normalize_method(method)
    cache = CacheOptions(
        method=normalized,
        unique_key=cache_key(normalized),
        duration=config.cache_duration,
    )
    return options.model_copy(update={"cache": cache})
