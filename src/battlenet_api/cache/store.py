"""Disk-based result store with get-or-populate semantics.

Uses :mod:`diskcache` to persist :class:`~battlenet_api.client.response.ApiResult`
objects on the filesystem. Entries are addressed by the unique key built by
:mod:`battlenet_api.cache.policy` and expire after the TTL given when they
were stored.

The store is a collaborator of :class:`~battlenet_api.client.BattlenetClient`
and never decides *whether* to cache; it only answers :meth:`ResponseCache.remember`.
Errors from :mod:`diskcache` and from the populate callable propagate
unchanged.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

import diskcache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResponseCache:
    """Disk-backed key/value store for API results.

    Args:
        cache_dir: Root directory for the cache. A ``responses/``
            subdirectory is created inside it.

    Example::

        from battlenet_api.cache import ResponseCache

        cache = ResponseCache("/tmp/battlenet-cache")
        realms = cache.remember("battlenet_api.cache.realm_status", 600, fetch_realms)
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._directory = Path(cache_dir) / "responses"
        self._cache: Optional[diskcache.Cache] = diskcache.Cache(str(self._directory))

    def __enter__(self) -> ResponseCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def directory(self) -> Path:
        return self._directory

    def remember(self, key: str, ttl_seconds: int, populate: Callable[[], T]) -> T:
        """Return the value stored under *key*, computing and storing it on a miss.

        On a miss *populate* is called, its result is stored under *key* for
        *ttl_seconds* and then returned. If *populate* raises, nothing is
        stored and the exception propagates.

        Two callers missing the same key at the same time may both call
        *populate*; the last one to finish wins.
        """
        cache = self._require_open()
        value = cache.get(key, default=diskcache.ENOVAL)
        if value is not diskcache.ENOVAL:
            logger.debug("Cache hit for %s", key)
            return value

        logger.debug("Cache miss for %s, populating", key)
        value = populate()
        cache.set(key, value, expire=ttl_seconds)
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value stored under *key*, or *default*."""
        return self._require_open().get(key, default=default)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store *value* under *key* for *ttl_seconds*."""
        self._require_open().set(key, value, expire=ttl_seconds)

    def has(self, key: str) -> bool:
        return key in self._require_open()

    def forget(self, key: str) -> bool:
        """Remove *key*. Returns ``True`` if an entry was deleted."""
        return bool(self._require_open().delete(key))

    def clear(self) -> int:
        """Remove every entry and return how many were deleted."""
        return self._require_open().clear()

    def stats(self) -> dict[str, Any]:
        """Return ``size`` (entry count), ``directory`` and ``volume`` (bytes on disk)."""
        cache = self._require_open()
        return {
            "size": len(cache),
            "directory": str(self._directory),
            "volume": cache.volume(),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache`. Safe to call twice."""
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    def _require_open(self) -> diskcache.Cache:
        if self._cache is None:
            raise RuntimeError("ResponseCache is closed")
        return self._cache
