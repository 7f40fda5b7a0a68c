"""Canonical Pydantic models shared across all battlenet-api modules.

The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig` and :class:`ApiConfig`.

**Per-call models** -- built fresh for every dispatch and discarded when it
completes:
    :class:`RequestOptions` and :class:`CacheOptions`.

All models use Pydantic v2. :class:`RequestOptions` uses ``extra="allow"`` so
that options the dispatcher does not know about are carried through
untouched.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_LOCALE = "eu"
DEFAULT_CACHE_DURATION = 600


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP transport settings applied to every API call."""

    timeout: int = Field(default=30, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")


class ApiConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/battlenet-api/config.json``.

    Loaded by :func:`~battlenet_api.config.load_config` and overridden by
    environment variables and CLI flags in
    :func:`~battlenet_api.config.resolve_config`. ``domain`` and ``api_key``
    are optional here so that a partial file can be inspected and edited;
    :func:`~battlenet_api.config.require_credentials` enforces them before
    any request is sent.

    Example::

        ApiConfig(domain="https://eu.api.battle.net", api_key="abc123")
    """

    domain: Optional[str] = Field(
        default=None, description="Base URL of the API, e.g. https://eu.api.battle.net"
    )
    api_key: Optional[str] = Field(default=None, description="API key sent as ?apikey=")
    locale: str = Field(default=DEFAULT_LOCALE, description="Locale sent as ?locale=")
    cache: bool = Field(default=True, description="Enable response caching")
    cache_duration: int = Field(
        default=DEFAULT_CACHE_DURATION, gt=0, description="Cache TTL in seconds"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)


# --- Per-call options ---


class CacheOptions(BaseModel):
    """Cache identity of a single dispatch: where to store it and for how long.

    Built by :func:`~battlenet_api.cache.policy.build_cache_options` or
    supplied explicitly by the caller. Instances are immutable.
    """

    model_config = ConfigDict(frozen=True)

    method: str
    unique_key: str
    duration: int = Field(default=DEFAULT_CACHE_DURATION, gt=0)


class RequestOptions(BaseModel):
    """Options for a single dispatch.

    ``query`` holds the query-string parameters and always exists, even when
    the caller supplied none. ``cache`` is attached by the cache policy (or
    given explicitly by the caller). Any other keys are kept in
    ``model_extra``.
    """

    model_config = ConfigDict(extra="allow")

    query: dict[str, Any] = Field(default_factory=dict)
    headers: dict[str, str] = Field(default_factory=dict)
    cache: Optional[CacheOptions] = None
