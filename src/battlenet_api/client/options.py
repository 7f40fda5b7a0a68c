"""Request option merging.

Caller options arrive as ``None``, a plain mapping, or an existing
:class:`~battlenet_api.models.RequestOptions`. :func:`wrap_options` turns any
of these into ``RequestOptions``; :func:`merge_options` fills in the default
query parameters (``locale`` and ``apikey``) without ever overwriting a value
the caller chose.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Union

from battlenet_api.models import ApiConfig, RequestOptions

OptionsLike = Union[RequestOptions, Mapping[str, Any], None]


def wrap_options(options: OptionsLike) -> RequestOptions:
    """Coerce *options* into :class:`RequestOptions`.

    ``None`` and empty mappings become empty options. A ``query`` value of
    ``None`` is treated as an empty query.

    Raises:
        TypeError: If *options* is neither a mapping nor ``RequestOptions``.
    """
    if isinstance(options, RequestOptions):
        return options
    if options is None:
        return RequestOptions()
    if not isinstance(options, Mapping):
        raise TypeError(
            f"Request options must be a mapping or RequestOptions, got {type(options).__name__}"
        )
    data = dict(options)
    if data.get("query") is None:
        data.pop("query", None)
    return RequestOptions.model_validate(data)


def default_query(config: ApiConfig) -> dict[str, Any]:
    """Query parameters sent with every request unless the caller overrides them."""
    return {"locale": config.locale, "apikey": config.api_key}


def merge_options(options: OptionsLike, defaults: Mapping[str, Any]) -> RequestOptions:
    """Return options whose ``query`` contains every key of *defaults*.

    Keys already present in the caller's query keep their value; defaults
    only fill gaps, so merging twice gives the same result as merging once.
    The input is not modified.
    """
    wrapped = wrap_options(options)
    query = dict(wrapped.query)
    for key, value in defaults.items():
        query.setdefault(key, value)
    return wrapped.model_copy(update={"query": query})


def merge_with_config(options: OptionsLike, config: ApiConfig) -> RequestOptions:
    """Shortcut for ``merge_options(options, default_query(config))``."""
    return merge_options(options, default_query(config))


def parse_query_pairs(pairs: Optional[list[str]]) -> dict[str, str]:
    """Parse ``key=value`` strings (as given to ``--query``) into a dict.

    Raises:
        ValueError: If a pair has no ``=`` or an empty key.
    """
    query: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got '{pair}'")
        query[key.strip()] = value
    return query
