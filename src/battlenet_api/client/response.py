"""Result container for decoded API responses.

:class:`ApiResult` wraps the JSON body of a successful response. The
Battle.net API answers with objects for single resources and arrays for
lists; both shapes are accessed through the same keyed interface: arrays are
keyed by position.

Results are plain picklable objects so the response cache can persist them.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

import httpx

from battlenet_api.exceptions import InvalidResponseError


class ApiResult:
    """Keyed, ordered view over a decoded response body.

    Args:
        data: The decoded JSON value. ``None`` becomes an empty mapping.
        status_code: HTTP status of the response the data came from.

    Example::

        result = ApiResult({"name": "Thrall", "level": 60})
        result["name"]          # 'Thrall'
        result.get("guild")     # None
        list(result.keys())     # ['name', 'level']
    """

    def __init__(self, data: Any = None, status_code: int = 200) -> None:
        self._data = {} if data is None else data
        self.status_code = status_code

    @property
    def data(self) -> Any:
        """The decoded JSON value exactly as the API returned it."""
        return self._data

    def all(self) -> Any:
        return self._data

    def is_list(self) -> bool:
        return isinstance(self._data, list)

    def keys(self) -> list[Any]:
        if isinstance(self._data, dict):
            return list(self._data.keys())
        if isinstance(self._data, list):
            return list(range(len(self._data)))
        return []

    def values(self) -> list[Any]:
        if isinstance(self._data, dict):
            return list(self._data.values())
        if isinstance(self._data, list):
            return list(self._data)
        return [self._data]

    def items(self) -> list[tuple[Any, Any]]:
        return list(zip(self.keys(), self.values()))

    def get(self, key: Any, default: Any = None) -> Any:
        try:
            return self[key]
        except (KeyError, IndexError, TypeError):
            return default

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self.keys()

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values())

    def __len__(self) -> int:
        if isinstance(self._data, (dict, list)):
            return len(self._data)
        return 1

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ApiResult):
            return self._data == other._data
        return self._data == other

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ApiResult(status_code={self.status_code}, data={self._data!r})"


def parse_response(response: httpx.Response) -> ApiResult:
    """Decode a successful response into an :class:`ApiResult`.

    An empty body yields an empty result.

    Raises:
        InvalidResponseError: If the body is not valid JSON.
    """
    if not response.content:
        return ApiResult(status_code=response.status_code)
    try:
        data = response.json()
    except ValueError as exc:
        raise InvalidResponseError(
            f"HTTP {response.status_code}: response body is not JSON "
            f"({response.headers.get('content-type', 'unknown content type')})"
        ) from exc
    return ApiResult(data, status_code=response.status_code)


def extract_error_body(response: httpx.Response) -> Any:
    """Return the decoded JSON body of an error response, or its text (truncated)."""
    try:
        return response.json()
    except ValueError:
        return response.text[:200] if response.text else None


def error_detail(body: Any) -> str:
    """Pick a human-readable message out of an error body."""
    if isinstance(body, dict):
        detail = body.get("reason") or body.get("detail") or body.get("message") or body.get("error")
        return str(detail) if detail else ""
    if body is None:
        return ""
    return str(body)
