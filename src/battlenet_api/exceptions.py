"""Exception hierarchy for battlenet-api.

All exceptions inherit from :class:`BattlenetError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`battlenet_api.exit_codes`. The CLI entry point in
:func:`battlenet_api.app.main` catches ``BattlenetError`` and exits with the
appropriate code.

Subclass hierarchy::

    BattlenetError (exit 1)
    +-- ConfigError                    (exit 1)
    +-- InvalidUsageError              (exit 2)
    +-- ClientRequestError             (exit 3 / 4 / 5, by status)
    |   +-- TransientUpstreamTimeout   (exit 8)
    +-- InvalidResponseError           (exit 5)
    +-- ConnectivityError              (exit 6)

Errors raised by the cache store are deliberately not part of this
hierarchy: they propagate from :mod:`diskcache` unchanged.
"""

from __future__ import annotations

from typing import Any, Optional

from battlenet_api.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_UPSTREAM_TIMEOUT,
)


class BattlenetError(Exception):
    """Base exception for all battlenet-api errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(BattlenetError):
    """Raised for configuration problems (missing domain or API key, invalid JSON)."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(BattlenetError):
    """Raised for invalid CLI arguments such as a malformed ``--query`` pair."""

    exit_code = EXIT_INVALID_USAGE


class ClientRequestError(BattlenetError):
    """Raised when the API answers with an HTTP error status.

    The exit code is derived from the status: 401/403 map to
    :data:`EXIT_AUTH_FAILURE`, 404 to :data:`EXIT_NOT_FOUND` and everything
    else to :data:`EXIT_SERVER_ERROR`.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status code of the failed response.
        reason_phrase: The reason phrase that accompanied the status.
        body: The decoded (or raw) response body, if any.
    """

    exit_code = EXIT_SERVER_ERROR

    def __init__(
        self,
        message: str,
        status_code: int,
        reason_phrase: str = "",
        body: Optional[Any] = None,
    ):
        super().__init__(message, exit_code=_exit_code_for_status(status_code))
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.body = body


class TransientUpstreamTimeout(ClientRequestError):
    """Raised for the one retryable failure: HTTP 504 ``Gateway Timeout``.

    The dispatcher retries this error up to its fixed budget and only lets
    it escape once every attempt has failed the same way.
    """

    exit_code = EXIT_UPSTREAM_TIMEOUT

    def __init__(
        self,
        message: str,
        status_code: int = 504,
        reason_phrase: str = "Gateway Timeout",
        body: Optional[Any] = None,
    ):
        super().__init__(message, status_code, reason_phrase, body)
        self.exit_code = EXIT_UPSTREAM_TIMEOUT


class InvalidResponseError(BattlenetError):
    """Raised when a successful response carries a body that is not JSON."""

    exit_code = EXIT_SERVER_ERROR


class ConnectivityError(BattlenetError):
    """Raised when no usable HTTP response arrives.

    Covers network failures (timeout, DNS resolution, connection refused) as
    well as redirect loops and bodies that cannot be decoded.

    These failures carry no HTTP status and are never retried. The
    originating :mod:`httpx` exception is chained as ``__cause__``.
    """

    exit_code = EXIT_CONNECTION_ERROR


def _exit_code_for_status(status_code: int) -> int:
    if status_code in (401, 403):
        return EXIT_AUTH_FAILURE
    if status_code == 404:
        return EXIT_NOT_FOUND
    return EXIT_SERVER_ERROR
