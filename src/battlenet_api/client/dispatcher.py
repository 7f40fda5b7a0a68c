"""Synchronous request dispatcher with a bounded retry state machine.

This module provides :class:`RequestDispatcher`, the component that actually
talks to the API. It wraps :class:`httpx.Client` and layers on:

- **URL building** -- every call goes to ``domain + endpoint_prefix + path``.
- **Attempt classification** -- each attempt ends in exactly one of
  :class:`Success`, :class:`TransientFailure` or :class:`TerminalFailure`.
- **Retry** -- only the upstream gateway timeout (HTTP 504 with the reason
  phrase ``Gateway Timeout``) is retried, up to six attempts in total, with
  no delay between attempts. Everything else fails on the first attempt.
- **Parsing** -- successful bodies are decoded into
  :class:`~battlenet_api.client.response.ApiResult`.

Request-level failures (DNS, refused connections, transport timeouts,
redirect loops, undecodable bodies) are raised as :class:`~battlenet_api.exceptions.ConnectivityError` straight away.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import httpx

from battlenet_api.client.response import ApiResult, error_detail, extract_error_body, parse_response
from battlenet_api.exceptions import (
    BattlenetError,
    ClientRequestError,
    ConnectivityError,
    TransientUpstreamTimeout,
)
from battlenet_api.models import ApiConfig, RequestOptions
from battlenet_api.output import get_output


@dataclass(frozen=True)
class RetryRule:
    """A retryable failure signature and the attempt budget it grants."""

    reason_phrase: str
    max_attempts: int


RETRYABLE_STATUSES: dict[int, RetryRule] = {
    504: RetryRule(reason_phrase="Gateway Timeout", max_attempts=6),
}


@dataclass
class RetryState:
    """Retry bookkeeping for one dispatch call."""

    attempts: int = 0
    max_attempts: int = 0
    last_error: Optional[BattlenetError] = None

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.max_attempts


@dataclass(frozen=True)
class Success:
    result: ApiResult


@dataclass(frozen=True)
class TransientFailure:
    error: TransientUpstreamTimeout
    rule: RetryRule


@dataclass(frozen=True)
class TerminalFailure:
    error: BattlenetError


AttemptOutcome = Union[Success, TransientFailure, TerminalFailure]


def classify_status(response: httpx.Response) -> Optional[RetryRule]:
    """Return the retry rule matching *response*, or ``None`` if it is not retryable.

    Both the status code and the reason phrase must match; a 504 with any
    other reason phrase is not retryable.
    """
    rule = RETRYABLE_STATUSES.get(response.status_code)
    if rule is not None and response.reason_phrase == rule.reason_phrase:
        return rule
    return None


class RequestDispatcher:
    """Performs GET calls against the API and retries upstream gateway timeouts.

    Must be used as a context manager (or :meth:`open`/:meth:`close` called
    explicitly) so that the underlying transport is opened and closed.

    Args:
        config: Resolved configuration; ``domain`` is the base URL.
        endpoint_prefix: Prepended to every path, e.g. ``"/wow"`` for the
            World of Warcraft endpoints.
        transport: Optional :mod:`httpx` transport, mainly for tests
            (``httpx.MockTransport``).

    Example::

        with RequestDispatcher(config, endpoint_prefix="/wow") as dispatcher:
            realms = dispatcher.dispatch("/realm/status", RequestOptions(query={"locale": "en_GB"}))
    """

    def __init__(
        self,
        config: ApiConfig,
        endpoint_prefix: str = "",
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._endpoint_prefix = endpoint_prefix.rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(self) -> RequestDispatcher:
        if self._client is None:
            request = self._config.request
            self._client = httpx.Client(
                base_url=self._config.domain or "",
                timeout=request.timeout,
                verify=request.verify_ssl,
                follow_redirects=True,
                transport=self._transport,
            )
        return self

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> RequestDispatcher:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._client is not None

    @property
    def endpoint_prefix(self) -> str:
        return self._endpoint_prefix

    def build_path(self, path: str) -> str:
        """Join the endpoint prefix and *path* with exactly one slash between them."""
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self._endpoint_prefix}{path}"

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #

    def dispatch(self, path: str, options: RequestOptions) -> ApiResult:
        """GET ``endpoint_prefix + path`` and return the decoded result.

        Upstream gateway timeouts are retried until the attempt budget of
        their :class:`RetryRule` is spent; any other failure ends the loop at
        once.

        Raises:
            TransientUpstreamTimeout: When every attempt hit the gateway timeout.
            ClientRequestError: On any other HTTP error status.
            ConnectivityError: On transport-level failures.
            InvalidResponseError: When a successful body is not JSON.
        """
        full_path = self.build_path(path)
        state = RetryState()
        output = get_output()

        while True:
            outcome = self._attempt(full_path, options)

            if isinstance(outcome, Success):
                return outcome.result

            state.last_error = outcome.error
            if isinstance(outcome, TerminalFailure):
                raise outcome.error

            state.max_attempts = outcome.rule.max_attempts
            state.attempts += 1
            if state.exhausted:
                output.debug(f"Giving up on GET {full_path} after {state.attempts} attempts")
                raise state.last_error

            output.debug(
                f"{outcome.error.status_code} {outcome.error.reason_phrase} on GET {full_path}, "
                f"retrying (attempt {state.attempts + 1}/{state.max_attempts})"
            )

    def _attempt(self, path: str, options: RequestOptions) -> AttemptOutcome:
        """Send one request and classify what came back."""
        if self._client is None:
            raise RuntimeError("Dispatcher not opened -- use it as a context manager")

        try:
            response = self._client.get(path, params=options.query, headers=options.headers or None)
        except httpx.RequestError as exc:
            error = ConnectivityError(f"Request to {self._config.domain}{path} failed: {exc}")
            error.__cause__ = exc
            return TerminalFailure(error)

        if response.status_code < 400:
            try:
                return Success(parse_response(response))
            except BattlenetError as exc:
                return TerminalFailure(exc)

        body = extract_error_body(response)
        detail = error_detail(body)
        message = f"HTTP {response.status_code} {response.reason_phrase}".rstrip()
        if detail:
            message = f"{message}: {detail}"

        rule = classify_status(response)
        if rule is not None:
            return TransientFailure(
                TransientUpstreamTimeout(
                    message,
                    status_code=response.status_code,
                    reason_phrase=response.reason_phrase,
                    body=body,
                ),
                rule,
            )
        return TerminalFailure(
            ClientRequestError(
                message,
                status_code=response.status_code,
                reason_phrase=response.reason_phrase,
                body=body,
            )
        )
