"""Tests for the request dispatcher and its gateway-timeout retry loop."""

from __future__ import annotations

from typing import Callable

import httpx
import pytest

from battlenet_api.client.dispatcher import (
    RETRYABLE_STATUSES,
    RequestDispatcher,
    RetryState,
    classify_status,
)
from battlenet_api.client.response import ApiResult
from battlenet_api.exceptions import (
    ClientRequestError,
    ConnectivityError,
    InvalidResponseError,
    TransientUpstreamTimeout,
)
from battlenet_api.exit_codes import EXIT_CONNECTION_ERROR, EXIT_NOT_FOUND, EXIT_UPSTREAM_TIMEOUT
from battlenet_api.models import ApiConfig, RequestOptions


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class ScriptedTransport(httpx.MockTransport):
    """MockTransport that replays a list of responses and records every request.

    Entries may be an ``httpx.Response`` or an exception instance to raise.
    The last entry repeats once the script runs out.
    """

    def __init__(self, script: list) -> None:
        self.script = script
        self.requests: list[httpx.Request] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        step = self.script[min(len(self.requests), len(self.script)) - 1]
        if isinstance(step, Exception):
            raise step
        return step


def _gateway_timeout(reason: bytes | None = None) -> httpx.Response:
    extensions = {"reason_phrase": reason} if reason is not None else {}
    return httpx.Response(504, json={"reason": "upstream timed out"}, extensions=extensions)


def _ok(data=None) -> httpx.Response:
    return httpx.Response(200, json=data if data is not None else {"ok": True})


def _dispatcher(config: ApiConfig, transport: httpx.BaseTransport, prefix: str = "/wow") -> RequestDispatcher:
    return RequestDispatcher(config, endpoint_prefix=prefix, transport=transport)


def _run(config: ApiConfig, transport: httpx.BaseTransport, path: str = "/realm/status",
         options: RequestOptions | None = None) -> ApiResult:
    with _dispatcher(config, transport) as dispatcher:
        return dispatcher.dispatch(path, options or RequestOptions())


@pytest.fixture(autouse=True)
def _quiet(quiet_output) -> None:
    """All dispatcher tests run with quiet output."""


# ---------------------------------------------------------------------------
# Success path
# ---------------------------------------------------------------------------


class TestSuccess:
    def test_returns_decoded_result(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_ok({"realms": [{"name": "Draenor"}]})])
        result = _run(api_config, transport)
        assert isinstance(result, ApiResult)
        assert result["realms"][0]["name"] == "Draenor"
        assert len(transport.requests) == 1

    def test_url_is_domain_prefix_and_path(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_ok()])
        _run(api_config, transport, path="/character/draenor/Thrall")
        url = transport.requests[0].url
        assert url.host == "eu.api.battle.net"
        assert url.path == "/wow/character/draenor/Thrall"
        assert transport.requests[0].method == "GET"

    def test_query_parameters_sent(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_ok()])
        _run(api_config, transport, options=RequestOptions(query={"locale": "en_GB", "apikey": "k"}))
        params = transport.requests[0].url.params
        assert params["locale"] == "en_GB"
        assert params["apikey"] == "k"

    def test_headers_sent(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_ok()])
        _run(api_config, transport, options=RequestOptions(headers={"X-Trace": "abc"}))
        assert transport.requests[0].headers["x-trace"] == "abc"

    def test_list_body(self, api_config: ApiConfig) -> None:
        result = _run(api_config, ScriptedTransport([_ok([1, 2, 3])]))
        assert result.is_list()
        assert list(result) == [1, 2, 3]

    def test_empty_body_gives_empty_result(self, api_config: ApiConfig) -> None:
        result = _run(api_config, ScriptedTransport([httpx.Response(204)]))
        assert len(result) == 0
        assert result.status_code == 204

    def test_non_json_body_is_an_error(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([httpx.Response(200, text="<html>maintenance</html>")])
        with pytest.raises(InvalidResponseError):
            _run(api_config, transport)
        assert len(transport.requests) == 1

    @pytest.mark.parametrize(
        ("prefix", "path", "expected"),
        [
            ("/wow", "/realm/status", "/wow/realm/status"),
            ("/wow/", "realm/status", "/wow/realm/status"),
            ("", "/d3/profile", "/d3/profile"),
        ],
    )
    def test_build_path(self, api_config: ApiConfig, prefix: str, path: str, expected: str) -> None:
        dispatcher = RequestDispatcher(api_config, endpoint_prefix=prefix)
        assert dispatcher.build_path(path) == expected


# ---------------------------------------------------------------------------
# Retry state machine
# ---------------------------------------------------------------------------


class TestRetry:
    def test_budget_is_six_attempts_for_gateway_timeout(self) -> None:
        rule = RETRYABLE_STATUSES[504]
        assert rule.reason_phrase == "Gateway Timeout"
        assert rule.max_attempts == 6

    def test_succeeds_on_sixth_attempt(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_gateway_timeout()] * 5 + [_ok({"done": True})])
        result = _run(api_config, transport)
        assert result["done"] is True
        assert len(transport.requests) == 6

    def test_succeeds_after_one_retry(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_gateway_timeout(), _ok()])
        _run(api_config, transport)
        assert len(transport.requests) == 2

    def test_exhaustion_raises_after_six_attempts(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_gateway_timeout()])
        with pytest.raises(TransientUpstreamTimeout) as exc_info:
            _run(api_config, transport)
        assert len(transport.requests) == 6
        assert exc_info.value.status_code == 504
        assert exc_info.value.reason_phrase == "Gateway Timeout"
        assert exc_info.value.exit_code == EXIT_UPSTREAM_TIMEOUT
        assert "upstream timed out" in str(exc_info.value)

    def test_exhaustion_raises_error_from_final_attempt(self, api_config: ApiConfig) -> None:
        script = [
            httpx.Response(504, json={"reason": f"timeout #{n}"}) for n in range(1, 7)
        ]
        with pytest.raises(TransientUpstreamTimeout, match="timeout #6"):
            _run(api_config, ScriptedTransport(script))

    def test_no_retry_on_404(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([httpx.Response(404, json={"reason": "Character not found."})])
        with pytest.raises(ClientRequestError) as exc_info:
            _run(api_config, transport)
        assert len(transport.requests) == 1
        assert not isinstance(exc_info.value, TransientUpstreamTimeout)
        assert exc_info.value.status_code == 404
        assert exc_info.value.exit_code == EXIT_NOT_FOUND
        assert "Character not found." in str(exc_info.value)

    @pytest.mark.parametrize("status", [400, 401, 403, 429, 500, 502, 503])
    def test_no_retry_on_other_statuses(self, api_config: ApiConfig, status: int) -> None:
        transport = ScriptedTransport([httpx.Response(status)])
        with pytest.raises(ClientRequestError) as exc_info:
            _run(api_config, transport)
        assert len(transport.requests) == 1
        assert exc_info.value.status_code == status

    def test_504_with_other_reason_is_not_retried(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_gateway_timeout(reason=b"Upstream Stalled")])
        with pytest.raises(ClientRequestError) as exc_info:
            _run(api_config, transport)
        assert len(transport.requests) == 1
        assert not isinstance(exc_info.value, TransientUpstreamTimeout)
        assert exc_info.value.reason_phrase == "Upstream Stalled"

    def test_terminal_failure_after_retries_stops_loop(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport(
            [_gateway_timeout(), _gateway_timeout(), httpx.Response(404), _ok()]
        )
        with pytest.raises(ClientRequestError) as exc_info:
            _run(api_config, transport)
        assert len(transport.requests) == 3
        assert exc_info.value.status_code == 404

    def test_retries_fire_without_delay(self, api_config: ApiConfig, monkeypatch) -> None:
        def _no_sleep(seconds: float) -> None:
            raise AssertionError("dispatcher must not sleep between attempts")

        monkeypatch.setattr("time.sleep", _no_sleep)
        transport = ScriptedTransport([_gateway_timeout(), _ok()])
        _run(api_config, transport)
        assert len(transport.requests) == 2


# ---------------------------------------------------------------------------
# Connectivity failures
# ---------------------------------------------------------------------------


class TestConnectivity:
    @pytest.mark.parametrize(
        "exc_factory",
        [
            lambda: httpx.ConnectError("Name or service not known"),
            lambda: httpx.ConnectTimeout("timed out"),
            lambda: httpx.ReadError("connection reset"),
        ],
    )
    def test_fails_fast(self, api_config: ApiConfig, exc_factory: Callable[[], Exception]) -> None:
        original = exc_factory()
        transport = ScriptedTransport([original, _ok()])
        with pytest.raises(ConnectivityError) as exc_info:
            _run(api_config, transport)
        assert len(transport.requests) == 1
        assert exc_info.value.__cause__ is original
        assert "eu.api.battle.net" in str(exc_info.value)

    def test_redirect_loop_is_connectivity_error(self, api_config: ApiConfig) -> None:
        transport = httpx.MockTransport(
            lambda request: httpx.Response(302, headers={"Location": "/loop"})
        )
        with pytest.raises(ConnectivityError) as exc_info:
            _run(api_config, transport)
        assert isinstance(exc_info.value.__cause__, httpx.TooManyRedirects)
        assert exc_info.value.exit_code == EXIT_CONNECTION_ERROR

    def test_undecodable_body_is_connectivity_error(self, api_config: ApiConfig) -> None:
        def _handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Content-Encoding": "gzip"},
                stream=httpx.ByteStream(b"definitely not gzip"),
            )

        with pytest.raises(ConnectivityError) as exc_info:
            _run(api_config, httpx.MockTransport(_handler))
        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)

    def test_connectivity_error_after_timeout_surfaces_own_error(self, api_config: ApiConfig) -> None:
        transport = ScriptedTransport([_gateway_timeout(), httpx.ConnectError("refused")])
        with pytest.raises(ConnectivityError):
            _run(api_config, transport)
        assert len(transport.requests) == 2


# ---------------------------------------------------------------------------
# Classification helpers and lifecycle
# ---------------------------------------------------------------------------


class TestClassifyStatus:
    def test_matching_signature(self) -> None:
        assert classify_status(_gateway_timeout()) is RETRYABLE_STATUSES[504]

    def test_reason_mismatch(self) -> None:
        assert classify_status(_gateway_timeout(reason=b"Gateway Time-out")) is None

    def test_other_status(self) -> None:
        assert classify_status(httpx.Response(503)) is None


class TestRetryState:
    def test_initial_state_is_exhausted(self) -> None:
        state = RetryState()
        assert state.attempts == 0
        assert state.max_attempts == 0
        assert state.last_error is None
        assert state.exhausted

    def test_exhausted_when_attempts_reach_budget(self) -> None:
        assert not RetryState(attempts=5, max_attempts=6).exhausted
        assert RetryState(attempts=6, max_attempts=6).exhausted


class TestLifecycle:
    def test_dispatch_requires_open(self, api_config: ApiConfig) -> None:
        dispatcher = RequestDispatcher(api_config)
        with pytest.raises(RuntimeError, match="not opened"):
            dispatcher.dispatch("/realm/status", RequestOptions())

    def test_context_manager_closes_client(self, api_config: ApiConfig) -> None:
        dispatcher = RequestDispatcher(api_config, transport=ScriptedTransport([_ok()]))
        with dispatcher:
            assert dispatcher._client is not None
        assert dispatcher._client is None

    def test_verbose_output_reports_retries(self, api_config: ApiConfig, capsys) -> None:
        from battlenet_api.output import OutputManager, OutputFormat, set_output

        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True))
        _run(api_config, ScriptedTransport([_gateway_timeout(), _ok()]))
        err = capsys.readouterr().err
        assert "[debug] 504 Gateway Timeout" in err
        assert "attempt 2/6" in err
