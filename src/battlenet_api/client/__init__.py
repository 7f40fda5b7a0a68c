"""HTTP client layer for battlenet-api.

Classes:
    :class:`BattlenetClient` -- public entry point: option merging, cache
    policy and cache-aside dispatch.
    :class:`RequestDispatcher` -- the :mod:`httpx`-backed GET call with its
    gateway-timeout retry loop.
    :class:`ApiResult` -- keyed container for decoded response bodies.

Example::

    from battlenet_api.client import create_client

    with create_client(endpoint_prefix="/wow") as client:
        status = client.dispatch("/realm/status", method="getRealmStatus")
"""

from battlenet_api.client.api_client import BattlenetClient, create_client
from battlenet_api.client.dispatcher import RequestDispatcher
from battlenet_api.client.response import ApiResult

__all__ = ["ApiResult", "BattlenetClient", "RequestDispatcher", "create_client"]
