"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~battlenet_api.exceptions.BattlenetError` subclass.
Shell wrappers can inspect the exit code of ``battlenet-api get`` to tell a
missing resource from an unreachable host without parsing stderr.

Example::

    $ battlenet-api get /wow/character/unknown/nobody
    $ echo $?
    4   # EXIT_NOT_FOUND -- the API answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred (also used for configuration errors)."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_AUTH_FAILURE = 3
"""The API rejected the configured API key (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The API answered with any other HTTP error, or an unreadable body."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_UPSTREAM_TIMEOUT = 8
"""The upstream gateway kept timing out after every retry (HTTP 504)."""
