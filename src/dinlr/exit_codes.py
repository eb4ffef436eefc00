"""Numeric process exit codes used by the ``dinlr`` command-line tool.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~dinlr.exceptions.DinlrError` subclass, so shell
scripts can tell an expired API key from a missing record without parsing
stderr.

Example::

    $ dinlr get customers cus_123
    $ echo $?
    4   # EXIT_NOT_FOUND -- the customer does not exist
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or rejected input."""

EXIT_AUTH_FAILURE = 3
"""The API key was rejected (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The Dinlr API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DATA_ERROR = 7
"""The API returned a record that could not be converted to its typed form."""
