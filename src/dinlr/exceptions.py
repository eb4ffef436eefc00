"""Exception hierarchy for dinlr.

All exceptions inherit from :class:`DinlrError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`dinlr.exit_codes`.
Library callers catch the specific subclasses; the CLI entry point in
:func:`dinlr.app.main` catches ``DinlrError`` and exits with the
appropriate code.

Subclass hierarchy::

    DinlrError (exit 1)
    +-- ConfigError             (exit 1)
    +-- ApiError                (exit 1)
    |   +-- AuthError           (exit 3)
    |   +-- NotFoundError       (exit 4)
    |   +-- ServerError         (exit 5)
    +-- ConnectionError_        (exit 6)
    +-- ValidationError         (exit 2)
    |   +-- InvalidKeyError     (exit 2)
    +-- MaterializationError    (exit 7)
"""

from __future__ import annotations

from typing import Any, Optional

from dinlr.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DATA_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class DinlrError(Exception):
    """Base exception for all dinlr errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`dinlr.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(DinlrError):
    """Raised for configuration problems (missing API key, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class ApiError(DinlrError):
    """Raised when the Dinlr API answers with an error status.

    Args:
        message: Error message, usually the ``message`` field of the
            response body.
        status_code: HTTP status code returned by the API.
        context: Extra request details (``endpoint``, ``method``,
            ``response_data``) for debugging.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        context: Optional[dict[str, Any]] = None,
        exit_code: int | None = None,
    ):
        super().__init__(message, exit_code=exit_code)
        self.status_code = status_code
        self.context = context or {}


class AuthError(ApiError):
    """Raised when the API rejects the credentials (HTTP 401 / 403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(ApiError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(ApiError):
    """Raised when the API returns an HTTP 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(DinlrError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ValidationError(DinlrError):
    """Raised when caller-supplied input fails sanitisation."""

    exit_code = EXIT_INVALID_USAGE


class InvalidKeyError(ValidationError):
    """Raised when a lookup key or identifier contains rejected characters or patterns."""


class MaterializationError(DinlrError):
    """Raised when a raw API record cannot be converted into its typed record.

    Args:
        message: Description of the shape mismatch.
        raw: The offending raw record.
        record_type: Name of the record class that was being built.
    """

    exit_code = EXIT_DATA_ERROR

    def __init__(self, message: str, raw: Any = None, record_type: str | None = None):
        super().__init__(message)
        self.raw = raw
        self.record_type = record_type
