"""Input sanitisation and log redaction.

Identifiers and lookup keys that come from untrusted callers pass through
:func:`sanitize_identifier` (or :func:`sanitize_string`) before they are
interpolated into an endpoint path or handed to
:meth:`~dinlr.records.RecordCollection.find_by_key`. Rejected input raises
:class:`~dinlr.exceptions.InvalidKeyError`.

:func:`sanitize_for_logging` and :func:`redact_sensitive` keep request
diagnostics readable and free of secrets.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Iterable

from dinlr.exceptions import InvalidKeyError

# Measured in UTF-8 bytes.
MAX_INPUT_LENGTH = 1000

SENSITIVE_KEYS = ("access_token", "password", "secret", "key")

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_LOG_UNSAFE_CHARS = re.compile(r"[\r\n\t\x00-\x1F\x7F]")
_SHELL_CHARS = frozenset(";|`$")
_SUSPICIOUS = re.compile(
    r"(?:"
    r"\b(?:union|select|insert|delete|update|drop)\s+"  # SQL keywords
    r"|['\";][^-]*--"  # quote followed by a SQL comment
    r"|<script"
    r"|javascript:"
    r"|on\w+\s*="  # inline event handlers
    r"|\.\.[/\\]"  # path traversal
    r")",
    re.IGNORECASE,
)
_IDENTIFIER = re.compile(r"^[a-zA-Z0-9_-]+$")
_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# Characters kept by a conservative email filter.
_EMAIL_UNSAFE = re.compile(r"[^a-zA-Z0-9!#$%&'*+\-=?^_`{|}~@.\[\]]")


def _contains_suspicious_patterns(value: str) -> bool:
    if len(value.encode("utf-8")) >= MAX_INPUT_LENGTH:
        return True
    if any(ch in _SHELL_CHARS for ch in value):
        return True
    return _SUSPICIOUS.search(value) is not None


def sanitize_string(value: str, field_name: str = "input") -> str:
    """Strip control characters, trim, reject injection patterns, NFC-normalise.

    Raises:
        InvalidKeyError: If *value* looks like an injection attempt or is
            too long (MAX_INPUT_LENGTH bytes or more).
    """
    value = value.replace("\0", "")
    value = _CONTROL_CHARS.sub("", value)
    value = value.strip()

    if _contains_suspicious_patterns(value):
        raise InvalidKeyError(f"Invalid characters detected in {field_name}")

    return unicodedata.normalize("NFC", value)


def sanitize_identifier(value: str, field_name: str = "identifier") -> str:
    """Sanitise *value* and require it to be ``[A-Za-z0-9_-]+``.

    Raises:
        InvalidKeyError: If the identifier is empty or has other characters.
    """
    value = sanitize_string(value, field_name)
    if not _IDENTIFIER.match(value):
        raise InvalidKeyError(
            f"{field_name} can only contain letters, numbers, hyphens, and underscores"
        )
    return value


def sanitize_email(value: str, field_name: str = "email") -> str:
    """Sanitise *value*, drop characters not allowed in an address, and validate it."""
    value = sanitize_string(value, field_name)
    value = _EMAIL_UNSAFE.sub("", value)
    if not value or not _EMAIL.match(value):
        raise InvalidKeyError(f"Invalid {field_name} format")
    return value


def sanitize_for_logging(value: str) -> str:
    """Replace line breaks and control characters with spaces."""
    return _LOG_UNSAFE_CHARS.sub(" ", value)


def redact_sensitive(data: Any, sensitive_keys: Iterable[str] = SENSITIVE_KEYS) -> Any:
    """Return a copy of *data* with sensitive values replaced by ``[REDACTED]``.

    A key is sensitive when it contains any of *sensitive_keys*
    (case-insensitive). Nested dicts and lists are walked recursively.
    """
    patterns = tuple(k.lower() for k in sensitive_keys)
    return _redact(data, patterns)


def _redact(data: Any, patterns: tuple[str, ...]) -> Any:
    if isinstance(data, dict):
        redacted = {}
        for key, value in data.items():
            if any(p in str(key).lower() for p in patterns):
                redacted[key] = "[REDACTED]"
            else:
                redacted[key] = _redact(value, patterns)
        return redacted
    if isinstance(data, list):
        return [_redact(item, patterns) for item in data]
    return data
