"""Redaction helpers for safe logging.

Guest requests carry PII (email, phone, names, free-text comments). Every
value that ends up in a log line passes through these helpers first.
"""

import re
from typing import Any

# Patterns that should never appear in logs
_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()/]{8,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_REDACTED = "[REDACTED]"

_IDENTIFIER_PREFIX_LEN = 12


def redact_string(value: str) -> str:
    """Redact PII patterns from a string."""
    result = _EMAIL_PATTERN.sub(_REDACTED, value)
    result = _PHONE_PATTERN.sub(_REDACTED, result)
    return result


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # Submissions and capability documents: structure only, never values
        return f"dict(keys={sorted(map(str, value.keys()))})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def identifier_prefix(value: str | None) -> str:
    """Shorten an identifier (request ID, client ID) for log correlation."""
    if not value:
        return ""
    if len(value) <= _IDENTIFIER_PREFIX_LEN:
        return value
    return value[:_IDENTIFIER_PREFIX_LEN] + "..."


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}
