"""Transformations from a validated submission to GuestRequest fields.

All functions are pure; callers validate first (see validators.py).
"""

import re
import secrets
import string
import time
from datetime import date
from typing import Any

from .models import Selection
from .validators import CHILD_AGE_SLOTS, PERIOD_PATTERN

# Language -> international calling code. Languages spoken across several
# countries with no dominant one (en, pt, ...) are left out on purpose so
# their numbers pass through untouched.
CALLING_CODES: dict[str, str] = {
    "de": "49",
    "it": "39",
    "fr": "33",
    "nl": "31",
    "es": "34",
    "pl": "48",
    "cs": "420",
    "da": "45",
    "hu": "36",
}
_KNOWN_CODES = frozenset(CALLING_CODES.values())

# Values the booking form uses for "no selection", per supported language
NOT_SPECIFIED_VALUES = frozenset(
    {
        "",
        "-",
        "na",
        "n/a",
        "keine angabe",
        "nicht angegeben",
        "not specified",
        "no preference",
        "non specificato",
        "nessuna preferenza",
    }
)

SELECTION_SEPARATOR = "|"

REQUEST_ID_PREFIX = "GR"
REQUEST_ID_MAX_LENGTH = 32  # OTA UniqueID hard limit
_TIMESTAMP_DIGITS = 10
_HOTEL_FRAGMENT_LENGTH = 8
_HOTEL_FRAGMENT_FALLBACK_LENGTH = 5
_RANDOM_SUFFIX_LENGTH = 5
_BASE36 = string.digits + string.ascii_lowercase


def parse_period(period: str) -> tuple[date, date]:
    """Split "YYYY-MM-DD - YYYY-MM-DD" into check-in and check-out dates.

    Raises:
        ValueError: If the period does not match the range format.
    """
    match = PERIOD_PATTERN.match(period.strip())
    if not match:
        raise ValueError("Invalid date format")
    return date.fromisoformat(match.group(1)), date.fromisoformat(match.group(2))


def extract_child_ages(payload: dict[str, Any]) -> list[int]:
    """Collect the filled child age slots in slot order.

    Empty slots are dropped; an age of 0 (infant) is kept.
    """
    ages: list[int] = []
    for slot in CHILD_AGE_SLOTS:
        value = payload.get(slot)
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        ages.append(int(value))
    return ages


def calling_code_for(language: str | None) -> str | None:
    """Map a language tag (``de``, ``de-AT``) to a calling code, if known."""
    if not language:
        return None
    primary = language.strip().lower().replace("_", "-").split("-")[0]
    return CALLING_CODES.get(primary)


def _has_international_prefix(raw: str, digits: str) -> bool:
    return raw.startswith("+") or digits.startswith("00")


def _starts_with_calling_code(digits: str) -> bool:
    return any(digits.startswith(code) for code in _KNOWN_CODES)


def format_phone_number(phone: str, language: str | None = None) -> str:
    """Normalize a phone number to international format.

    Strips formatting, drops one leading trunk zero and prefixes the calling
    code inferred from the guest language. The input is returned unmodified
    (only trimmed) when the language has no known calling code or when the
    number already carries a calling code.

    Examples:
        >>> format_phone_number("089 1234567", "de")
        '+49891234567'
        >>> format_phone_number("0891234567")
        '0891234567'
    """
    raw = phone.strip()
    code = calling_code_for(language)
    if code is None:
        return raw

    digits = re.sub(r"\D", "", raw)
    if not digits or _has_international_prefix(raw, digits):
        return raw

    # Typed in international form without "+" or "00"
    if _starts_with_calling_code(digits):
        return raw

    if digits.startswith("0"):
        digits = digits[1:]

    return f"+{code}{digits}"


def is_not_specified(value: str | None) -> bool:
    if value is None:
        return True
    return value.strip().lower() in NOT_SPECIFIED_VALUES


def parse_selection(value: str | None) -> Selection:
    """Parse a room or offer field of the form ``CODE|Name`` or ``Name``.

    Without a separator the entire value becomes the name. Placeholder values
    ("Keine Angabe", "Not specified", ...) yield an empty Selection.
    """
    if not isinstance(value, str) or is_not_specified(value):
        return Selection()

    raw = value.strip()
    if SELECTION_SEPARATOR not in raw:
        return Selection(raw=raw, code=None, name=raw)

    code, _, name = raw.partition(SELECTION_SEPARATOR)
    code = code.strip() or None
    name = name.strip() or None
    if name is None and code is None:
        return Selection()
    return Selection(raw=raw, code=code, name=name or code)


def _random_suffix(length: int = _RANDOM_SUFFIX_LENGTH) -> str:
    return "".join(secrets.choice(_BASE36) for _ in range(length))


def generate_request_id(
    hotel_code: str,
    *,
    now_ms: int | None = None,
    suffix: str | None = None,
) -> str:
    """Generate a request ID of at most 32 characters.

    Format: ``GR_<timestamp>_<hotel>_<random>`` where timestamp is the last 10
    digits of the epoch milliseconds, hotel the first 8 characters of the
    hotel code and random 5 base36 characters (28 characters in total).

    Args:
        hotel_code: Owning hotel code (any length).
        now_ms: Epoch milliseconds override (tests).
        suffix: Random suffix override (tests).
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    timestamp = str(now_ms)[-_TIMESTAMP_DIGITS:]
    suffix = suffix if suffix is not None else _random_suffix()

    request_id = (
        f"{REQUEST_ID_PREFIX}_{timestamp}_{hotel_code[:_HOTEL_FRAGMENT_LENGTH]}_{suffix}"
    )
    if len(request_id) <= REQUEST_ID_MAX_LENGTH:
        return request_id

    # Fallback: shorter hotel fragment, then a hard cut
    request_id = (
        f"{REQUEST_ID_PREFIX}_{timestamp}_{hotel_code[:_HOTEL_FRAGMENT_FALLBACK_LENGTH]}_{suffix}"
    )
    return request_id[:REQUEST_ID_MAX_LENGTH]
