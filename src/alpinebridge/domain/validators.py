"""Validation rules for booking form submissions.

Submissions arrive already normalized to English keys by the marketing site
adapter. Every rule is checked; violations are collected, not short-circuited.
"""

import re
from datetime import date
from typing import Any

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# "YYYY-MM-DD - YYYY-MM-DD", spaces around the separator optional
PERIOD_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})\s*-\s*(\d{4}-\d{2}-\d{2})$")

MIN_PHONE_DIGITS = 10

CHILD_AGE_SLOTS = ("childAge1", "childAge2", "childAge3", "childAge4", "childAge5")

ALLOWED_GENDERS = ("Male", "Female")


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _is_int(value: Any) -> bool:
    # bool is an int subclass; JSON true must not count as 1 adult
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        return value.is_integer()
    return isinstance(value, int)


def validate_email(email: str) -> bool:
    return EMAIL_PATTERN.match(email.strip()) is not None


def validate_phone(phone: str) -> bool:
    """Phone must contain at least 10 digits once formatting is stripped."""
    digits = re.sub(r"\D", "", phone)
    return len(digits) >= MIN_PHONE_DIGITS


def validate_period(period: str) -> bool:
    """Check the stay period shape and that both dates exist on the calendar."""
    match = PERIOD_PATTERN.match(period.strip())
    if not match:
        return False
    try:
        date.fromisoformat(match.group(1))
        date.fromisoformat(match.group(2))
    except ValueError:
        return False
    return True


def submission_gender(payload: dict[str, Any]) -> Any:
    """Return the salutation field, accepting ``gender`` as an alias."""
    value = payload.get("salutation")
    if _is_blank(value):
        value = payload.get("gender")
    return value


def validate_submission(payload: dict[str, Any]) -> list[str]:
    """Validate a normalized submission.

    Args:
        payload: English-keyed submission dict.

    Returns:
        List of violated rules, empty when the submission is valid.
    """
    errors: list[str] = []

    email = payload.get("email")
    if _is_blank(email):
        errors.append("Email is required")
    elif not isinstance(email, str) or not validate_email(email):
        errors.append("Invalid email format")

    # Phone is optional - validate only if provided
    phone = payload.get("phone")
    if not _is_blank(phone):
        if not isinstance(phone, str) or not validate_phone(phone):
            errors.append("Invalid phone number format")

    period = payload.get("period")
    if _is_blank(period):
        errors.append("Period is required")
    elif not isinstance(period, str) or not validate_period(period):
        errors.append("Invalid date range format")

    adults = payload.get("adults")
    if not _is_int(adults) or adults < 1:
        errors.append("At least 1 adult is required")

    children = payload.get("children")
    if children is not None and (not _is_int(children) or children < 0):
        errors.append("Children count must be a non-negative number")

    for index, slot in enumerate(CHILD_AGE_SLOTS, start=1):
        age = payload.get(slot)
        if _is_blank(age):
            continue
        if not _is_int(age) or age < 0:
            errors.append(f"Invalid age for child {index}")

    # Salutation is optional; "not specified" arrives as an empty string
    gender = submission_gender(payload)
    if not _is_blank(gender) and gender not in ALLOWED_GENDERS:
        errors.append("Invalid salutation value")

    language = payload.get("language")
    if language is not None and not isinstance(language, str):
        errors.append("Invalid language value")

    return errors
