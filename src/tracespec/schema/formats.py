"""
String format detection.

Recognizes the OpenAPI string formats worth documenting from observed
values: date-time, date, email and uri.
"""

import re
from datetime import date, datetime
from typing import Iterable, Optional
from urllib.parse import urlparse

DATE_TIME = "date-time"
DATE = "date"
EMAIL = "email"
URI = "uri"

_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_DATE_TIME_RE = re.compile(
    r'^(\d{4}-\d{2}-\d{2})[T ]'
    r'(\d{2}:\d{2}(?::\d{2}(?:\.\d{1,9})?)?)'
    r'(Z|z|[+-]\d{2}:?\d{2})?$'
)
_EMAIL_RE = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
_URI_SCHEME_RE = re.compile(r'^[A-Za-z][A-Za-z0-9+.-]*$')


def is_date_time(value: str) -> bool:
    """
    True for timestamps carrying a time component.

    Accepts ISO 8601 / RFC 3339 shapes with 'T' or a space separator,
    optional seconds, fractions and UTC offset:
        2024-01-15T10:00:00Z, 2024-01-15 10:00, 2024-01-15T10:00:00.123+02:00
    """
    match = _DATE_TIME_RE.fullmatch(value)
    if not match:
        return False

    day, clock, _ = match.groups()
    # Fractions and offsets are checked by the pattern; strptime checks the calendar and clock
    clock = clock.split('.')[0]
    if clock.count(':') == 1:
        clock += ":00"
    try:
        datetime.strptime(f"{day} {clock}", "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return False
    return True


def is_date(value: str) -> bool:
    """True for a bare YYYY-MM-DD calendar date."""
    if not _DATE_RE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_email(value: str) -> bool:
    return bool(_EMAIL_RE.fullmatch(value))


def is_uri(value: str) -> bool:
    """True for absolute URIs with a scheme and an authority (https://..., ftp://...)."""
    if any(ch.isspace() for ch in value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return bool(parsed.scheme and _URI_SCHEME_RE.fullmatch(parsed.scheme) and parsed.netloc)


# Checked in order; the first format every value satisfies wins
FORMAT_CHECKS = [
    (DATE_TIME, is_date_time),
    (DATE, is_date),
    (EMAIL, is_email),
    (URI, is_uri),
]


def detect_format(values: Iterable[str]) -> Optional[str]:
    """
    Detect the string format shared by all values.

    Args:
        values: Non-empty string values

    Returns:
        Format name, or None when values are empty or share no format
    """
    values = list(values)
    if not values:
        return None

    for name, check in FORMAT_CHECKS:
        if all(check(value) for value in values):
            return name
    return None
