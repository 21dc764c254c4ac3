"""
Date helpers shared by the RDAP and WHOIS parsers.

Registration dates are kept as the date portion of whatever the upstream
sent; day counts are derived from them on every parse and never stored.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from .models import UNKNOWN

# A "T" or space between a digit and a digit separates date from time
_TIME_SEPARATOR = re.compile(r"(?<=\d)[T ](?=\d)")

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%d-%b-%Y",
    "%Y.%m.%d",
    "%Y/%m/%d",
    "%d.%m.%Y",
)

SECONDS_PER_DAY = 86400


def date_portion(value: Optional[str]) -> str:
    """Return the text before the time separator, or UNKNOWN for empty input."""
    if not value:
        return UNKNOWN
    text = str(value).strip()
    if not text:
        return UNKNOWN
    return _TIME_SEPARATOR.split(text, maxsplit=1)[0].strip() or UNKNOWN


def parse_date(value: str) -> Optional[datetime]:
    """Parse a date portion into a UTC midnight datetime, None if unrecognized."""
    if not value or value == UNKNOWN:
        return None
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    return None


def days_since(value: str, now: Optional[datetime] = None) -> int:
    """Whole days from ``value`` to now, 0 when the date is unknown."""
    parsed = parse_date(value)
    if parsed is None:
        return 0
    now = now or datetime.now(timezone.utc)
    return int((now - parsed).total_seconds() // SECONDS_PER_DAY)


def days_until(value: str, now: Optional[datetime] = None) -> int:
    """Whole days from now to ``value`` (negative once passed), 0 when unknown."""
    parsed = parse_date(value)
    if parsed is None:
        return 0
    now = now or datetime.now(timezone.utc)
    return int((parsed - now).total_seconds() // SECONDS_PER_DAY)
