"""Text parsing helpers for rendered counts and dates."""

import re
from datetime import datetime
from typing import Optional

_COUNT_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*([km])?")
_MULTIPLIERS = {"k": 1_000, "m": 1_000_000}


def parse_count(text: Optional[str]) -> int:
    """
    Parse a rendered count such as "12.4K", "3M" or "12,345".

    Suffixes are case-insensitive; thousands separators are stripped.
    Anything unparsable yields 0.
    """
    if not text:
        return 0

    cleaned = text.strip().lower().replace(",", "")
    match = _COUNT_RE.match(cleaned)
    if not match:
        return 0

    number, suffix = match.groups()
    if suffix:
        return int(round(float(number) * _MULTIPLIERS[suffix]))
    return int(float(number))


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse the ``datetime`` attribute of a <time> element."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_joined_date(text: Optional[str]) -> Optional[datetime]:
    """'Joined March 2015' -> datetime(2015, 3, 1)."""
    if not text:
        return None
    cleaned = text.strip()
    if cleaned.lower().startswith("joined "):
        cleaned = cleaned[len("joined "):]
    try:
        return datetime.strptime(cleaned.strip(), "%B %Y")
    except ValueError:
        return None
