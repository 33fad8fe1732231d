"""Date parsing and normalization utilities."""

import re
from datetime import date, datetime

# Journal records carry ISO dates, sometimes with a midnight time component
# ("2024-12-20T00:00:00.000") when written by older exporters.
DATE_PATTERNS = [
    (r"^(\d{4})-(\d{1,2})-(\d{1,2})$", "%Y-%m-%d"),
    # Australian bank statements (DD/MM/YYYY)
    (r"^(\d{1,2})/(\d{1,2})/(\d{4})$", "%d/%m/%Y"),
    (r"^(\d{8})$", "%Y%m%d"),
]

COMPILED_PATTERNS = [(re.compile(pattern), fmt) for pattern, fmt in DATE_PATTERNS]


def parse_date(raw_date: str | date) -> date:
    """Parse a raw date value into a calendar date.

    Handles:
    - date / datetime objects (time component dropped)
    - ISO: 2024-12-20, 2024-12-20T00:00:00.000
    - Australian: 20/12/2024
    - Compact: 20241220

    Args:
        raw_date: The raw date to parse.

    Returns:
        Parsed date object.

    Raises:
        ValueError: If the date cannot be parsed.
    """
    if isinstance(raw_date, datetime):
        return raw_date.date()
    if isinstance(raw_date, date):
        return raw_date

    if not raw_date:
        raise ValueError("Empty date string")

    date_str = str(raw_date).strip()
    if not date_str:
        raise ValueError("Empty date string after stripping whitespace")

    for pattern, fmt in COMPILED_PATTERNS:
        if pattern.match(date_str):
            try:
                return datetime.strptime(date_str, fmt).date()
            except ValueError:
                continue

    # ISO datetime strings
    try:
        return datetime.fromisoformat(date_str).date()
    except ValueError:
        pass

    raise ValueError(f"Cannot parse date: '{raw_date}'")


def date_to_iso(d: date) -> str:
    """Convert a date to ISO 8601 format (YYYY-MM-DD).

    Args:
        d: Date to convert.

    Returns:
        ISO format date string.
    """
    return d.isoformat()
