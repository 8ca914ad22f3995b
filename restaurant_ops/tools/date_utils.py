"""Date and time parsing helpers for natural-language input."""

import re
from datetime import date, timedelta

# Day-of-week name → weekday int (Monday = 0)
_DAY_NAMES: dict[str, int] = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}

# Month name/abbreviation → month int
_MONTH_NAMES: dict[str, int] = {
    "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
    "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6,
    "jul": 7, "july": 7, "aug": 8, "august": 8, "sep": 9, "september": 9,
    "oct": 10, "october": 10, "nov": 11, "november": 11, "dec": 12, "december": 12,
}

_TIME_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?$")


def _upcoming(today: date, month: int, day: int) -> date:
    try:
        result = date(today.year, month, day)
        if result < today:
            result = date(today.year + 1, month, day)
    except ValueError as exc:
        raise ValueError(f"Invalid date: {month}/{day}") from exc
    return result


def parse_date(text: str, today: date | None = None) -> str:
    """Parse a natural-language date string into YYYY-MM-DD format.

    Supported formats:
    - "today", "tomorrow"
    - Day name: "Saturday", "this Saturday" (→ next occurrence)
    - "next Saturday" (→ the Saturday *after* this one)
    - "Nov 22", "November 22" (current or next year)
    - "11/22" (month/day)
    - ISO passthrough: "2025-11-22"

    Args:
        text: The date string to parse.
        today: Override for today's date (for testing).

    Returns:
        Date string in YYYY-MM-DD format.

    Raises:
        ValueError: If the string cannot be parsed.
    """
    today = today or date.today()
    cleaned = text.strip().lower()

    if re.match(r"\d{4}-\d{2}-\d{2}$", cleaned):
        return cleaned

    if cleaned == "today":
        return today.isoformat()
    if cleaned == "tomorrow":
        return (today + timedelta(days=1)).isoformat()

    next_match = re.match(r"next\s+(\w+)$", cleaned)
    if next_match and next_match.group(1) in _DAY_NAMES:
        days_ahead = (_DAY_NAMES[next_match.group(1)] - today.weekday()) % 7 or 7
        return (today + timedelta(days=days_ahead + 7)).isoformat()

    this_match = re.match(r"(?:this\s+)?(\w+)$", cleaned)
    if this_match and this_match.group(1) in _DAY_NAMES:
        days_ahead = (_DAY_NAMES[this_match.group(1)] - today.weekday()) % 7 or 7
        return (today + timedelta(days=days_ahead)).isoformat()

    month_day = re.match(r"([a-z]+)\s+(\d{1,2})$", cleaned)
    if month_day and month_day.group(1) in _MONTH_NAMES:
        month = _MONTH_NAMES[month_day.group(1)]
        return _upcoming(today, month, int(month_day.group(2))).isoformat()

    slash_date = re.match(r"(\d{1,2})/(\d{1,2})$", cleaned)
    if slash_date:
        month, day = int(slash_date.group(1)), int(slash_date.group(2))
        return _upcoming(today, month, day).isoformat()

    raise ValueError(f"Cannot parse date: '{text}'")


def parse_time(text: str) -> str:
    """Normalise "19:00", "7 PM" or "7:30pm" to 24-hour HH:MM.

    Raises:
        ValueError: If the string is not a recognisable time of day.
    """
    match = _TIME_RE.match(text.strip().lower())
    if not match:
        raise ValueError(f"Cannot parse time: '{text}'")

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    suffix = match.group(3)

    if suffix:
        if not 1 <= hour <= 12:
            raise ValueError(f"Cannot parse time: '{text}'")
        if suffix == "pm" and hour != 12:
            hour += 12
        elif suffix == "am" and hour == 12:
            hour = 0
    if hour > 23 or minute > 59:
        raise ValueError(f"Cannot parse time: '{text}'")
    return f"{hour:02d}:{minute:02d}"


def format_time(time_24: str) -> str:
    """Convert a 24-hour time string to 12-hour display format."""
    try:
        hour_str, minute = time_24.split(":")
        hour = int(hour_str)
    except ValueError:
        return time_24
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12}:{minute} {suffix}"
