"""
Primitive parsers for loosely typed request values.

None of these raise: a malformed value resolves to a safe default or to
None ("absent"), so one bad filter never aborts a whole list request.
"""

import math
from datetime import date, datetime, time
from typing import Any, Optional

from rbac_admin.utils.timezone import to_utc

TRUE_STRINGS = frozenset({"true"})
FALSE_STRINGS = frozenset({"false"})
LOOSE_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
LOOSE_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})

START_OF_DAY = time(0, 0, 0, 0)
END_OF_DAY = time(23, 59, 59, 999999)


def _to_number(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return math.nan
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def clamp_int(value: Any, min_value: int, max_value: float) -> int:
    """
    Coerce value to an integer inside [min_value, max_value].

    Non-numeric or non-finite input returns min_value. Fractions are
    truncated toward zero before clamping.

        clamp_int("25", 1, 1000)   -> 25
        clamp_int("abc", 1, 1000)  -> 1
        clamp_int(5000, 1, 1000)   -> 1000
        clamp_int("7.9", 1, 1000)  -> 7
    """
    if isinstance(value, int) and not isinstance(value, bool):
        # Exact, so ints too large for a float still clamp to a bound
        return int(min(max(value, min_value), max_value))
    number = _to_number(value)
    if not math.isfinite(number):
        return min_value
    clamped = min(max(math.trunc(number), min_value), max_value)
    return int(clamped)


def parse_bool(value: Any, loose: bool = False) -> Optional[bool]:
    """
    Parse a boolean from a bool or its textual form.

    Strict mode accepts True/False and "true"/"false". Loose mode also
    accepts "1"/"0", "yes"/"no" and "on"/"off". Matching is
    case-insensitive. Anything else returns None, meaning "do not filter".
    """
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip().lower()
    truthy = LOOSE_TRUE_STRINGS if loose else TRUE_STRINGS
    falsy = LOOSE_FALSE_STRINGS if loose else FALSE_STRINGS
    if text in truthy:
        return True
    if text in falsy:
        return False
    return None


def parse_date_only(value: Any) -> Optional[date]:
    """Parse "YYYY-MM-DD" or an ISO datetime string into a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def day_range(
    start: Any,
    end: Any,
    tz_name: str = "UTC",
) -> tuple[Optional[datetime], Optional[datetime]]:
    """
    Build inclusive day bounds for a date range filter.

    The lower bound is the start of its day, the upper bound the last
    microsecond of its day, both in tz_name and returned in UTC. A one-day
    range {from: d, to: d} therefore covers the whole of d.
    """
    start_date = parse_date_only(start)
    end_date = parse_date_only(end)

    lower = None
    if start_date is not None:
        lower = to_utc(datetime.combine(start_date, START_OF_DAY), tz_name)

    upper = None
    if end_date is not None:
        upper = to_utc(datetime.combine(end_date, END_OF_DAY), tz_name)

    return lower, upper


def as_text(value: Any) -> Optional[str]:
    """Trimmed non-empty string, or None."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text or None
