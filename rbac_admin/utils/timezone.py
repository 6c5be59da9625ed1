"""
Timezone Utilities.

Golden Rules:
1. Database: Always store UTC
2. Filters: Day boundaries ("createdAt from 2025-01-01") are taken in the
   configured date_range_timezone and converted to UTC before querying
3. API: Datetimes are rendered in the configured display_timezone with an
   explicit offset, e.g. "2024-01-15T08:30:00-06:00"
"""

import re
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# UTC constant
UTC = timezone.utc

# "2024-01-15T14:30:00Z" / "2024-01-15T14:30:00.123Z"
ISO_UTC_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:\.\d{1,6})?Z$")


# ============================================================
# CORE FUNCTIONS
# ============================================================

def utc_now() -> datetime:
    """
    Get current time in UTC (timezone-aware).

    Always use this instead of datetime.utcnow() which returns
    naive datetime.

    Usage:
        from rbac_admin.utils.timezone import utc_now
        record.created_at = utc_now()
    """
    return datetime.now(UTC)


def to_utc(dt: datetime, source_tz: Optional[str] = None) -> datetime:
    """
    Convert datetime to UTC.

    Args:
        dt: Datetime to convert
        source_tz: Source timezone if dt is naive (UTC when omitted)

    Usage:
        # Start of a calendar day in Guatemala
        utc_time = to_utc(datetime(2025, 1, 1), "America/Guatemala")
    """
    if dt.tzinfo is None:
        if source_tz:
            dt = dt.replace(tzinfo=ZoneInfo(source_tz))
        else:
            dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def from_utc(dt: datetime, target_tz: str) -> datetime:
    """
    Convert UTC to target timezone.

    Naive datetimes (as read back from SQLite) are taken to be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(ZoneInfo(target_tz))


# ============================================================
# ISO 8601 (API FORMAT)
# ============================================================

def to_iso8601(dt: datetime, target_tz: str = "UTC") -> str:
    """
    Format as ISO 8601 with the offset of target_tz.

    Usage:
        to_iso8601(record.created_at)                       # "2024-01-15T14:30:00+00:00"
        to_iso8601(record.created_at, "America/Guatemala")  # "2024-01-15T08:30:00-06:00"
    """
    return from_utc(dt, target_tz).isoformat(timespec="seconds")


def from_iso8601(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to UTC datetime.

    Handles:
    - "2024-01-15T14:30:00Z"
    - "2024-01-15T09:30:00-05:00"
    """
    if iso_string.endswith("Z"):
        iso_string = iso_string[:-1] + "+00:00"
    dt = datetime.fromisoformat(iso_string)
    return to_utc(dt)


def is_iso_utc(value: str) -> bool:
    """True for strings shaped like an ISO 8601 UTC timestamp ending in Z."""
    return bool(ISO_UTC_RE.match(value))


# ============================================================
# VALIDATION
# ============================================================

def is_valid_timezone(tz_name: str) -> bool:
    """Check if timezone name is valid IANA timezone."""
    try:
        ZoneInfo(tz_name)
        return True
    except (ZoneInfoNotFoundError, ValueError):
        return False
