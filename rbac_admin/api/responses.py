"""
Response classes.

LocalizedJSONResponse is the application's default response class: after a
route's return value has been serialized, every UTC timestamp in the body is
rewritten in the configured display timezone.

    "2025-01-01T18:30:00Z"  ->  "2025-01-01T12:30:00-06:00"   (America/Guatemala)
"""

from datetime import datetime
from typing import Any

from fastapi.responses import JSONResponse

from rbac_admin.core.config import settings
from rbac_admin.utils.timezone import from_iso8601, is_iso_utc, to_iso8601


def localize_dates(content: Any, tz_name: str) -> Any:
    """Rewrite datetimes and ISO UTC strings found anywhere in content."""
    if isinstance(content, datetime):
        return to_iso8601(content, tz_name)
    if isinstance(content, str):
        return to_iso8601(from_iso8601(content), tz_name) if is_iso_utc(content) else content
    if isinstance(content, dict):
        return {key: localize_dates(value, tz_name) for key, value in content.items()}
    if isinstance(content, (list, tuple)):
        return [localize_dates(item, tz_name) for item in content]
    return content


class LocalizedJSONResponse(JSONResponse):
    """JSON response with timestamps in the display timezone."""

    def render(self, content: Any) -> bytes:
        return super().render(localize_dates(content, settings.display_timezone))
