import logging
from datetime import date, datetime, timezone
from typing import Any, Optional

logger = logging.getLogger("services.common")


def parse_dt(maybe: Any) -> Optional[datetime]:
    """Parse various datetime formats and return timezone-aware datetime in UTC."""
    if not maybe:
        return None

    if isinstance(maybe, datetime):
        # If already timezone-aware, return as-is; otherwise make it UTC
        if maybe.tzinfo is not None:
            return maybe
        return maybe.replace(tzinfo=timezone.utc)

    if isinstance(maybe, date):
        return datetime(maybe.year, maybe.month, maybe.day, tzinfo=timezone.utc)

    if isinstance(maybe, (int, float)):
        try:
            # Browsers send epoch milliseconds, Python sends seconds
            seconds = maybe / 1000.0 if maybe > 1e11 else maybe
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except Exception:
            return None

    if isinstance(maybe, str):
        text = maybe.strip()
        # ISO-8601 as produced by Date.prototype.toISOString()
        try:
            dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
        for fmt in ("%Y-%m-%d", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%S.%fZ"):
            try:
                dt = datetime.strptime(text, fmt)
                # Make timezone-aware (assume UTC if no timezone specified)
                return dt.replace(tzinfo=timezone.utc)
            except Exception:
                continue
        try:
            import dateparser  # type: ignore
            dt = dateparser.parse(
                text,
                settings={
                    'TIMEZONE': 'UTC',  # Parse all dates as UTC
                    'RETURN_AS_TIMEZONE_AWARE': True,
                    'PREFER_DATES_FROM': 'past'
                }
            )
            if dt:
                # Convert to UTC if not already
                if dt.tzinfo != timezone.utc:
                    dt = dt.astimezone(timezone.utc)
                return dt
        except Exception as e:
            logger.debug(f"Dateparser failed for '{maybe}': {e}")
            return None

    return None
