"""Reference-timezone helpers.

Every date comparison in the engine happens on calendar dates taken in one
configured reference timezone (``Settings.reference_timezone``).
"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from followup.config.settings import get_settings


def get_reference_timezone(name: str | None = None) -> ZoneInfo:
    """Return the reference timezone (configured one unless ``name`` is given)."""
    timezone_name = name or get_settings().reference_timezone
    try:
        return ZoneInfo(timezone_name)
    except ZoneInfoNotFoundError as exc:
        raise ValueError(f"Invalid timezone: {timezone_name}") from exc


def to_reference(value: datetime) -> datetime:
    """Convert a datetime to the reference timezone.

    Naive datetimes are taken to already be in the reference timezone.
    """
    tz = get_reference_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def parse_datetime(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp and normalize it to the reference timezone.

    Raises:
        ValueError: If the string is not an ISO-8601 timestamp.
    """
    if isinstance(value, datetime):
        return to_reference(value)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_reference(datetime.fromisoformat(text))


def to_reference_date(value: str | date | datetime) -> date:
    """Take the calendar date of a value in the reference timezone.

    Plain ``YYYY-MM-DD`` strings and ``date`` objects carry no time and are
    returned as-is; timestamps are normalized first.

    Raises:
        ValueError: If the string is neither an ISO date nor an ISO timestamp.
    """
    if isinstance(value, datetime):
        return to_reference(value).date()
    if isinstance(value, date):
        return value
    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return parse_datetime(text).date()


def reference_now() -> datetime:
    """Return the current time in the reference timezone."""
    return datetime.now(get_reference_timezone())


def reference_today() -> date:
    """Return today's date in the reference timezone."""
    return reference_now().date()


def add_days(day: date, days: int) -> date:
    """Shift a calendar date by whole days."""
    return day + timedelta(days=days)


def format_display_date(day: date) -> str:
    """Format a date the way the bureau displays it (DD-MM-YYYY)."""
    return day.strftime("%d-%m-%Y")
