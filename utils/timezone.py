"""UTC-everywhere time handling, plus the local calendar used for billing."""

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

# Billing months and contract dates are interpreted in the property's local
# calendar. Everything else stays in UTC.
BILLING_TZ = "Asia/Bangkok"


def now_utc() -> datetime:
    """
    Current time in UTC.

    Use this instead of datetime.now() everywhere.
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime to UTC. Datetime must be timezone-aware."
        )
    return dt.astimezone(timezone.utc)


def to_local(dt: datetime, tz_name: str = BILLING_TZ) -> datetime:
    """
    Convert UTC datetime to local timezone for display and calendar math.

    Args:
        dt: UTC datetime
        tz_name: IANA timezone name (e.g., "Asia/Bangkok")

    Raises:
        ValueError: If datetime is naive or timezone name is invalid
    """
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot convert naive datetime. Datetime must be timezone-aware."
        )

    try:
        local_tz = ZoneInfo(tz_name)
    except KeyError:
        raise ValueError(f"Unknown timezone: {tz_name}")

    return dt.astimezone(local_tz)


def today_local(tz_name: str = BILLING_TZ) -> date:
    """Calendar date 'today' in the billing timezone."""
    return to_local(now_utc(), tz_name).date()


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 datetime string to UTC datetime.

    Raises ValueError if string has no timezone info.
    """
    dt = datetime.fromisoformat(iso_string)
    if dt.tzinfo is None:
        raise ValueError(
            "Cannot parse naive datetime string. "
            "Include timezone offset (e.g., 'Z' or '+00:00')."
        )
    return to_utc(dt)


def timestamp_ms(dt: datetime | None = None) -> int:
    """Milliseconds since the epoch, used to name stored objects."""
    return int((dt or now_utc()).timestamp() * 1000)


def format_thai_date(value: date | datetime, tz_name: str = BILLING_TZ) -> str:
    """
    Thai display date in the Buddhist era, e.g. 2025-01-31 -> '31/1/2568'.

    Datetimes are converted to the local calendar first.
    """
    if isinstance(value, datetime):
        value = to_local(value, tz_name).date()
    return f"{value.day}/{value.month}/{value.year + 543}"
