"""Calendar helpers pinned to the business timezone (fixed UTC+7).

Every "which day is this" decision in the package goes through :func:`day_key`,
so results never depend on the host's local timezone.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from ..core.constants import BUSINESS_UTC_OFFSET_HOURS
from ..core.exceptions import ValidationError

BUSINESS_TZ = timezone(timedelta(hours=BUSINESS_UTC_OFFSET_HOURS))

_DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_MONTH_RE = re.compile(r"^\d{4}-\d{2}$")
_TZ_SUFFIX_RE = re.compile(r"(Z|[+-]\d{2}:?\d{2})$")


def now_utc() -> datetime:
    """Current instant (aware, UTC).

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc)


def coerce_instant(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        # Naive datetimes are stored instants (UTC) coming back from drivers.
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and "T" in value:
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)
    return None


def day_key(instant: Any) -> str:
    """Return the ``YYYY-MM-DD`` business day of an instant, or ``""`` when unparseable."""
    if isinstance(instant, str) and _DAY_KEY_RE.match(instant.strip()):
        key = instant.strip()
        return key if to_date(key) is not None else ""
    dt = coerce_instant(instant)
    if dt is None:
        return ""
    return dt.astimezone(BUSINESS_TZ).strftime("%Y-%m-%d")


def today_key(now: Optional[datetime] = None) -> str:
    return day_key(now or now_utc())


def is_today(key: str, now: Optional[datetime] = None) -> bool:
    return bool(key) and key == today_key(now)


def to_date(key: str) -> Optional[date]:
    try:
        return datetime.strptime(key, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        return None


def is_weekend(key: str) -> bool:
    d = to_date(key)
    if d is None:
        return False
    return d.weekday() >= 5


def business_time(key: str, hour: int, minute: int) -> datetime:
    """The instant of ``hour:minute`` civil time on day ``key`` (UTC+7)."""
    d = datetime.strptime(key, "%Y-%m-%d")
    return datetime(d.year, d.month, d.day, hour, minute, tzinfo=BUSINESS_TZ)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end`` (floored)."""
    return int((end - start).total_seconds() // 60)


def parse_day_key(value: Any, field_name: str = "date") -> str:
    """Validate a ``YYYY-MM-DD`` string that is a real calendar date."""
    if not isinstance(value, str) or not _DAY_KEY_RE.match(value.strip()):
        raise ValidationError(f"Invalid {field_name} format. Expected YYYY-MM-DD")
    key = value.strip()
    if to_date(key) is None:
        raise ValidationError(f"Invalid {field_name} format. Expected YYYY-MM-DD")
    return key


def parse_instant(value: Any, field_name: str) -> Optional[datetime]:
    """Parse an ISO-8601 instant that carries its timezone.

    Returns ``None`` for empty values. Strings without a timezone suffix are
    rejected because they are ambiguous.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValidationError(f"{field_name} must include timezone (e.g., +07:00 or Z)")
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} is invalid")

    raw = value.strip()
    if not _TZ_SUFFIX_RE.search(raw):
        raise ValidationError(f"{field_name} must include timezone (e.g., +07:00 or Z)")
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    elif re.search(r"[+-]\d{4}$", raw):
        raw = f"{raw[:-2]}:{raw[-2:]}"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"{field_name} is invalid")
    if parsed.tzinfo is None:
        raise ValidationError(f"{field_name} must include timezone (e.g., +07:00 or Z)")
    return parsed


def date_range(start_key: str, end_key: str) -> list[str]:
    """All day keys from ``start_key`` to ``end_key`` inclusive."""
    start = to_date(start_key)
    end = to_date(end_key)
    if start is None or end is None or end < start:
        return []
    days = (end - start).days
    return [(start + timedelta(days=i)).strftime("%Y-%m-%d") for i in range(days + 1)]


def count_workdays(start_key: str, end_key: str, holidays: Iterable[str] = ()) -> int:
    holiday_set = set(holidays)
    return sum(1 for k in date_range(start_key, end_key) if not is_weekend(k) and k not in holiday_set)


def validate_month(month: Any) -> str:
    if not month or not isinstance(month, str):
        raise ValidationError("Month is required")
    trimmed = month.strip()
    if not _MONTH_RE.match(trimmed):
        raise ValidationError("Month must be in YYYY-MM format (e.g., 2026-01)")
    if not 1 <= int(trimmed[5:7]) <= 12:
        raise ValidationError("Month must be between 01 and 12")
    return trimmed


def month_bounds(month: str) -> tuple[str, str]:
    """``[first day, first day of next month)`` for a ``YYYY-MM`` month."""
    year, month_num = (int(p) for p in validate_month(month).split("-"))
    next_year = year + 1 if month_num == 12 else year
    next_month = 1 if month_num == 12 else month_num + 1
    return f"{year:04d}-{month_num:02d}-01", f"{next_year:04d}-{next_month:02d}-01"


def format_business(instant: datetime) -> str:
    return instant.astimezone(BUSINESS_TZ).strftime("%d/%m/%Y %H:%M:%S")


def add_days(key: str, days: int) -> str:
    d = to_date(key)
    if d is None:
        raise ValidationError("Invalid date format. Expected YYYY-MM-DD")
    return (d + timedelta(days=days)).strftime("%Y-%m-%d")
