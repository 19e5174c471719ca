"""Pure read-time metrics for attendance records.

Nothing here touches storage. Records are loosely typed when they come from
legacy rows, so :func:`compute_attendance` degrades to ``UNKNOWN`` instead of
raising.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from ..common.datetime_utils import coerce_instant, day_key, is_weekend, today_key
from ..core.enums import AttendanceStatus
from .factory import DayStrategyFactory
from .model import UNKNOWN_RESULT, AttendanceRecord, ComputedAttendance

logger = logging.getLogger(__name__)

_factory = DayStrategyFactory()

_FIELD_ALIASES = {
    "work_date": ("work_date", "date"),
    "check_in_at": ("check_in_at", "checkInAt"),
    "check_out_at": ("check_out_at", "checkOutAt"),
    "ot_approved": ("ot_approved", "otApproved"),
}


def _field(record: Any, name: str) -> Any:
    for alias in _FIELD_ALIASES[name]:
        if isinstance(record, dict):
            if alias in record:
                return record[alias]
        elif hasattr(record, alias):
            return getattr(record, alias)
    return None


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1"}
    return False


def _instant(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    return coerce_instant(value)


def compute_attendance(
    record: AttendanceRecord | dict | None,
    holiday_dates: Optional[Iterable[str]] = None,
    *,
    today: Optional[str] = None,
) -> ComputedAttendance:
    """Derive status and minute counters for one record.

    ``otApproved`` is treated as true on weekends and holidays regardless of
    what is stored. Missing or malformed data yields ``UNKNOWN`` with zero
    counters.
    """
    if record is None:
        return UNKNOWN_RESULT

    key = day_key(_field(record, "work_date"))
    if not key:
        return UNKNOWN_RESULT

    raw_in = _field(record, "check_in_at")
    raw_out = _field(record, "check_out_at")
    check_in_at = _instant(raw_in)
    check_out_at = _instant(raw_out)
    if (raw_in not in (None, "") and check_in_at is None) or (raw_out not in (None, "") and check_out_at is None):
        logger.warning("Unparseable attendance timestamps", extra={"date": key})
        return UNKNOWN_RESULT

    holidays = frozenset(holiday_dates or ())
    strategy = _factory.for_day(key, holidays)
    try:
        return strategy.compute(
            key=key,
            check_in_at=check_in_at,
            check_out_at=check_out_at,
            ot_approved=_flag(_field(record, "ot_approved")),
            today=today or today_key(),
        )
    except (TypeError, ValueError):
        logger.warning("Attendance metrics could not be computed", extra={"date": key}, exc_info=True)
        return UNKNOWN_RESULT


def compute_absence(
    key: str,
    *,
    holiday_dates: Iterable[str] = (),
    leave_dates: Iterable[str] = (),
    today: Optional[str] = None,
) -> Optional[AttendanceStatus]:
    """Status for a day without any record, or ``None`` for today and the future."""
    if key in set(leave_dates):
        return AttendanceStatus.LEAVE
    if is_weekend(key) or key in set(holiday_dates):
        return AttendanceStatus.WEEKEND_OR_HOLIDAY
    if key < (today or today_key()):
        return AttendanceStatus.ABSENT
    return None
