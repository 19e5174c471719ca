"""Minute arithmetic for one business day.

Thresholds are civil times in UTC+7 anchored on the record's day key, so a
checkout after midnight still measures against the check-in day.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..common.datetime_utils import business_time, minutes_between
from ..core.constants import (
    LATE_THRESHOLD,
    LUNCH_DEDUCTION_MINUTES,
    LUNCH_END,
    LUNCH_START,
    OT_START,
    STANDARD_END,
)


def compute_late_minutes(key: str, check_in_at: datetime) -> int:
    """ON_TIME up to and including 08:45, late minutes after that."""
    threshold = business_time(key, *LATE_THRESHOLD)
    if check_in_at <= threshold:
        return 0
    return minutes_between(threshold, check_in_at)


def compute_work_minutes(key: str, check_in_at: datetime, check_out_at: datetime, ot_approved: bool = False) -> int:
    """Worked minutes minus lunch; capped at 17:30 unless overtime is approved."""
    if check_out_at < check_in_at:
        return 0

    end = check_out_at
    if not ot_approved:
        end = min(check_out_at, business_time(key, *STANDARD_END))
    if end <= check_in_at:
        return 0

    total = minutes_between(check_in_at, end)
    spans_lunch = check_in_at < business_time(key, *LUNCH_START) and end > business_time(key, *LUNCH_END)
    if spans_lunch:
        total -= LUNCH_DEDUCTION_MINUTES
    return max(0, total)


def compute_potential_ot_minutes(key: str, check_out_at: Optional[datetime]) -> int:
    """Minutes strictly after 17:31, ignoring approval. Preview only."""
    if not isinstance(check_out_at, datetime):
        return 0
    threshold = business_time(key, *OT_START)
    if check_out_at <= threshold:
        return 0
    return minutes_between(threshold, check_out_at)


def compute_ot_minutes(key: str, check_out_at: Optional[datetime], ot_approved: bool = False) -> int:
    if not ot_approved:
        return 0
    return compute_potential_ot_minutes(key, check_out_at)


def is_early_leave(key: str, check_out_at: datetime) -> bool:
    return check_out_at < business_time(key, *STANDARD_END)


def is_in_ot_period(key: str, instant: datetime) -> bool:
    return instant > business_time(key, *OT_START)


def estimated_ot_duration(key: str, estimated_end: datetime) -> int:
    return max(0, minutes_between(business_time(key, *OT_START), estimated_end))
