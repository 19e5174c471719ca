from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ..metrics import compute_late_minutes, compute_ot_minutes, compute_work_minutes, is_early_leave
from ..model import UNKNOWN_RESULT, ComputedAttendance
from .base import DayComputeStrategy


class WorkdayStrategy(DayComputeStrategy):
    """Regular working day: lateness, 17:30 cap and approval-gated overtime."""

    def compute(
        self,
        *,
        key: str,
        check_in_at: Optional[datetime],
        check_out_at: Optional[datetime],
        ot_approved: bool,
        today: str,
    ) -> ComputedAttendance:
        if check_in_at is None and check_out_at is not None:
            return ComputedAttendance(status=AttendanceStatus.MISSING_CHECKIN)
        if check_in_at is None:
            return UNKNOWN_RESULT

        late = compute_late_minutes(key, check_in_at)

        if check_out_at is None:
            status = AttendanceStatus.WORKING if key == today else AttendanceStatus.MISSING_CHECKOUT
            return ComputedAttendance(status=status, late_minutes=late)

        early = is_early_leave(key, check_out_at)
        if late > 0 and early:
            status = AttendanceStatus.LATE_AND_EARLY
        elif late > 0:
            status = AttendanceStatus.LATE
        elif early:
            status = AttendanceStatus.EARLY_LEAVE
        else:
            status = AttendanceStatus.ON_TIME

        return ComputedAttendance(
            status=status,
            late_minutes=late,
            work_minutes=compute_work_minutes(key, check_in_at, check_out_at, ot_approved),
            ot_minutes=compute_ot_minutes(key, check_out_at, ot_approved),
        )
