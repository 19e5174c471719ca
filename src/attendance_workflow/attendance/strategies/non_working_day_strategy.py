from __future__ import annotations

from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ..metrics import compute_ot_minutes, compute_work_minutes
from ..model import ComputedAttendance
from .base import DayComputeStrategy


class NonWorkingDayStrategy(DayComputeStrategy):
    """Weekend or holiday: never late, overtime always counts as approved."""

    def compute(
        self,
        *,
        key: str,
        check_in_at: Optional[datetime],
        check_out_at: Optional[datetime],
        ot_approved: bool,
        today: str,
    ) -> ComputedAttendance:
        if check_in_at is None or check_out_at is None:
            return ComputedAttendance(status=AttendanceStatus.WEEKEND_OR_HOLIDAY)

        return ComputedAttendance(
            status=AttendanceStatus.WEEKEND_OR_HOLIDAY,
            work_minutes=compute_work_minutes(key, check_in_at, check_out_at, True),
            ot_minutes=compute_ot_minutes(key, check_out_at, True),
        )
