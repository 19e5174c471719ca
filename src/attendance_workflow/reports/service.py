from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..attendance.compute import compute_attendance
from ..attendance.metrics import compute_potential_ot_minutes
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, today_key, validate_month
from ..holidays.service import HolidayService
from ..users.repository import UserRepository


@dataclass(frozen=True)
class MonthlySummary:
    month: str
    summary: list[dict]


class MonthlyReportService:
    """Per-user monthly totals derived from stored records at read time."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository, holidays: HolidayService):
        self._attendance = attendance
        self._users = users
        self._holidays = holidays

    def build_monthly_summary(
        self,
        *,
        month: str,
        team_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> MonthlySummary:
        month = validate_month(month)
        users = list(self._users.list_active(team_id=team_id))
        if not users:
            return MonthlySummary(month=month, summary=[])

        start, end = month_bounds(month)
        holidays = self._holidays.get_holiday_dates_for_month(month)
        today = today_key(now)

        totals: dict[int, dict] = {
            u.user_id: {
                "user": {"id": u.user_id, "name": u.full_name, "username": u.username},
                "totalWorkMinutes": 0,
                "totalLateCount": 0,
                "totalOtMinutes": 0,
                "approvedOtMinutes": 0,
            }
            for u in users
        }

        for record in self._attendance.list_between(start, end, user_ids=list(totals)):
            t = totals.get(record.user_id)
            if t is None:
                continue
            computed = compute_attendance(record, holidays, today=today)
            t["totalWorkMinutes"] += computed.work_minutes
            # Late is counted by minutes so open sessions are included.
            if computed.late_minutes > 0:
                t["totalLateCount"] += 1
            t["totalOtMinutes"] += compute_potential_ot_minutes(record.work_date, record.check_out_at)
            t["approvedOtMinutes"] += computed.ot_minutes

        return MonthlySummary(month=month, summary=list(totals.values()))
