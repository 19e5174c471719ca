from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from ..attendance.compute import compute_absence, compute_attendance
from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import add_days, date_range, month_bounds, today_key, validate_month
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..holidays.service import HolidayService
from ..requests.service import RequestService
from ..users.model import User
from ..users.repository import UserRepository

SCOPES = ("team", "company")


def _user_summary(user: User) -> dict:
    return {"id": user.user_id, "name": user.full_name, "username": user.username}


def _value(status: Optional[AttendanceStatus]) -> Optional[str]:
    return status.value if status else None


class TimesheetService:
    """Day-by-day status views for active users.

    Days without a record resolve to LEAVE, WEEKEND_OR_HOLIDAY or ABSENT;
    today and future days without a record have no status yet.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        holidays: HolidayService,
        requests: RequestService,
    ):
        self._attendance = attendance
        self._users = users
        self._holidays = holidays
        self._requests = requests

    def _records(self, users: Iterable[User], start: str, end: str) -> dict[tuple[int, str], AttendanceRecord]:
        user_ids = [u.user_id for u in users]
        if not user_ids:
            return {}
        return {(r.user_id, r.work_date): r for r in self._attendance.list_between(start, end, user_ids=user_ids)}

    def _day_status(
        self,
        key: str,
        record: Optional[AttendanceRecord],
        *,
        holidays: frozenset[str],
        leave_dates: frozenset[str],
        today: str,
    ) -> tuple[Optional[AttendanceStatus], int]:
        if record is not None:
            computed = compute_attendance(record, holidays, today=today)
            return computed.status, computed.late_minutes
        return compute_absence(key, holiday_dates=holidays, leave_dates=leave_dates, today=today), 0

    def build_timesheet(self, *, month: str, team_id: Optional[int] = None, now: Optional[datetime] = None) -> dict:
        """Matrix of users x days for ``month`` (one team, or the whole company)."""
        month = validate_month(month)
        start, end = month_bounds(month)
        days = date_range(start, add_days(end, -1))
        today = today_key(now)
        holidays = self._holidays.get_holiday_dates_for_month(month)

        users = list(self._users.list_active(team_id=team_id))
        records = self._records(users, start, end)

        rows = []
        for user in users:
            leave_dates = self._requests.get_approved_leave_dates(user_id=user.user_id, month=month)
            cells = []
            for key in days:
                status, _ = self._day_status(
                    key,
                    records.get((user.user_id, key)),
                    holidays=holidays,
                    leave_dates=leave_dates,
                    today=today,
                )
                cells.append({"date": key, "status": _value(status)})
            rows.append({"user": _user_summary(user), "cells": cells})

        return {"month": month, "days": [int(k[8:]) for k in days], "rows": rows}

    def get_today_activity(self, *, scope: str, team_id: Optional[int] = None, now: Optional[datetime] = None) -> dict:
        if scope not in SCOPES:
            raise ValidationError('Invalid scope. Expected "team" or "company"')
        if scope == "team" and team_id is None:
            raise ValidationError("Team ID is required for team scope")

        today = today_key(now)
        holidays = self._holidays.get_holiday_dates_for_month(today[:7])
        users = list(self._users.list_active(team_id=team_id if scope == "team" else None))
        records = self._records(users, today, add_days(today, 1))

        items = []
        for user in users:
            record = records.get((user.user_id, today))
            leave_dates = (
                frozenset()
                if record is not None
                else self._requests.get_approved_leave_dates(user_id=user.user_id, month=today[:7])
            )
            status, late = self._day_status(today, record, holidays=holidays, leave_dates=leave_dates, today=today)
            items.append(
                {
                    "user": _user_summary(user),
                    "attendance": record.to_dict() if record else None,
                    "computed": {"status": _value(status), "lateMinutes": late},
                }
            )

        return {"date": today, "items": items}
