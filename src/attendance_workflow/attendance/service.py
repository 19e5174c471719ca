from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional

from ..audit.service import AuditLogger
from ..common.datetime_utils import format_business, month_bounds, now_utc, parse_instant, today_key
from ..common.grace_config import checkout_grace
from ..common.validators import parse_entity_id
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StaleSessionError,
    ValidationError,
)
from ..holidays.service import HolidayService
from ..requests.repository import RequestRepository
from ..users.model import User
from .compute import compute_attendance
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Check-in / check-out lifecycle of attendance sessions.

    A session is one attendance record: OPEN while ``check_out_at`` is empty,
    CLOSED afterwards. Checkout may land on a later calendar day than the
    check-in as long as the session is within the grace window.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        requests: RequestRepository,
        holidays: HolidayService,
        audit: AuditLogger,
        *,
        grace_provider: Callable[[], timedelta] = checkout_grace,
    ):
        self._attendance = attendance
        self._requests = requests
        self._holidays = holidays
        self._audit = audit
        self._grace_provider = grace_provider

    @staticmethod
    def _stale_message(session: AttendanceRecord, grace: timedelta) -> str:
        hours = int(grace.total_seconds() // 3600)
        return (
            f"Check-in session from {session.work_date} has expired "
            f"(more than {hours}h ago). "
            "Please submit an ADJUST_TIME request to fix the missing checkout."
        )

    def check_in(self, *, user_id: int, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_utc()
        today = today_key(now)
        grace = self._grace_provider()

        for session in self._attendance.list_open_sessions(user_id):
            if session.work_date != today and now - session.check_in_at > grace:
                self._audit.stale_open_session(user_id, session, detected_at="checkIn")

        if self._attendance.get_for_user_and_date(user_id, today):
            raise ConflictError("Already checked in")

        # Pre-approved overtime for today is applied as soon as the record exists.
        ot_approved = self._requests.has_approved_ot(user_id=user_id, request_date=today)

        record = self._attendance.create_checkin(
            user_id=user_id,
            work_date=today,
            check_in_at=now,
            ot_approved=ot_approved,
        )
        if record is None:
            raise ConflictError("Already checked in")

        # An approval landing between the read and the insert found no row to mark.
        if not ot_approved and self._requests.has_approved_ot(user_id=user_id, request_date=today):
            self._attendance.mark_ot_approved(user_id=user_id, work_date=today)
            ot_approved = True
            record = replace(record, ot_approved=True)

        logger.info("Checked in", extra={"user_id": user_id, "date": today, "ot_approved": ot_approved})
        return record

    def check_out(self, *, user_id: int, now: Optional[datetime] = None) -> AttendanceRecord:
        now = now or now_utc()

        open_sessions = list(self._attendance.list_open_sessions(user_id))
        if not open_sessions:
            today_record = self._attendance.get_for_user_and_date(user_id, today_key(now))
            if today_record and today_record.check_out_at is not None:
                raise ValidationError("Already checked out")
            raise ValidationError("Must check in first")

        open_sessions.sort(key=lambda s: s.check_in_at, reverse=True)
        session = open_sessions[0]
        if len(open_sessions) > 1:
            self._audit.multiple_active_sessions(user_id, open_sessions)

        grace = self._grace_provider()
        if now - session.check_in_at > grace:
            self._audit.stale_open_session(user_id, session, detected_at="checkOut")
            raise StaleSessionError(self._stale_message(session, grace), session_date=session.work_date)

        if not self._attendance.close_session(attendance_id=session.attendance_id, check_out_at=now):
            raise ValidationError("Already checked out")

        logger.info(
            "Checked out",
            extra={"user_id": user_id, "date": session.work_date, "attendance_id": session.attendance_id},
        )
        return replace(session, check_out_at=now)

    def force_checkout(self, *, actor: User, attendance_id: Any, check_out_at: Any) -> AttendanceRecord:
        """Admin override: close a record at an explicit instant, no grace check."""
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Admin access required")

        record_id = parse_entity_id(attendance_id, "Invalid attendance ID format")

        if check_out_at is None or check_out_at == "":
            raise ValidationError("checkOutAt is required")
        try:
            instant = parse_instant(check_out_at, "checkOutAt")
        except ValidationError:
            raise ValidationError("Invalid checkOutAt date format. Use ISO 8601 with timezone")

        record = self._attendance.get_by_id(record_id)
        if record is None:
            raise NotFoundError("Attendance record not found")
        if record.check_in_at is None:
            raise ValidationError("Cannot force checkout: No check-in recorded")
        if record.check_out_at is not None:
            raise ValidationError("Already checked out")
        if instant <= record.check_in_at:
            raise ValidationError("checkOutAt must be after checkInAt")

        if not self._attendance.close_session(attendance_id=record.attendance_id, check_out_at=instant):
            raise ValidationError("Already checked out")

        logger.info(
            "Forced checkout",
            extra={
                "attendance_id": record.attendance_id,
                "user_id": record.user_id,
                "admin_id": actor.user_id,
                "check_out_at": format_business(instant),
            },
        )
        return replace(record, check_out_at=instant)

    def get_today_record(self, *, user_id: int, now: Optional[datetime] = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_user_and_date(user_id, today_key(now))

    def get_monthly_history(
        self,
        *,
        user_id: int,
        month: str,
        holiday_dates: Optional[Iterable[str]] = None,
        now: Optional[datetime] = None,
    ) -> list[dict]:
        start, end = month_bounds(month)
        holidays = (
            frozenset(holiday_dates)
            if holiday_dates is not None
            else self._holidays.get_holiday_dates_for_month(month)
        )
        today = today_key(now)

        items: list[dict] = []
        for record in self._attendance.list_for_user_between(user_id, start, end):
            computed = compute_attendance(record, holidays, today=today)
            items.append({**record.to_dict(), **computed.to_dict()})
        return items
