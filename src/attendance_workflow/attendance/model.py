from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceRecord:
    """Thực thể miền (domain): Bản ghi chấm công.

    One row per (user, business day). ``work_date`` is the day key of the
    check-in and never changes, even when the checkout lands on the next day.
    """

    attendance_id: int
    user_id: int
    work_date: str
    check_in_at: Optional[datetime]
    check_out_at: Optional[datetime] = None
    ot_approved: bool = False

    @property
    def is_open(self) -> bool:
        return self.check_in_at is not None and self.check_out_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "userId": self.user_id,
            "date": self.work_date,
            "checkInAt": self.check_in_at.isoformat() if self.check_in_at else None,
            "checkOutAt": self.check_out_at.isoformat() if self.check_out_at else None,
            "otApproved": self.ot_approved,
        }


@dataclass(frozen=True)
class ComputedAttendance:
    """Read-model: metrics derived from a record at read time."""

    status: Optional[AttendanceStatus]
    late_minutes: int = 0
    work_minutes: int = 0
    ot_minutes: int = 0

    def to_dict(self) -> dict:
        return {
            "status": self.status.value if self.status else None,
            "lateMinutes": self.late_minutes,
            "workMinutes": self.work_minutes,
            "otMinutes": self.ot_minutes,
        }


UNKNOWN_RESULT = ComputedAttendance(status=AttendanceStatus.UNKNOWN)
