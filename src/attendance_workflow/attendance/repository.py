from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_open_sessions(self, user_id: int) -> Sequence[AttendanceRecord]:
        """Records with a check-in and no checkout, newest check-in first."""
        raise NotImplementedError

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: str,
        check_in_at: datetime,
        ot_approved: bool = False,
    ) -> Optional[AttendanceRecord]:
        """Insert the day's record; ``None`` when one already exists for (user, day)."""
        raise NotImplementedError

    def close_session(self, *, attendance_id: int, check_out_at: datetime) -> bool:
        """Set the checkout only while it is still empty."""
        raise NotImplementedError

    def mark_ot_approved(self, *, user_id: int, work_date: str) -> bool:
        """Set ``ot_approved`` on an existing record. Never creates or clears."""
        raise NotImplementedError

    def apply_adjustment(
        self,
        *,
        user_id: int,
        work_date: str,
        check_in_at: Optional[datetime],
        check_out_at: Optional[datetime],
        ot_approved: bool,
    ) -> AttendanceRecord:
        """Upsert requested times. ``ot_approved`` may only turn the flag on."""
        raise NotImplementedError

    def list_for_user_between(self, user_id: int, start_key: str, end_key: str) -> Sequence[AttendanceRecord]:
        """Records with ``start_key <= work_date < end_key``."""
        raise NotImplementedError

    def list_between(
        self,
        start_key: str,
        end_key: str,
        *,
        user_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
