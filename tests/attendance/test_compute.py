from __future__ import annotations

from datetime import datetime

import pytest

from attendance_workflow.attendance.compute import compute_absence, compute_attendance
from attendance_workflow.attendance.metrics import (
    compute_ot_minutes,
    compute_potential_ot_minutes,
    compute_work_minutes,
)
from attendance_workflow.attendance.model import AttendanceRecord
from attendance_workflow.common.datetime_utils import BUSINESS_TZ
from attendance_workflow.core.enums import AttendanceStatus

DAY = "2026-01-27"  # Tuesday


def at(day, hour, minute=0, second=0):
    return datetime(2026, 1, day, hour, minute, second, tzinfo=BUSINESS_TZ)


def record(check_in, check_out=None, *, ot_approved=False, work_date=DAY):
    return AttendanceRecord(
        attendance_id=1,
        user_id=1,
        work_date=work_date,
        check_in_at=check_in,
        check_out_at=check_out,
        ot_approved=ot_approved,
    )


def test_full_day_with_approved_overtime():
    result = compute_attendance(record(at(27, 8, 30), at(27, 20, 0), ot_approved=True), today="2026-02-01")

    assert result.status == AttendanceStatus.ON_TIME
    assert result.late_minutes == 0
    assert result.work_minutes == 630
    assert result.ot_minutes == 149


@pytest.mark.parametrize(
    "flag,expected_ot",
    [(True, 149), ("true", 149), ("1", 149), (1, 149), (False, 0), ("false", 0), ("0", 0), (0, 0), (None, 0)],
)
def test_loose_ot_flag_only_accepts_true_values(flag, expected_ot):
    result = compute_attendance(
        {
            "date": DAY,
            "checkInAt": "2026-01-27T01:30:00Z",
            "checkOutAt": "2026-01-27T13:00:00Z",
            "otApproved": flag,
        },
        today="2026-02-01",
    )

    assert result.ot_minutes == expected_ot


def test_unapproved_overtime_is_capped_at_standard_end():
    result = compute_attendance(record(at(27, 8, 30), at(27, 20, 0)), today="2026-02-01")

    assert result.work_minutes == 480
    assert result.ot_minutes == 0


def test_early_leave():
    result = compute_attendance(record(at(27, 8, 30), at(27, 16, 30)), today="2026-02-01")

    assert result.status == AttendanceStatus.EARLY_LEAVE
    assert result.work_minutes == 420


def test_ot_boundary_is_exclusive():
    at_boundary = compute_attendance(record(at(27, 8, 30), at(27, 17, 31), ot_approved=True), today="2026-02-01")
    one_after = compute_attendance(record(at(27, 8, 30), at(27, 17, 32), ot_approved=True), today="2026-02-01")

    assert at_boundary.work_minutes == 481
    assert at_boundary.ot_minutes == 0
    assert one_after.ot_minutes == 1


def test_late_threshold_and_combined_status():
    on_threshold = compute_attendance(record(at(27, 8, 45), at(27, 17, 30)), today="2026-02-01")
    late = compute_attendance(record(at(27, 9, 0), at(27, 17, 30)), today="2026-02-01")
    late_and_early = compute_attendance(record(at(27, 9, 0), at(27, 16, 0)), today="2026-02-01")

    assert on_threshold.status == AttendanceStatus.ON_TIME
    assert late.status == AttendanceStatus.LATE
    assert late.late_minutes == 15
    assert late_and_early.status == AttendanceStatus.LATE_AND_EARLY


def test_open_session_today_is_working_and_past_is_missing_checkout():
    working = compute_attendance(record(at(27, 9, 0)), today=DAY)
    missing = compute_attendance(record(at(27, 8, 0)), today="2026-01-28")

    assert working.status == AttendanceStatus.WORKING
    assert working.late_minutes == 15
    assert working.work_minutes == 0
    assert missing.status == AttendanceStatus.MISSING_CHECKOUT


def test_weekend_forces_overtime_approval():
    result = compute_attendance(
        record(at(31, 9, 0), at(31, 19, 0), work_date="2026-01-31"),
        today="2026-02-02",
    )

    assert result.status == AttendanceStatus.WEEKEND_OR_HOLIDAY
    assert result.late_minutes == 0
    assert result.work_minutes == 540
    assert result.ot_minutes == 89


def test_holiday_forces_overtime_approval():
    result = compute_attendance(record(at(27, 8, 30), at(27, 18, 31)), {DAY}, today="2026-02-01")

    assert result.status == AttendanceStatus.WEEKEND_OR_HOLIDAY
    assert result.ot_minutes == 60


def test_cross_midnight_session_measures_against_check_in_day():
    approved = compute_attendance(record(at(27, 23, 0), at(28, 10, 0), ot_approved=True), today="2026-02-01")
    unapproved = compute_attendance(record(at(27, 23, 0), at(28, 10, 0)), today="2026-02-01")

    assert approved.work_minutes == 660
    assert unapproved.work_minutes == 0


def test_accepts_loose_dict_records():
    result = compute_attendance(
        {
            "date": DAY,
            "checkInAt": "2026-01-27T01:30:00Z",
            "checkOutAt": "2026-01-27T13:00:00Z",
            "otApproved": True,
        },
        today="2026-02-01",
    )

    assert result.work_minutes == 630
    assert result.ot_minutes == 149


@pytest.mark.parametrize(
    "bad",
    [
        None,
        object(),
        {"date": "not-a-day", "checkInAt": "2026-01-27T01:30:00Z"},
        {"date": DAY, "checkInAt": "yesterday-ish"},
        {"date": DAY},
    ],
)
def test_malformed_records_degrade_to_unknown(bad):
    result = compute_attendance(bad)

    assert result.status == AttendanceStatus.UNKNOWN
    assert (result.late_minutes, result.work_minutes, result.ot_minutes) == (0, 0, 0)


def test_checkout_without_checkin_is_missing_checkin():
    result = compute_attendance({"date": DAY, "checkOutAt": "2026-01-27T10:30:00Z"}, today="2026-02-01")

    assert result.status == AttendanceStatus.MISSING_CHECKIN


def test_potential_ot_ignores_approval():
    assert compute_potential_ot_minutes(DAY, at(27, 18, 31)) == 60
    assert compute_ot_minutes(DAY, at(27, 18, 31), False) == 0
    assert compute_potential_ot_minutes(DAY, None) == 0


@pytest.mark.parametrize("hour,minute", [(17, 30), (17, 31), (18, 0), (21, 45), (23, 59)])
def test_unapproved_work_never_exceeds_standard_day(hour, minute):
    assert compute_work_minutes(DAY, at(27, 8, 30), at(27, hour, minute), False) <= 480


def test_work_minutes_clamped_for_reversed_interval():
    assert compute_work_minutes(DAY, at(27, 12, 0), at(27, 8, 0), True) == 0


def test_compute_absence():
    assert compute_absence("2026-01-31", today="2026-02-02") == AttendanceStatus.WEEKEND_OR_HOLIDAY
    assert compute_absence("2026-01-27", leave_dates={"2026-01-27"}, today="2026-02-02") == AttendanceStatus.LEAVE
    assert compute_absence("2026-01-27", holiday_dates={"2026-01-27"}, today="2026-02-02") == (
        AttendanceStatus.WEEKEND_OR_HOLIDAY
    )
    assert compute_absence("2026-01-27", today="2026-02-02") == AttendanceStatus.ABSENT
    assert compute_absence("2026-02-02", today="2026-02-02") is None
