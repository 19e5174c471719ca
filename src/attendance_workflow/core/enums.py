from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Vai trò người dùng dùng cho phân quyền."""

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    ADMIN = "ADMIN"


class AttendanceStatus(str, Enum):
    """Computed (never stored) status of one calendar day."""

    ON_TIME = "ON_TIME"
    LATE = "LATE"
    EARLY_LEAVE = "EARLY_LEAVE"
    LATE_AND_EARLY = "LATE_AND_EARLY"
    WORKING = "WORKING"
    MISSING_CHECKOUT = "MISSING_CHECKOUT"
    MISSING_CHECKIN = "MISSING_CHECKIN"
    ABSENT = "ABSENT"
    LEAVE = "LEAVE"
    WEEKEND_OR_HOLIDAY = "WEEKEND_OR_HOLIDAY"
    UNKNOWN = "UNKNOWN"


class RequestType(str, Enum):
    ADJUST_TIME = "ADJUST_TIME"
    LEAVE = "LEAVE"
    OT_REQUEST = "OT_REQUEST"


class RequestStatus(str, Enum):
    """Trạng thái luồng duyệt yêu cầu (điều chỉnh/nghỉ phép/tăng ca)."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class LeaveType(str, Enum):
    ANNUAL = "ANNUAL"
    SICK = "SICK"
    UNPAID = "UNPAID"


class AuditLogType(str, Enum):
    MULTIPLE_ACTIVE_SESSIONS = "MULTIPLE_ACTIVE_SESSIONS"
    STALE_OPEN_SESSION = "STALE_OPEN_SESSION"
