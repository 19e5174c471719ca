from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .audit.mysql_audit_repository import MySQLAuditLogRepository
from .audit.repository import AuditLogRepository
from .audit.service import AuditLogger
from .database.connection import DBConfig, DatabaseConnection
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.repository import HolidayRepository
from .holidays.service import HolidayService
from .reports.service import MonthlyReportService
from .reports.timesheet_service import TimesheetService
from .requests.mysql_request_repository import MySQLRequestRepository
from .requests.repository import RequestRepository
from .requests.service import RequestService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    attendance_repo: AttendanceRepository
    requests_repo: RequestRepository
    holidays_repo: HolidayRepository
    audit_repo: AuditLogRepository

    holiday_service: HolidayService
    attendance_service: AttendanceService
    request_service: RequestService
    report_service: MonthlyReportService
    timesheet_service: TimesheetService


def wire_container(
    *,
    users_repo: UserRepository,
    attendance_repo: AttendanceRepository,
    requests_repo: RequestRepository,
    holidays_repo: HolidayRepository,
    audit_repo: AuditLogRepository,
) -> Container:
    holiday_service = HolidayService(holidays_repo)
    audit_logger = AuditLogger(audit_repo)
    request_service = RequestService(requests_repo, attendance_repo, users_repo, holiday_service)

    return Container(
        users_repo=users_repo,
        attendance_repo=attendance_repo,
        requests_repo=requests_repo,
        holidays_repo=holidays_repo,
        audit_repo=audit_repo,
        holiday_service=holiday_service,
        attendance_service=AttendanceService(attendance_repo, requests_repo, holiday_service, audit_logger),
        request_service=request_service,
        report_service=MonthlyReportService(attendance_repo, users_repo, holiday_service),
        timesheet_service=TimesheetService(attendance_repo, users_repo, holiday_service, request_service),
    )


def build_container(*, db_config: Mapping[str, Any]) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))
    return wire_container(
        users_repo=MySQLUserRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        requests_repo=MySQLRequestRepository(conn),
        holidays_repo=MySQLHolidayRepository(conn),
        audit_repo=MySQLAuditLogRepository(conn),
    )
