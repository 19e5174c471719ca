"""Fire-and-forget anomaly logging.

A failed audit write must never fail the operation that triggered it, so
errors are logged here and not re-raised.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from ..attendance.model import AttendanceRecord
from ..core.constants import MAX_AUDIT_SESSIONS
from ..core.enums import AuditLogType
from .model import AuditLogEntry
from .repository import AuditLogRepository

logger = logging.getLogger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class AuditLogger:
    def __init__(self, audit_logs: AuditLogRepository):
        self._audit_logs = audit_logs

    def record(self, log_type: AuditLogType, user_id: int, details: dict) -> None:
        try:
            self._audit_logs.create(AuditLogEntry(log_type=log_type, user_id=int(user_id), details=details))
        except Exception:
            logger.exception("Audit log write failed", extra={"audit_type": log_type.value, "user_id": user_id})

    def multiple_active_sessions(self, user_id: int, sessions: Sequence[AttendanceRecord]) -> None:
        logger.warning(
            "Multiple open sessions detected",
            extra={"user_id": user_id, "session_count": len(sessions)},
        )
        self.record(
            AuditLogType.MULTIPLE_ACTIVE_SESSIONS,
            user_id,
            {
                "sessionCount": len(sessions),
                "sessions": [
                    {"id": s.attendance_id, "date": s.work_date, "checkInAt": _iso(s.check_in_at)}
                    for s in sessions[:MAX_AUDIT_SESSIONS]
                ],
            },
        )

    def stale_open_session(self, user_id: int, session: AttendanceRecord, *, detected_at: str) -> None:
        logger.warning(
            "Stale open session detected",
            extra={"user_id": user_id, "session_date": session.work_date, "detected_at": detected_at},
        )
        self.record(
            AuditLogType.STALE_OPEN_SESSION,
            user_id,
            {
                "sessionDate": session.work_date,
                "checkInAt": _iso(session.check_in_at),
                "detectedAt": detected_at,
            },
        )
