from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

from ..core.enums import LeaveType, RequestStatus, RequestType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_date,
    from_db_datetime,
    is_duplicate_key,
    to_db_datetime,
)
from .model import WorkRequest
from .repository import RequestRepository

_COLUMNS = (
    "r.request_id, r.user_id, r.type, r.status, r.reason, r.request_date, r.check_out_date, "
    "r.requested_check_in_at, r.requested_check_out_at, r.estimated_end_time, "
    "r.leave_start_date, r.leave_end_date, r.leave_type, r.leave_days_count, "
    "r.approved_by, r.approved_at, r.created_at"
)


def _row_to_request(r: Dict[str, Any]) -> WorkRequest:
    return WorkRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        request_type=RequestType(r["type"]),
        status=RequestStatus(r["status"]),
        reason=r["reason"],
        request_date=from_db_date(r.get("request_date")),
        check_out_date=from_db_date(r.get("check_out_date")),
        requested_check_in_at=from_db_datetime(r.get("requested_check_in_at")),
        requested_check_out_at=from_db_datetime(r.get("requested_check_out_at")),
        estimated_end_time=from_db_datetime(r.get("estimated_end_time")),
        leave_start_date=from_db_date(r.get("leave_start_date")),
        leave_end_date=from_db_date(r.get("leave_end_date")),
        leave_type=LeaveType(r["leave_type"]) if r.get("leave_type") else None,
        leave_days_count=r.get("leave_days_count"),
        approved_by=r.get("approved_by"),
        approved_at=from_db_datetime(r.get("approved_at")),
        created_at=from_db_datetime(r.get("created_at")),
    )


class MySQLRequestRepository(RequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select_one(self, cur, where: str, params: tuple) -> Optional[WorkRequest]:
        cur.execute(f"SELECT {_COLUMNS} FROM requests r WHERE {where} LIMIT 1", params)
        row = fetchone(cur)
        return _row_to_request(row) if row else None

    def get_by_id(self, request_id: int) -> Optional[WorkRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(cur, "r.request_id=%s", (int(request_id),))

    def create(self, request: WorkRequest) -> Optional[WorkRequest]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO requests(
                        user_id, type, status, reason, request_date, check_out_date,
                        requested_check_in_at, requested_check_out_at, estimated_end_time,
                        leave_start_date, leave_end_date, leave_type, leave_days_count, created_at
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,COALESCE(%s, UTC_TIMESTAMP(3)))
                    """,
                    (
                        int(request.user_id),
                        request.request_type.value,
                        request.status.value,
                        request.reason,
                        request.request_date,
                        request.check_out_date,
                        to_db_datetime(request.requested_check_in_at),
                        to_db_datetime(request.requested_check_out_at),
                        to_db_datetime(request.estimated_end_time),
                        request.leave_start_date,
                        request.leave_end_date,
                        request.leave_type.value if request.leave_type else None,
                        request.leave_days_count,
                        to_db_datetime(request.created_at),
                    ),
                )
                return self._select_one(cur, "r.request_id=%s", (int(cur.lastrowid),))
        except mysql.connector.IntegrityError as err:
            if is_duplicate_key(err):
                return None
            raise

    def find_pending(self, *, user_id: int, request_type: RequestType, request_date: str) -> Optional[WorkRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(
                cur,
                "r.user_id=%s AND r.type=%s AND r.status=%s AND r.request_date=%s",
                (int(user_id), request_type.value, RequestStatus.PENDING.value, request_date),
            )

    def extend_pending_ot(
        self,
        *,
        user_id: int,
        request_date: str,
        estimated_end_time: datetime,
        reason: str,
    ) -> Optional[WorkRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT request_id FROM requests
                WHERE user_id=%s AND type=%s AND status=%s AND request_date=%s
                ORDER BY request_id
                LIMIT 1
                FOR UPDATE
                """,
                (int(user_id), RequestType.OT_REQUEST.value, RequestStatus.PENDING.value, request_date),
            )
            row = fetchone(cur)
            if not row:
                return None
            cur.execute(
                """
                UPDATE requests
                SET estimated_end_time=%s, reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (to_db_datetime(estimated_end_time), reason, int(row["request_id"]), RequestStatus.PENDING.value),
            )
            if cur.rowcount == 0:
                return None
            return self._select_one(cur, "r.request_id=%s", (int(row["request_id"]),))

    def count_pending_ot_between(self, *, user_id: int, start_key: str, end_key: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total FROM requests
                WHERE user_id=%s AND type=%s AND status=%s
                  AND request_date >= %s AND request_date < %s
                """,
                (int(user_id), RequestType.OT_REQUEST.value, RequestStatus.PENDING.value, start_key, end_key),
            )
            row = fetchone(cur)
            return int(row["total"]) if row else 0

    def has_approved_ot(self, *, user_id: int, request_date: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT 1 AS found FROM requests
                WHERE user_id=%s AND type=%s AND status=%s AND request_date=%s
                LIMIT 1
                """,
                (int(user_id), RequestType.OT_REQUEST.value, RequestStatus.APPROVED.value, request_date),
            )
            return fetchone(cur) is not None

    def find_overlapping_leave(self, *, user_id: int, start_key: str, end_key: str) -> Optional[WorkRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            return self._select_one(
                cur,
                """
                r.user_id=%s AND r.type=%s AND r.status IN (%s, %s)
                AND r.leave_start_date <= %s AND r.leave_end_date >= %s
                """,
                (
                    int(user_id),
                    RequestType.LEAVE.value,
                    RequestStatus.PENDING.value,
                    RequestStatus.APPROVED.value,
                    end_key,
                    start_key,
                ),
            )

    def list_approved_leaves_between(self, *, user_id: int, start_key: str, end_key: str) -> Sequence[WorkRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM requests r
                WHERE r.user_id=%s AND r.type=%s AND r.status=%s
                  AND r.leave_start_date <= %s AND r.leave_end_date >= %s
                ORDER BY r.leave_start_date
                """,
                (int(user_id), RequestType.LEAVE.value, RequestStatus.APPROVED.value, end_key, start_key),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: int,
        decided_at: datetime,
    ) -> Optional[WorkRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE requests
                SET status=%s, approved_by=%s, approved_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(decided_by),
                    to_db_datetime(decided_at),
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            if cur.rowcount == 0:
                return None
            return self._select_one(cur, "r.request_id=%s", (int(request_id),))

    def delete_pending(self, *, request_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM requests WHERE request_id=%s AND user_id=%s AND status=%s",
                (int(request_id), int(user_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def list_for_user(
        self,
        *,
        user_id: int,
        status: Optional[RequestStatus] = None,
        limit: int = 200,
    ) -> Sequence[WorkRequest]:
        clauses = ["r.user_id=%s"]
        params: list[object] = [int(user_id)]
        if status is not None:
            clauses.append("r.status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM requests r
                WHERE {' AND '.join(clauses)}
                ORDER BY r.created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]

    def list_pending(self, *, team_id: Optional[int] = None, limit: int = 200) -> Sequence[WorkRequest]:
        clauses = ["r.status=%s", "u.is_active=1"]
        params: list[object] = [RequestStatus.PENDING.value]
        if team_id is not None:
            clauses.append("u.team_id=%s")
            params.append(int(team_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM requests r
                JOIN users u ON u.user_id = r.user_id
                WHERE {' AND '.join(clauses)}
                ORDER BY r.created_at DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_row_to_request(r) for r in fetchall(cur)]
