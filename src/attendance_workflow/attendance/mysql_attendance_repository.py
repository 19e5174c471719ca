from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

import mysql.connector

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
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, user_id, work_date, check_in_at, check_out_at, ot_approved"


def _row_to_record(row: Dict[str, Any]) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(row["attendance_id"]),
        user_id=int(row["user_id"]),
        work_date=from_db_date(row["work_date"]),
        check_in_at=from_db_datetime(row.get("check_in_at")),
        check_out_at=from_db_datetime(row.get("check_out_at")),
        ot_approved=bool(row.get("ot_approved")),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_records WHERE attendance_id=%s", (int(attendance_id),))
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def get_for_user_and_date(self, user_id: int, work_date: str) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            row = fetchone(cur)
            return _row_to_record(row) if row else None

    def list_open_sessions(self, user_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE user_id=%s AND check_in_at IS NOT NULL AND check_out_at IS NULL
                ORDER BY check_in_at DESC
                """,
                (int(user_id),),
            )
            return [_row_to_record(r) for r in fetchall(cur)]

    def create_checkin(
        self,
        *,
        user_id: int,
        work_date: str,
        check_in_at: datetime,
        ot_approved: bool = False,
    ) -> Optional[AttendanceRecord]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(user_id, work_date, check_in_at, ot_approved)
                    VALUES(%s,%s,%s,%s)
                    """,
                    (int(user_id), work_date, to_db_datetime(check_in_at), 1 if ot_approved else 0),
                )
                attendance_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as err:
            if is_duplicate_key(err):
                return None
            raise
        return AttendanceRecord(
            attendance_id=attendance_id,
            user_id=int(user_id),
            work_date=work_date,
            check_in_at=check_in_at,
            ot_approved=bool(ot_approved),
        )

    def close_session(self, *, attendance_id: int, check_out_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET check_out_at=%s
                WHERE attendance_id=%s AND check_out_at IS NULL
                """,
                (to_db_datetime(check_out_at), int(attendance_id)),
            )
            return cur.rowcount > 0

    def mark_ot_approved(self, *, user_id: int, work_date: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_records SET ot_approved=1 WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            return cur.rowcount > 0

    def apply_adjustment(
        self,
        *,
        user_id: int,
        work_date: str,
        check_in_at: Optional[datetime],
        check_out_at: Optional[datetime],
        ot_approved: bool,
    ) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            # COALESCE keeps stored values for fields the request leaves out.
            # GREATEST keeps ot_approved monotonic.
            cur.execute(
                """
                INSERT INTO attendance_records(user_id, work_date, check_in_at, check_out_at, ot_approved)
                VALUES(%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    check_in_at=COALESCE(VALUES(check_in_at), check_in_at),
                    check_out_at=COALESCE(VALUES(check_out_at), check_out_at),
                    ot_approved=GREATEST(ot_approved, VALUES(ot_approved))
                """,
                (
                    int(user_id),
                    work_date,
                    to_db_datetime(check_in_at),
                    to_db_datetime(check_out_at),
                    1 if ot_approved else 0,
                ),
            )
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_records WHERE user_id=%s AND work_date=%s",
                (int(user_id), work_date),
            )
            return _row_to_record(fetchone(cur))

    def list_for_user_between(self, user_id: int, start_key: str, end_key: str) -> Sequence[AttendanceRecord]:
        return self.list_between(start_key, end_key, user_ids=[user_id])

    def list_between(
        self,
        start_key: str,
        end_key: str,
        *,
        user_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["work_date >= %s", "work_date < %s"]
        params: list[object] = [start_key, end_key]
        if user_ids is not None:
            if not user_ids:
                return []
            clauses.append(f"user_id IN ({', '.join(['%s'] * len(user_ids))})")
            params.extend(int(u) for u in user_ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_records
                WHERE {' AND '.join(clauses)}
                ORDER BY work_date, user_id
                """,
                tuple(params),
            )
            return [_row_to_record(r) for r in fetchall(cur)]
