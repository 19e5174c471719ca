from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_db_date
from .repository import HolidayRepository


class MySQLHolidayRepository(HolidayRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_dates_between(self, start_key: str, end_key: str) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT holiday_date
                FROM holidays
                WHERE holiday_date >= %s AND holiday_date < %s
                ORDER BY holiday_date
                """,
                (start_key, end_key),
            )
            return [from_db_date(r["holiday_date"]) for r in fetchall(cur)]
