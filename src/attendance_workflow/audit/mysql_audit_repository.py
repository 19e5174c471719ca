from __future__ import annotations

import json

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import AuditLogEntry
from .repository import AuditLogRepository


class MySQLAuditLogRepository(AuditLogRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, entry: AuditLogEntry) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO audit_logs(type, user_id, details) VALUES(%s,%s,%s)",
                (entry.log_type.value, int(entry.user_id), json.dumps(entry.details)),
            )
            return int(cur.lastrowid)
