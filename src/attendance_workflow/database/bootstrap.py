from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)


def _strip_create_db_and_use(sql: str) -> str:
    # Keep schema.sql compatible regardless of DB name.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _strip_line_comments(sql: str) -> str:
    return "\n".join(line for line in sql.splitlines() if not line.lstrip().startswith("--"))


def _iter_sql_statements(sql: str) -> Iterable[str]:
    # Minimal SQL splitter for schema files (handles ';' inside quotes).
    buf: list[str] = []
    in_single = False
    in_double = False
    escape = False

    for ch in sql:
        if escape:
            buf.append(ch)
            escape = False
            continue

        if ch == "\\":
            buf.append(ch)
            escape = True
            continue

        if ch == "'" and not in_double:
            in_single = not in_single
        elif ch == '"' and not in_single:
            in_double = not in_double
        elif ch == ";" and not in_single and not in_double:
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue

        buf.append(ch)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: Mapping[str, Any]) -> None:
    factory = DatabaseConnection(DBConfig.from_mapping(db_config))
    conn = factory.connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{factory.config.database}` "
            "CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: Mapping[str, Any], *, schema_path: str | Path) -> None:
    """Create the database if needed and run every statement of ``schema_path``."""
    ensure_database_exists(db_config)

    sql = _strip_line_comments(_strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8")))
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        count = 0
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
            count += 1
        conn.commit()
        logger.info("Schema applied", extra={"statements": count, "schema": str(schema_path)})
    finally:
        conn.close()


def ensure_demo_users(db_config: Mapping[str, Any]) -> None:
    """Idempotently insert one team with an admin, a manager and an employee."""
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor(dictionary=True)
        cur.execute("INSERT IGNORE INTO teams (name) VALUES (%s)", ("Engineering",))
        cur.execute("SELECT team_id FROM teams WHERE name=%s", ("Engineering",))
        team_id = int(cur.fetchone()["team_id"])

        demo_users = [
            ("Admin Demo", "admin", "ADMIN", None),
            ("Manager Demo", "manager", "MANAGER", team_id),
            ("Employee Demo", "employee", "EMPLOYEE", team_id),
        ]
        for full_name, username, role, user_team in demo_users:
            cur.execute(
                """
                INSERT INTO users (full_name, username, role, team_id, is_active)
                VALUES (%s, %s, %s, %s, 1)
                ON DUPLICATE KEY UPDATE full_name=VALUES(full_name), role=VALUES(role), team_id=VALUES(team_id)
                """,
                (full_name, username, role, user_team),
            )
        conn.commit()
    finally:
        conn.close()


def list_tables(db_config: Mapping[str, Any]) -> list[str]:
    conn = DatabaseConnection(DBConfig.from_mapping(db_config)).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
