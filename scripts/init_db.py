from __future__ import annotations

import argparse
import importlib
from pathlib import Path

from dotenv import load_dotenv

from attendance_workflow.config import get_settings_module
from attendance_workflow.database.bootstrap import apply_schema, ensure_demo_users, list_tables


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply database/schema.sql to the configured MySQL database.")
    parser.add_argument("--demo-users", action="store_true", help="also insert a demo team, manager and employee")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    schema_path = Path(__file__).resolve().parents[1] / "database" / "schema.sql"
    apply_schema(db_config, schema_path=schema_path)
    if args.demo_users:
        ensure_demo_users(db_config)

    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
