from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .common.logging_utils import setup_json_logging
from .common.web import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, list_tables
from .reports.controller import register as register_reports
from .requests.controller import register as register_requests

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if not app.config["TESTING"]:
        setup_json_logging(logging.DEBUG if app.config["DEBUG"] else logging.INFO)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "Starting attendance workflow",
            extra={
                "settings": settings_module,
                "db": f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}",
            },
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("Schema ready", extra={"tables": len(list_tables(db_config))})
        container = build_container(db_config=db_config)

    app.extensions["attendance_workflow"] = container

    register_error_handlers(app)
    register_attendance(app, container)
    register_requests(app, container)
    register_reports(app, container)

    return app
