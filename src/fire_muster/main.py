from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.logging_setup import configure_logging
from .container import Container, build_container, build_memory_container
from .core.constants import SESSION_PAGE_SIZE, SSE_KEEPALIVE_SECONDS
from .database.bootstrap import apply_schema, ensure_demo_roster, list_tables
from .drills.controller import register as register_drills
from .employees.controller import register as register_employees
from .errors import register_error_handlers
from .marshals.controller import register as register_marshals
from .realtime.controller import register as register_events

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def _build_store(settings, page_size: int) -> Container:
    backend = str(getattr(settings, "STORE_BACKEND", "mysql")).lower()
    if backend == "memory":
        logger.info("Using in-memory store")
        return build_memory_container(page_size=page_size)

    db_config = dict(getattr(settings, "DB_CONFIG"))
    logger.info(
        "Using MySQL store %s@%s:%s/%s",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )
    if getattr(settings, "AUTO_INIT_DB", False):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if getattr(settings, "AUTO_SEED_DB", False):
        ensure_demo_roster(db_config)
        logger.info("Demo roster ready")
    return build_container(db_config=db_config, page_size=page_size)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_FILE", None))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["SSE_KEEPALIVE_SECONDS"] = float(getattr(settings, "SSE_KEEPALIVE_SECONDS", SSE_KEEPALIVE_SECONDS))
    page_size = int(getattr(settings, "SESSION_PAGE_SIZE", SESSION_PAGE_SIZE))
    logger.info("Starting fire-muster (settings=%s)", settings_module)

    container = container or _build_store(settings, page_size)
    app.extensions["fire_muster"] = container

    register_error_handlers(app)
    register_marshals(app, container)
    register_employees(app, container)
    register_drills(app, container)
    register_attendance(app, container)
    register_events(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok", "subscribers": container.feed.subscriber_count})

    return app
