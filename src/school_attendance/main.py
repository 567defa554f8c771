from __future__ import annotations

import importlib
import logging
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .core.constants import TOKEN_TTL_HOURS
from .database.bootstrap import apply_schema, ensure_demo_accounts, list_tables
from .database.connection import DBConfig
from .logging_setup import configure_logging
from .qr_sessions.controller import register as register_qr_sessions
from .users.controller import register as register_users

logger = logging.getLogger(__name__)


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    configure_logging(app.config["DEBUG"])
    if app.config["DEBUG"]:
        logger.debug("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config)
            logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_accounts(db_config)
            logger.info("Demo accounts ready")

        container = build_container(
            db_config=db_config,
            jwt_secret=getattr(settings, "JWT_SECRET", app.secret_key),
            jwt_ttl_hours=int(getattr(settings, "JWT_TTL_HOURS", TOKEN_TTL_HOURS)),
        )

    container.notifications.init_app(app, allowed_origins=getattr(settings, "ALLOWED_ORIGINS", ()))
    app.extensions["school_attendance"] = container

    register_users(app, container)
    register_attendance(app, container)
    register_qr_sessions(app, container)

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok", "message": "School Attendance System API is running"})

    return app
