from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .assignments.controller import register as register_assignments
from .common.http import register_error_handlers
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema
from .logging_config import setup_logging
from .presences.controller import register as register_presences
from .teams.controller import register as register_teams
from .users.controller import register as register_users
from .workspace.controller import register as register_workspace

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    setup_logging(getattr(settings, "LOG_LEVEL", "INFO"), getattr(settings, "LOG_DIR", "logs"))

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        container = build_container(
            db_config=db_config,
            upcoming_window=int(getattr(settings, "UPCOMING_WINDOW", 10)),
            require_team_admin=bool(getattr(settings, "REQUIRE_TEAM_ADMIN", True)),
            override_policy=str(getattr(settings, "PRESENCE_OVERRIDE_POLICY", "clear")),
        )
        if bool(getattr(settings, "AUTO_INIT_DB", False)) and container.conn is not None:
            apply_schema(container.conn, schema_path=SCHEMA_PATH)

    app.extensions["ensemble_workspace"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_teams(app, container)
    register_assignments(app, container)
    register_presences(app, container)
    register_workspace(app, container)

    return app
