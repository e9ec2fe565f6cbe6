from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .container import Container, build_container
from .core.constants import DEFAULT_BUSINESS_TIMEZONE
from .database.bootstrap import DEFAULT_SCHEMA_PATH, apply_schema, list_tables
from .labels.controller import register as register_labels
from .projects.controller import register as register_projects
from .stats.controller import register as register_stats
from .tasks.controller import register as register_tasks

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def resolve_schema_path(settings) -> Path:
    """SCHEMA_PATH from settings, else the schema.sql shipped with the package."""
    return Path(getattr(settings, "SCHEMA_PATH", None) or DEFAULT_SCHEMA_PATH)


def create_app(container: Optional[Container] = None) -> Flask:
    """App factory. Tests pass a container wired with in-memory repositories."""
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["BUSINESS_TIMEZONE"] = getattr(settings, "BUSINESS_TIMEZONE", DEFAULT_BUSINESS_TIMEZONE)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

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

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=resolve_schema_path(settings))
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))

        container = build_container(db_config=db_config, timezone=app.config["BUSINESS_TIMEZONE"])

    register_tasks(app, container)
    register_projects(app, container)
    register_stats(app, container)
    register_labels(app, container)

    return app
