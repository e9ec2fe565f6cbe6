"""Daily job: purge completed tasks from previous days and create today's
instances of every daily-recurring template.

Intended for cron, shortly after midnight in the business timezone, e.g.
``5 0 * * * APP_ENV=production python scripts/run_daily_tasks.py``.
Reads keep doing the same work lazily, so a missed run is harmless.
"""
from __future__ import annotations

import importlib

from dotenv import load_dotenv

from config import get_settings_module

from backoffice_tasks.container import build_container
from backoffice_tasks.main import configure_logging


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    container = build_container(db_config=dict(settings.DB_CONFIG), timezone=settings.BUSINESS_TIMEZONE)
    result = container.task_service.run_daily_maintenance()
    print(
        f"OK: {result.date_key} purged={result.expired_deleted} "
        f"created={result.instances_created}"
    )


if __name__ == "__main__":
    main()
