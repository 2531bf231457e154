"""Logging configuration for the InfoDot engine."""

from __future__ import annotations

import logging

from infodot_engine.core.settings import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(config: Settings) -> None:
    """Configure the root logger from settings.

    Service modules log through ``logging.getLogger(__name__)``; this only sets
    the level and format once per process.
    """
    level = logging.DEBUG if config.debug else config.log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    if config.sql_debug:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
