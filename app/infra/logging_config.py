"""Process-wide logging setup."""

from __future__ import annotations

import logging
import sys

from app.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "outreach"


class LoggingConfig:
    """Configure the root handler once; level comes from LOG_LEVEL."""

    _configured = False

    def __init__(self, level: str | None = None) -> None:
        if LoggingConfig._configured:
            return
        level_name = (level or get_settings().log_level).upper()
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(getattr(logging, level_name, logging.INFO))
        LoggingConfig._configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the application root."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
