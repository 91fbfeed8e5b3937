"""Process-wide logging setup."""

from __future__ import annotations

import logging
import logging.config
from typing import Optional

from app.config import get_settings

ROOT_LOGGER_NAME = "whatspanel"

_configured = False


class LoggingConfig:
    """Configure stdlib logging once per process (level from LOG_LEVEL)."""

    def __init__(self, level: Optional[str] = None) -> None:
        global _configured
        if _configured:
            return
        level = (level or get_settings().log_level or "INFO").upper()
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "default": {
                        "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                        "datefmt": "%H:%M:%S",
                    },
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "formatter": "default",
                    },
                },
                "loggers": {
                    ROOT_LOGGER_NAME: {
                        "handlers": ["console"],
                        "level": level,
                        "propagate": True,
                    },
                    "app": {
                        "handlers": ["console"],
                        "level": level,
                        "propagate": True,
                    },
                },
            }
        )
        _configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the service namespace."""
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
