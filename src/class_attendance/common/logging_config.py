from __future__ import annotations

import logging.config


def configure_logging(level: str = "INFO") -> None:
    """Console logging; the package logger follows LOG_LEVEL, everything else WARNING."""

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                },
            },
            "root": {"handlers": ["console"], "level": "WARNING"},
            "loggers": {
                "class_attendance": {"level": str(level).upper()},
            },
        }
    )
