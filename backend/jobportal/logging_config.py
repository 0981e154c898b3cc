from __future__ import annotations

import logging.config


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {"format": "[{levelname}] {asctime} {name}: {message}", "style": "{"},
            },
            "handlers": {
                "console": {"class": "logging.StreamHandler", "formatter": "standard"},
            },
            "loggers": {
                "jobportal": {"level": level.upper(), "propagate": True},
            },
            "root": {"handlers": ["console"], "level": level.upper()},
        }
    )
