"""Logging helpers for nai-cli."""
from __future__ import annotations

import logging
from logging.config import dictConfig


def configure_logging(debug: bool = False) -> None:
    """Configure global logging; diagnostics go to stderr so stdout stays clean."""

    level = logging.DEBUG if debug else logging.WARNING
    log_format = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": log_format,
                }
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "level": level,
                    "formatter": "standard",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )

    # httpx logs every request at INFO; keep it quiet unless debugging.
    logging.getLogger("httpx").setLevel(logging.DEBUG if debug else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.INFO if debug else logging.WARNING)


__all__ = ["configure_logging"]
