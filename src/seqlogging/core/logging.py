"""Logging helpers for seqlogging."""
from __future__ import annotations

from logging.config import dictConfig
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..shipping.logger import SeqLogger


DEFAULT_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        }
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def setup_logging(level: str = "INFO", seq_logger: Optional["SeqLogger"] = None) -> None:
    """Configure process logging using dictConfig, optionally forwarding records to Seq."""

    config = DEFAULT_LOGGING_CONFIG.copy()
    handlers = dict(config["handlers"])
    root_handlers = list(config["root"]["handlers"])
    if seq_logger is not None:
        handlers["seq"] = {
            "()": "seqlogging.shipping.handler.SeqHandler",
            "seq_logger": seq_logger,
        }
        root_handlers.append("seq")
    config = {**config, "handlers": handlers, "root": {"level": level.upper(), "handlers": root_handlers}}
    dictConfig(config)
