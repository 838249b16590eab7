from __future__ import annotations

import logging
import logging.handlers
import os
import sys

import structlog


def configure_logging(level: str = "INFO", log_file: str = "") -> None:
    """Route structlog through stdlib logging, to stdout and optionally a daily log file."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        path = os.path.expandvars(os.path.expanduser(log_file))
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        handlers.append(logging.handlers.TimedRotatingFileHandler(path, when="midnight", encoding="utf-8"))
    logging.basicConfig(format="%(message)s", handlers=handlers, level=log_level, force=True)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str):
    return structlog.get_logger(name)
