"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging.config
import os
from pathlib import Path
from typing import Any

import structlog

_LOGGING_INITIALISED = False

JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _default_log_dir() -> Path:
    env_root = os.environ.get("PAGEWATCH_HOME")
    if env_root:
        return Path(env_root).expanduser().resolve() / "logs"
    return Path.cwd() / "logs"


def _file_handler(path: Path, level: str) -> dict[str, Any]:
    return {
        "class": "logging.FileHandler",
        "level": level,
        "filename": str(path),
        "formatter": "json",
        "encoding": "utf-8",
    }


def _logging_dict(log_dir: Path, verbose: bool) -> dict[str, Any]:
    level = "DEBUG" if verbose else "INFO"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": "pythonjsonlogger.jsonlogger.JsonFormatter", "fmt": JSON_FORMAT},
        },
        "handlers": {
            # Warnings only on the terminal unless --verbose; record banners own stdout
            "console": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "level": level if verbose else "WARNING",
                "formatter": "json",
            },
            "app_file": _file_handler(log_dir / "pagewatch.log", level),
            "error_file": _file_handler(log_dir / "error.log", "ERROR"),
        },
        "loggers": {
            "pagewatch": {
                "handlers": ["console", "app_file", "error_file"],
                "level": level,
                "propagate": False,
            },
        },
    }


def configure_logging(verbose: bool = False, log_dir: Path | None = None) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger.

    Only the first call takes effect; later calls return the same logger.
    """

    global _LOGGING_INITIALISED

    if not _LOGGING_INITIALISED:
        log_dir = log_dir or _default_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        logging.config.dictConfig(_logging_dict(log_dir, verbose))
        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger("pagewatch")


def source_logger(source_name: str) -> structlog.BoundLogger:
    """Return a logger bound to a specific source."""

    return structlog.get_logger(f"pagewatch.source.{source_name}").bind(source=source_name)


__all__ = ["configure_logging", "source_logger"]
