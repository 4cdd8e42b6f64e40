"""
HNMirror Logging Configuration
=============================

Console and rotating-file logging for interactive commands and the
long-running scheduler service. Records carry the component, subreddit
and cycle id of the code that emitted them.
"""

import json
import logging
import logging.handlers
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

# Attributes every LogRecord has; anything else came in through ``extra``
_STANDARD_ATTRS = set(vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))) | {
    "message",
    "asctime",
    "taskName",
}

_CONTEXT_FIELDS = ("component", "subreddit", "cycle_id")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record; context fields are promoted to the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        extra = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}
        for name in _CONTEXT_FIELDS:
            if name in extra:
                payload[name] = extra.pop(name)
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Short colored lines for a terminal, tagged with the running cycle."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        stamp = time.strftime("%H:%M:%S", time.localtime(record.created))
        cycle = getattr(record, "cycle_id", None)
        tag = f" [{cycle}]" if cycle else ""

        line = (
            f"{color}[{stamp}] {record.levelname:8}{self.RESET} "
            f"{record.name}{tag} - {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _rotating_file_handler(log_file: str, max_bytes: int, backup_count: int) -> logging.Handler:
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setFormatter(StructuredFormatter())
    return handler


def setup_logger(
    name: str = "hnmirror",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> logging.Logger:
    """Replace the handlers of logger ``name``.

    The log file, when given, always receives JSON lines; the console gets
    JSON only when ``structured`` is set.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level.upper())
    logger.handlers.clear()

    if console:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter() if structured else ColoredConsoleFormatter())
        logger.addHandler(handler)

    if log_file:
        logger.addHandler(_rotating_file_handler(log_file, max_file_size, backup_count))

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Adds the adapter's context to every record; per-call ``extra`` wins on conflicts."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger_for_component(
    component_name: str,
    subreddit: Optional[str] = None,
    cycle_id: Optional[str] = None,
) -> LoggerAdapter:
    """Logger named ``hnmirror.<component_name>`` carrying run context."""
    context = {"component": component_name}
    if subreddit:
        context["subreddit"] = subreddit
    if cycle_id:
        context["cycle_id"] = cycle_id

    return LoggerAdapter(logging.getLogger(f"hnmirror.{component_name}"), context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/hnmirror.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the ``hnmirror`` logger tree and quiet third-party loggers."""
    setup_logger(
        name="hnmirror",
        level=log_level,
        log_file=log_file,
        console=enable_console,
        structured=structured_logging,
        max_file_size=max_file_size_mb * 1024 * 1024,
        backup_count=backup_count,
    )

    for noisy in ("urllib3", "prawcore", "praw", "aiohttp", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class PerformanceLogger:
    """Times a block and logs its outcome; ``duration`` is set on exit."""

    def __init__(self, logger: logging.Logger, operation: str, **context):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.duration: Optional[float] = None
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._started
        extra = {**self.context, "duration_seconds": self.duration, "success": exc_type is None}

        if exc_type:
            self.logger.error(f"Failed {self.operation} in {self.duration:.3f}s", extra=extra)
        else:
            self.logger.info(f"Completed {self.operation} in {self.duration:.3f}s", extra=extra)
