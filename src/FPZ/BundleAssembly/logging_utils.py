"""Structured logging helpers shared across bundle assembly components."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from .settings import LoggingSettings

__all__ = ["LOGGER_NAME", "ConsoleFormatter", "JSONFormatter", "get_logger", "setup_logging"]

LOGGER_NAME = "FPZ.BundleAssembly"

_STRUCTURED_FIELDS = ("stage", "component_id", "url", "path", "files")


class ConsoleFormatter(logging.Formatter):
    """Render records as ``[YYYY-MM-DD HH:MM] message`` progress lines."""

    def __init__(self) -> None:
        super().__init__(fmt="[%(asctime)s] %(message)s", datefmt="%Y-%m-%d %H:%M")


class JSONFormatter(logging.Formatter):
    """Formatter emitting one JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        """Render ``record`` as a JSON string with bundle-specific fields."""

        now = datetime.now(timezone.utc)
        payload = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _STRUCTURED_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def get_logger(suffix: Optional[str] = None) -> logging.Logger:
    """Return the package logger, or a child logger when ``suffix`` is given."""

    if suffix:
        return logging.getLogger(f"{LOGGER_NAME}.{suffix}")
    return logging.getLogger(LOGGER_NAME)


def setup_logging(
    settings: Optional[LoggingSettings] = None,
    *,
    propagate: bool = False,
) -> logging.Logger:
    """Configure console output and the optional log file.

    The log file repeats the console line format, matching the legacy
    ``LogFile`` behaviour, unless ``emit_json_logs`` asks for JSON lines.

    Handlers installed by a previous call are removed first so repeated CLI
    invocations within one process do not duplicate output.
    """

    cfg = settings or LoggingSettings()
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(cfg.level_int())

    for handler in list(logger.handlers):
        if getattr(handler, "_fpz_managed", False):
            logger.removeHandler(handler)
            if isinstance(handler, logging.StreamHandler) and getattr(
                handler, "stream", None
            ) in (sys.stdout, sys.stderr):
                continue
            handler.close()

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(ConsoleFormatter())
    stream_handler._fpz_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    if cfg.log_file:
        log_path = cfg.log_path.expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
        file_handler.setFormatter(JSONFormatter() if cfg.emit_json_logs else ConsoleFormatter())
        file_handler._fpz_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = propagate
    return logger
