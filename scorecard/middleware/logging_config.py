"""
Structured logging configuration.

Two output shapes, chosen from the app config:
    - DEBUG or TESTING  → one readable, coloured line per record
    - otherwise         → one JSON object per line for the log shipper

``LOG_LEVEL`` wins when set; the fallback is INFO for JSON output and
DEBUG for readable output.
"""

import json
import logging
import sys
from datetime import datetime, timezone

# Attributes the timing middleware passes via ``extra=``
REQUEST_FIELDS = ("request_id", "method", "path", "status", "duration_ms", "remote_addr")

# Third-party loggers held at WARNING
QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine", "urllib3", "httpx", "openai", "openpyxl")


def _request_fields(record: logging.LogRecord) -> dict:
    return {
        name: getattr(record, name)
        for name in REQUEST_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """Single-line JSON records."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(_request_fields(record))
        if record.exc_info and record.exc_info[0] is not None:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Coloured ``HH:MM:SS LEVEL logger [rid] message (12ms)`` lines."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        fields = _request_fields(record)
        parts = [
            datetime.fromtimestamp(record.created).strftime("%H:%M:%S"),
            f"{self.LEVEL_COLORS.get(record.levelno, '')}{record.levelname:<7}{self.RESET}",
            record.name,
        ]
        if "request_id" in fields:
            parts.append(f"[{fields['request_id']}]")
        line = " ".join(parts) + f" {record.getMessage()}"
        if "duration_ms" in fields:
            line += f" ({fields['duration_ms']:.0f}ms)"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install one stderr handler on the root logger for ``app``."""
    readable = app.config.get("DEBUG", False) or app.config.get("TESTING", False)
    level_name = str(app.config.get("LOG_LEVEL") or ("DEBUG" if readable else "INFO")).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ReadableFormatter() if readable else JSONFormatter())
    handler.setLevel(level)

    root = logging.getLogger()
    # create_app() may run more than once per process (tests, CLI)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not app.config.get("TESTING", False):
        app.logger.info("Logging ready: level=%s output=%s", level_name, "text" if readable else "json")
