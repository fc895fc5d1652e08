"""
Logging setup for the ghx command line.

All log output goes to stderr; stdout is reserved for command output (tables
or JSON). Two console styles are available:

    - ContextFormatter: "time | LEVEL | logger | message", coloured on a TTY
    - JSONFormatter: one JSON object per line, including structured extras

An optional log file always receives JSON lines. GitHub tokens that end up in
a message are masked before any handler sees them.

Usage:
    from ghx.core.logging_config import get_logger, log_with_context

    logger = get_logger(__name__)
    log_with_context(logger, "info", "Bulk operation started", operation_id="bulk_1a2b", total_items=42)
"""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO/DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")

# Classic, fine-grained and OAuth GitHub token shapes
_TOKEN_PATTERN = re.compile(r"\b(gh[pousr]_[A-Za-z0-9]{16,}|github_pat_[A-Za-z0-9_]{20,})\b")

# Attributes present on every LogRecord; anything else came from extra={...}
_RESERVED_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def redact_tokens(text: str) -> str:
    """
    Mask GitHub tokens in a string.

    Example:
        >>> redact_tokens("token ghp_abcdefghijklmnopqrstuvwxyz rejected")
        'token ghp_**** rejected'
    """
    return _TOKEN_PATTERN.sub(lambda match: match.group(0)[: match.group(0).index("_") + 1] + "****", text)


class TokenRedactingFilter(logging.Filter):
    """Rewrites record messages so credentials never reach a handler."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_tokens(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields passed through ``log_with_context`` (``extra_fields``) and plain
    ``extra={...}`` keys are merged at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key != "extra_fields" and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class ContextFormatter(logging.Formatter):
    """Human-readable console format with level colours on a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if sys.stderr.isatty():
            record.levelname = f"{self.COLORS.get(levelname, '')}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _console_formatter(json_output: bool) -> logging.Formatter:
    if json_output:
        return JSONFormatter()
    return ContextFormatter(fmt=CONSOLE_FORMAT, datefmt=CONSOLE_DATE_FORMAT)


def setup_logging(
    level: str = "INFO",
    log_file: Path | None = None,
    json_output: bool = False,
) -> None:
    """
    Configure the root logger for one ghx invocation.

    Replaces any existing root handlers, so calling it twice is safe.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown values fall back to INFO)
        log_file: Also write JSON lines here (parent directories are created)
        json_output: Use JSONFormatter on stderr instead of the readable format

    Example:
        setup_logging(level="DEBUG")
        setup_logging(level="INFO", log_file=Path(".ghx/logs/ghx.log"), json_output=True)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    redactor = TokenRedactingFilter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(_console_formatter(json_output))
    console_handler.addFilter(redactor)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(JSONFormatter())
        file_handler.addFilter(redactor)
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Module logger; call with ``__name__``."""
    return logging.getLogger(name)


def log_with_context(logger: logging.Logger, level: str, message: str, **context: Any) -> None:
    """
    Log a message with structured fields.

    The fields appear as top-level keys in JSON output and are ignored by the
    readable console format.

    Example:
        log_with_context(logger, "warning", "Bulk operation finished", operation_id="bulk_1a2b", failed_items=2)
    """
    log_func = getattr(logger, level.lower())
    log_func(message, extra={"extra_fields": context})
