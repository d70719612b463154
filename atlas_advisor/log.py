"""Structured stdout logging: key=value text or JSON lines carrying per-record fields."""

import json
import logging
import os
import sys
from typing import Optional

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("LOG_FORMAT", "text").lower()

# Attribute on a LogRecord carrying the structured fields of a log line
FIELDS_ATTR = "fields"


def _format_value(value) -> str:
    text = value if isinstance(value, str) else json.dumps(value)
    if not text or any(c in text for c in ' ="'):
        return json.dumps(text)
    return text


class FieldsFormatter(logging.Formatter):
    """Text lines of the form: <time> <LEVEL> <message> key=value ..."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = getattr(record, FIELDS_ATTR, None) or {}
        if fields:
            pairs = " ".join(f"{k}={_format_value(fields[k])}" for k in sorted(fields))
            line = f"{line} {pairs}"
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per line, fields merged at the top level"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "msg": record.getMessage(),
        }
        entry.update(getattr(record, FIELDS_ATTR, None) or {})
        if record.exc_info:
            entry["error"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def make_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    if fmt == "text":
        return FieldsFormatter()
    raise ValueError(f"Unknown log format: {fmt}")


def get_logger(name: str = "atlas_advisor", level: Optional[str] = None,
               fmt: Optional[str] = None, stream=None) -> logging.Logger:
    """
    Get a logger writing structured lines to stdout.

    The handler is installed once; later calls return the same logger
    untouched unless a level or format is passed explicitly.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(make_formatter(fmt or LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel((level or LOG_LEVEL).upper())
    else:
        if level:
            logger.setLevel(level.upper())
        if fmt:
            for handler in logger.handlers:
                handler.setFormatter(make_formatter(fmt))
    return logger


def with_fields(**fields) -> dict:
    """Build the ``extra`` argument for a structured log call"""
    return {FIELDS_ATTR: fields}
