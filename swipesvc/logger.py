"""Logging setup for the service and helpers for values that describe themselves in logs."""

from __future__ import annotations

import json
import logging
import sys
import uuid
from datetime import datetime
from typing import Any

ROOT_LOGGER = "swipesvc"

_LEVELS = {"INFO": logging.INFO, "WARN": logging.WARNING, "ERROR": logging.ERROR}
_NAMES = {logging.DEBUG: "DEBUG", logging.INFO: "INFO", logging.WARNING: "WARN"}
_TAGS = {
    logging.DEBUG: "DBG",
    logging.INFO: "\033[92mINF\033[0m",
    logging.WARNING: "\033[93mWRN\033[0m",
}
_DIM, _RESET = "\033[2m", "\033[0m"


class Secret(str):
    """A string that never shows its content in logs."""

    def log_value(self) -> str:
        return "[REDACTED]" if self else "[EMPTY]"

    def __repr__(self) -> str:
        return f"Secret({self.log_value()!r})"


def _resolve(value: Any) -> Any:
    """Turn a value into plain data suitable for a log record."""
    log_value = None if isinstance(value, type) else getattr(value, "log_value", None)
    if callable(log_value):
        return _resolve(log_value())
    if isinstance(value, dict):
        return {str(key): _resolve(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_resolve(item) for item in value]
    if isinstance(value, (uuid.UUID, BaseException)):
        return str(value)
    return value


def nullable(value: Any) -> Any:
    """Log form of an optional value: None stays None, anything else is resolved."""
    return None if value is None else _resolve(value)


def _fields(record: logging.LogRecord) -> dict[str, Any]:
    fields = _resolve(getattr(record, "fields", None) or {})
    prefix = ROOT_LOGGER + "."
    if fields and record.name.startswith(prefix):
        for group in reversed(record.name[len(prefix):].split(".")):
            fields = {group: fields}
    return fields


def _flatten(fields: dict[str, Any], prefix: str = ""):
    for key, value in fields.items():
        if isinstance(value, dict):
            yield from _flatten(value, f"{prefix}{key}.")
        else:
            yield f"{prefix}{key}", value


def _text_value(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    text = "<nil>" if value is None else str(value)
    if not text or any(char.isspace() or char in '"=' for char in text):
        return json.dumps(text)
    return text


class _Formatter(logging.Formatter):
    def __init__(self, text: bool, add_source: bool) -> None:
        super().__init__()
        self._text = text
        self._add_source = add_source

    def format(self, record: logging.LogRecord) -> str:
        if self._text:
            parts = [
                _DIM + datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f") + _RESET,
                _TAGS.get(record.levelno, "\033[91mERR\033[0m"),
            ]
            if self._add_source:
                parts.append(f"{_DIM}{record.filename}:{record.lineno}{_RESET}")
            parts.append(record.getMessage())
            parts.extend(
                f"{_DIM}{key}={_RESET}{_text_value(value)}"
                for key, value in _flatten(_fields(record))
            )
            line = " ".join(parts)
            if record.exc_info:
                line += "\n" + self.formatException(record.exc_info)
            return line

        entry: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": _NAMES.get(record.levelno, "ERROR"),
        }
        if self._add_source:
            entry["source"] = {
                "function": record.funcName,
                "file": record.pathname,
                "line": record.lineno,
            }
        entry["msg"] = record.getMessage()
        entry.update(_fields(record))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def init_logger(fmt: str | None, level: str | None) -> logging.Logger:
    """Configure and return the service logger.

    ``fmt`` is ``TEXT`` for coloured text, anything else for JSON lines.
    ``level`` is ``INFO``, ``WARN`` or ``ERROR``; anything else means debug
    with source locations.
    """
    fmt = (fmt or "").upper()
    level = (level or "").upper()
    log_level = _LEVELS.get(level, logging.DEBUG)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_Formatter(fmt == "TEXT", level not in _LEVELS))

    log = logging.getLogger(ROOT_LOGGER)
    for old in list(log.handlers):
        log.removeHandler(old)
    log.addHandler(handler)
    log.setLevel(log_level)
    log.propagate = False

    log.info("Init logger", extra={"fields": {"config": {"format": fmt, "level": level}}})
    return log