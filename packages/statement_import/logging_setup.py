"""Logging for the ``statement_import`` package.

Every log line is an *event*: a ``stage:action`` name followed by
``key=value`` fields, e.g. ``parse:done transactions=7 skipped=0 ai_used=no``.
Library modules emit them through :func:`log_event`; fields are rendered only
when the level is enabled.

- ``configure_logging(...)``: attach the package's stream handler to the
  ``"statement_import"`` logger. Calling it again replaces that handler, so
  the CLI (or a test) can re-point output without stacking handlers.
- ``get_logger(name)``: acquire a module logger; until output is configured
  the package logger carries a ``NullHandler``.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import Mapping
from decimal import Decimal
from typing import IO, Any

_PKG_LOGGER_NAME = "statement_import"
_LEVEL_ENV = "STATEMENT_IMPORT_LOG_LEVEL"
_HANDLER_NAME = "statement_import.stream"
_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv(_LEVEL_ENV) or "INFO"
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = logging.getLevelName(name)
    return numeric if isinstance(numeric, int) else logging.INFO


# ---------------------------------------------------------------------------
# Event fields
# ---------------------------------------------------------------------------


def _render_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float):
        return f"{value:.2f}"
    if isinstance(value, Decimal):
        return format(value, "f")
    text = str(value)
    # Quote anything that would split into more than one field.
    if not text or any(c.isspace() or c in '="' for c in text):
        return json.dumps(text, ensure_ascii=False)
    return text


class EventFields:
    """Lazily rendered ``key=value`` pairs; insertion order is kept."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, Any]) -> None:
        self._fields = dict(fields)

    def __str__(self) -> str:
        return " ".join(f"{k}={_render_value(v)}" for k, v in self._fields.items())


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Log ``event`` followed by its ``fields`` at ``level``.

    ``log_event(_logger, logging.INFO, "parse:merged", duplicates=2)`` logs
    ``parse:merged duplicates=2``.
    """

    if not logger.isEnabledFor(level):
        return
    if fields:
        logger.log(level, "%s %s", event, EventFields(fields))
    else:
        logger.log(level, "%s", event)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def configure_logging(
    level: int | str | None = None,
    *,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Send package events to ``stream`` (``sys.stderr`` by default).

    Parameters
    ----------
    level:
        Level as ``int`` or name. ``None`` reads ``STATEMENT_IMPORT_LOG_LEVEL``,
        then falls back to ``INFO``. Unknown names also mean ``INFO``.
    stream:
        Destination for the handler.

    Returns the installed handler.
    """

    logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler) or h.get_name() == _HANDLER_NAME:
            logger.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(_FORMAT))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    # Events go to our handler only; a host's root handler would duplicate them.
    logger.propagate = False
    return handler


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["EventFields", "configure_logging", "get_logger", "log_event"]
