"""
Event-style structured logging on top of the standard library.

Every line is an event name plus key=value context::

    info gateway request_completed method=GET path=/index.html status=200

[Logger][nostrgate.core.logger.Logger] attaches the context to the record as
``structured_kv``; [StructuredFormatter][nostrgate.core.logger.StructuredFormatter]
renders it. Modules below the core layer log through plain
``logging.getLogger(__name__)`` with the context already in the message, and
get the same prefix from the formatter.

Record content and tracebacks can be long, so values are cut at
``max_value_length`` characters.

Examples:
    ```python
    logger = Logger("resolver")
    logger.info("pointer_resolved", pointer="naddr1...", kind=30051)

    Logger("resolver", json_output=True).info("pointer_resolved", kind=30051)
    # {"timestamp": "...", "level": "info", "service": "resolver", ...}
    ```
"""

import datetime
import json
import logging
from typing import Any


DEFAULT_MAX_VALUE_LENGTH = 1000

_NEEDS_QUOTES = frozenset(" =\"'")


def _truncate(value: str, limit: int | None) -> str:
    if not limit or len(value) <= limit:
        return value
    return f"{value[:limit]}...<truncated {len(value) - limit} chars>"


def _render_value(value: Any, limit: int | None) -> str:
    text = _truncate(str(value), limit)
    if text and not _NEEDS_QUOTES.intersection(text):
        return text
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def format_kv_pairs(
    kwargs: dict[str, Any],
    max_value_length: int | None = DEFAULT_MAX_VALUE_LENGTH,
    prefix: str = " ",
) -> str:
    """Render *kwargs* as ``key=value`` pairs joined by spaces.

    Empty values and values containing spaces, ``=`` or quotes are wrapped
    in double quotes. An empty mapping renders as ``""`` without *prefix*.
    """
    if not kwargs:
        return ""
    pairs = (f"{k}={_render_value(v, max_value_length)}" for k, v in kwargs.items())
    return prefix + " ".join(pairs)


class StructuredFormatter(logging.Formatter):
    """Render records as ``level logger-name message key=value ...``."""

    def format(self, record: logging.LogRecord) -> str:
        context: dict[str, Any] = getattr(record, "structured_kv", {})
        return (
            f"{record.levelname.lower()} {record.name} {record.getMessage()}"
            f"{format_kv_pairs(context)}"
        )


class Logger:
    """Logger whose methods take an event name plus keyword context.

    Args:
        name: Name of the underlying ``logging.Logger``; services pass their
            ``SERVICE_NAME``.
        json_output: Emit one JSON object per line instead of key=value.
        max_value_length: Cut-off for a single value; ``None`` means 1000.
    """

    def __init__(
        self,
        name: str,
        *,
        json_output: bool = False,
        max_value_length: int | None = None,
    ) -> None:
        self._logger = logging.getLogger(name)
        self._json_output = json_output
        self._max_value_length = (
            DEFAULT_MAX_VALUE_LENGTH if max_value_length is None else max_value_length
        )

    def _emit(self, level: int, event: str, context: dict[str, Any], exc_info: bool) -> None:
        if self._json_output:
            payload = {
                "timestamp": datetime.datetime.now(datetime.UTC).isoformat(),
                "level": logging.getLevelName(level).lower(),
                "service": self._logger.name,
                "message": event,
                **context,
            }
            self._logger.log(level, json.dumps(payload, default=str), exc_info=exc_info)
            return

        extra = {}
        if context:
            extra["structured_kv"] = {
                k: _truncate(str(v), self._max_value_length)
                if len(str(v)) > self._max_value_length
                else v
                for k, v in context.items()
            }
        self._logger.log(level, event, extra=extra, exc_info=exc_info)

    def debug(self, event: str, **context: Any) -> None:
        self._emit(logging.DEBUG, event, context, False)

    def info(self, event: str, **context: Any) -> None:
        self._emit(logging.INFO, event, context, False)

    def warning(self, event: str, **context: Any) -> None:
        self._emit(logging.WARNING, event, context, False)

    def error(self, event: str, **context: Any) -> None:
        self._emit(logging.ERROR, event, context, False)

    def critical(self, event: str, **context: Any) -> None:
        self._emit(logging.CRITICAL, event, context, False)

    def exception(self, event: str, **context: Any) -> None:
        """Log at ERROR with the active traceback attached."""
        self._emit(logging.ERROR, event, context, True)
