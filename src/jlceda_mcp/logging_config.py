"""Logging setup for the jlceda-mcp server.

Log records go to stderr; stdout belongs to the MCP stdio transport.
Records emitted inside ``request_context()`` carry a shared id, so the
lines of one auto-placement run can be grepped together.
"""

from __future__ import annotations

import logging
import os
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)

_NOISY_LOGGERS = ("websockets", "asyncio")


def get_request_id() -> str | None:
    """Get the current request ID if available."""
    return request_id_ctx.get()


@contextmanager
def request_context(request_id: str | None = None) -> Iterator[str]:
    """Tag records logged inside the block with ``request_id`` (random if omitted)."""
    rid = request_id or uuid.uuid4().hex[:8]
    token = request_id_ctx.set(rid)
    try:
        yield rid
    finally:
        request_id_ctx.reset(token)


class _RequestIdFilter(logging.Filter):
    """Fill ``request_id`` on records from plain loggers (backends, libraries)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id() or "-"
        return True


def setup_logging(
    level: int | str | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """Configure the root logger with a single stderr handler.

    Args:
        level: Logging level. Defaults to the LOGGING_LEVEL env var or 'INFO'.
        format_string: Custom log format string.

    Returns:
        The root logger.
    """
    if level is None:
        level = os.environ.get("LOGGING_LEVEL", "INFO")
    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] [%(name)s] [request=%(request_id)s] %(message)s"

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    handler.addFilter(_RequestIdFilter())
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel("WARNING")
        logging.getLogger(name).propagate = False

    return root


class RequestLoggerAdapter(logging.LoggerAdapter[Any]):
    """Adds the current request id to every record."""

    def process(self, msg: str, kwargs: Any) -> tuple[str, Any]:
        request_id = get_request_id()
        if request_id is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "request_id": request_id}
        return msg, kwargs


def create_logger(name: str) -> RequestLoggerAdapter:
    """Module-level logger with request context support (pass ``__name__``)."""
    return RequestLoggerAdapter(logging.getLogger(name), {})
