"""
Structured logging for the image cache.

Library modules log through get_logger(), which returns a ContextLogger that
accepts keyword fields. The URI and operation being handled are carried in
context variables set by log_context() and shown in front of each console
line.

Importing the package configures nothing: the "imgcache" logger only has a
NullHandler until setup_logging() attaches the rich console handler.
CacheCoordinator.from_settings() calls it with Settings.LOG_LEVEL.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Generator

from rich.console import Console, ConsoleRenderable
from rich.logging import RichHandler
from rich.text import Text

ROOT_LOGGER = "imgcache"

# Longest URI tail shown in the console prefix
MAX_URI_WIDTH = 40

_uri_var: ContextVar[str | None] = ContextVar("uri", default=None)
_operation_var: ContextVar[str | None] = ContextVar("operation", default=None)

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def get_uri() -> str | None:
    """Get the URI currently being handled from context."""
    return _uri_var.get()


def get_operation() -> str | None:
    """Get the current cache operation from context."""
    return _operation_var.get()


@contextmanager
def log_context(
    uri: str | None = None,
    operation: str | None = None,
) -> Generator[None, None, None]:
    """Set the URI and/or operation for log calls made inside the block."""
    tokens = []
    if uri is not None:
        tokens.append((_uri_var, _uri_var.set(uri)))
    if operation is not None:
        tokens.append((_operation_var, _operation_var.set(operation)))
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def shorten_uri(uri: str, width: int = MAX_URI_WIDTH) -> str:
    """Keep the tail of a long URI, where the file name is."""
    if len(uri) <= width:
        return uri
    return "..." + uri[-(width - 3) :]


class ContextRichHandler(RichHandler):
    """Rich console handler that shows the cache context and keyword fields.

    Context values and fields come from arbitrary URIs and paths, so they are
    appended as plain Text and never parsed as rich markup.
    """

    def render_message(self, record: logging.LogRecord, message: str) -> ConsoleRenderable:
        rendered = super().render_message(record, message)
        if not isinstance(rendered, Text):
            return rendered

        line = Text()
        operation = get_operation()
        uri = get_uri()
        if operation:
            line.append(operation, style="cyan").append(" ")
        if uri:
            line.append(shorten_uri(uri), style="dim").append(" ")
        line.append_text(rendered)

        fields = getattr(record, "fields", None)
        if fields:
            shown = " ".join(f"{key}={value}" for key, value in fields.items())
            line.append(" ").append(shown, style="dim")
        return line


class ContextLogger:
    """Logger wrapper taking structured keyword fields.

    logger.info("Published cache entry", path=..., size=...) passes the
    keywords on the record as ``record.fields``.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def _log(self, level: int, msg: str, exc_info: bool = False, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        self._logger.log(level, msg, exc_info=exc_info, extra={"fields": fields})

    def debug(self, msg: str, **fields: Any) -> None:
        self._log(logging.DEBUG, msg, **fields)

    def info(self, msg: str, **fields: Any) -> None:
        self._log(logging.INFO, msg, **fields)

    def warning(self, msg: str, **fields: Any) -> None:
        self._log(logging.WARNING, msg, **fields)

    def error(self, msg: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, msg, exc_info=exc_info, **fields)


def setup_logging(log_level: str = "INFO", console: Console | None = None) -> None:
    """Attach the rich console handler to the imgcache logger.

    Replaces handlers from earlier calls, so it is safe to call once per
    coordinator.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console: Console to write to. Defaults to a stderr console.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = ContextRichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.propagate = False


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger under the imgcache namespace."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return ContextLogger(logging.getLogger(name))
