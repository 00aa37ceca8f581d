"""Correlation-aware logging for the GraphQL adapter.

This module handles logging-related functionality:
- ContextVars carrying the correlation id and operation name of the attempt
  currently being processed
- RequestContextFilter: stamps those values onto every LogRecord
- request_log_context(): scopes the ContextVars to one attempt
- configure_logging(): opt-in console handler for applications and scripts

The ContextVars follow the asyncio task that runs an attempt, so concurrent
requests log with their own correlation id without any shared state.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING, Iterator, Optional

if TYPE_CHECKING:
    from ..requests.context import RequestContext

PACKAGE_LOGGER_NAME = "graphql_api_kit"

correlation_id: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)
operation_name: ContextVar[Optional[str]] = ContextVar("operation_name", default=None)

_CONSOLE_FORMAT = (
    "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d "
    "[op=%(operation_name)s cid=%(correlation_id)s] - %(message)s"
)
_CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"
_HANDLER_MARKER = "_graphql_api_kit_console"


class RequestContextFilter(logging.Filter):
    """Attach the current correlation id and operation name to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = correlation_id.get() or "-"
        if not hasattr(record, "operation_name"):
            record.operation_name = operation_name.get() or "-"
        return True


_REQUEST_FILTER = RequestContextFilter()


def get_logger(name: str = PACKAGE_LOGGER_NAME) -> logging.Logger:
    """Return a logger that carries request context on its records.

    The package root logger gets a ``NullHandler`` so library users see no
    output unless they configure logging themselves.
    """
    root = logging.getLogger(PACKAGE_LOGGER_NAME)
    if not any(isinstance(handler, logging.NullHandler) for handler in root.handlers):
        root.addHandler(logging.NullHandler())
    logger = logging.getLogger(name)
    if _REQUEST_FILTER not in logger.filters:
        logger.addFilter(_REQUEST_FILTER)
    return logger


def set_package_log_level(level: str | int) -> None:
    """Apply ``level`` to the package root logger."""
    logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(level)


def configure_logging(level: str | int = logging.INFO, *, stream=None) -> logging.Handler:
    """Install a console handler on the package logger and return it.

    Calling this more than once replaces the previously installed handler.
    """
    root = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT, datefmt=_CONSOLE_DATEFMT))
    handler.addFilter(_REQUEST_FILTER)
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)
    root.setLevel(level)
    return handler


@contextlib.contextmanager
def request_log_context(context: "RequestContext") -> Iterator[None]:
    """Bind ``context`` to the logging ContextVars for the duration of the block."""
    cid_token = correlation_id.set(context.correlation_id)
    op_token = operation_name.set(context.operation_name)
    try:
        yield
    finally:
        operation_name.reset(op_token)
        correlation_id.reset(cid_token)
