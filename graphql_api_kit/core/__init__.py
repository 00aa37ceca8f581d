"""Core infrastructure module.

Foundation services required by all subsystems:
- Configuration schemas (Valves, RequestConfiguration)
- Error taxonomy and retry policy helpers
- Correlation-aware logging
- Timing instrumentation
- Pure utility functions
"""

from .config import RequestConfiguration, Valves
from .errors import (
    ConnectionFailedError,
    ErrorKind,
    GraphQLAPIAdapterError,
    GraphQLError,
    GraphQLOperationError,
    NetworkError,
    OperationCancelledError,
    ResponseParsingError,
    UnhandledAdapterError,
    classify_error,
)
from .logging_system import configure_logging, get_logger
from .utils import _pretty_json

__all__ = [
    "Valves",
    "RequestConfiguration",
    "ErrorKind",
    "GraphQLAPIAdapterError",
    "OperationCancelledError",
    "ConnectionFailedError",
    "NetworkError",
    "GraphQLOperationError",
    "UnhandledAdapterError",
    "ResponseParsingError",
    "GraphQLError",
    "classify_error",
    "configure_logging",
    "get_logger",
    "_pretty_json",
]
