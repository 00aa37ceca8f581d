"""GraphQL API kit.

This package provides a GraphQL-over-HTTP client with a request-observation
pipeline, including:
- Adapter: GraphQLAPIAdapter (fetch / perform / fetch_stream / subscribe / submit)
- Operations and per-attempt context: GraphQLOperation, RequestContext
- Observers: GraphQLNetworkObserver, ObserverRegistry, RequestToken
- Pipeline: InterceptorChain and its six interceptor stages
- Streaming: GraphQLStream, StreamAdapter
- Infrastructure: Valves, error taxonomy, logging, timing

IMPORTANT: This module uses LAZY LOADING. Attributes are imported on first
access via __getattr__, so ``import graphql_api_kit`` does not import aiohttp
or pydantic until a class that needs them is used.
"""

from typing import TYPE_CHECKING

try:
    from importlib.metadata import version as _get_version
    __version__ = _get_version("graphql-api-kit")
except Exception:
    __version__ = "1.0.0"  # Fallback if not installed as package

# -----------------------------------------------------------------------------
# Type hints only (no runtime import)
# -----------------------------------------------------------------------------

if TYPE_CHECKING:
    from .adapter import GraphQLAPIAdapter, OperationHandle
    from .core.config import RequestConfiguration, Valves
    from .core.errors import (
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
    from .core.logging_system import configure_logging
    from .models.result import GraphQLResult, IncrementalPayload
    from .observers.logging_observer import LoggingNetworkObserver
    from .observers.network_observer import GraphQLNetworkObserver
    from .observers.registry import ObserverRegistry
    from .observers.request_token import RequestToken
    from .pipeline.chain import InterceptorChain
    from .requests.context import GraphQLOperation, HTTPRequest, OperationKind, RequestContext
    from .requests.headers import RequestHeaders, resolve_headers
    from .streaming.stream_adapter import GraphQLStream, StreamAdapter
    from .transport.aiohttp_transport import AiohttpTransport
    from .transport.base import Transport, TransportChunk, TransportResponse


# -----------------------------------------------------------------------------
# Public API - All lazy loaded
# -----------------------------------------------------------------------------

__all__ = [
    # Version
    "__version__",

    # Adapter
    "GraphQLAPIAdapter",
    "OperationHandle",
    "Valves",
    "RequestConfiguration",

    # Operations
    "GraphQLOperation",
    "OperationKind",
    "RequestContext",
    "HTTPRequest",
    "GraphQLResult",
    "IncrementalPayload",

    # Headers
    "RequestHeaders",
    "resolve_headers",

    # Observers
    "GraphQLNetworkObserver",
    "ObserverRegistry",
    "RequestToken",
    "LoggingNetworkObserver",

    # Pipeline & streaming
    "InterceptorChain",
    "GraphQLStream",
    "StreamAdapter",

    # Transport
    "Transport",
    "TransportResponse",
    "TransportChunk",
    "AiohttpTransport",

    # Error handling
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

    # Logging
    "configure_logging",
]

_cache: dict = {}

# Mapping of attribute name to (module_path, attr_name_in_module)
_LAZY_IMPORTS = {
    # Adapter
    "GraphQLAPIAdapter": (".adapter", "GraphQLAPIAdapter"),
    "OperationHandle": (".adapter", "OperationHandle"),

    # Core config
    "Valves": (".core.config", "Valves"),
    "RequestConfiguration": (".core.config", "RequestConfiguration"),

    # Operations
    "GraphQLOperation": (".requests.context", "GraphQLOperation"),
    "OperationKind": (".requests.context", "OperationKind"),
    "RequestContext": (".requests.context", "RequestContext"),
    "HTTPRequest": (".requests.context", "HTTPRequest"),
    "GraphQLResult": (".models.result", "GraphQLResult"),
    "IncrementalPayload": (".models.result", "IncrementalPayload"),

    # Headers
    "RequestHeaders": (".requests.headers", "RequestHeaders"),
    "resolve_headers": (".requests.headers", "resolve_headers"),

    # Observers
    "GraphQLNetworkObserver": (".observers.network_observer", "GraphQLNetworkObserver"),
    "ObserverRegistry": (".observers.registry", "ObserverRegistry"),
    "RequestToken": (".observers.request_token", "RequestToken"),
    "LoggingNetworkObserver": (".observers.logging_observer", "LoggingNetworkObserver"),

    # Pipeline & streaming
    "InterceptorChain": (".pipeline.chain", "InterceptorChain"),
    "GraphQLStream": (".streaming.stream_adapter", "GraphQLStream"),
    "StreamAdapter": (".streaming.stream_adapter", "StreamAdapter"),

    # Transport
    "Transport": (".transport.base", "Transport"),
    "TransportResponse": (".transport.base", "TransportResponse"),
    "TransportChunk": (".transport.base", "TransportChunk"),
    "AiohttpTransport": (".transport.aiohttp_transport", "AiohttpTransport"),

    # Errors
    "ErrorKind": (".core.errors", "ErrorKind"),
    "GraphQLAPIAdapterError": (".core.errors", "GraphQLAPIAdapterError"),
    "OperationCancelledError": (".core.errors", "OperationCancelledError"),
    "ConnectionFailedError": (".core.errors", "ConnectionFailedError"),
    "NetworkError": (".core.errors", "NetworkError"),
    "GraphQLOperationError": (".core.errors", "GraphQLOperationError"),
    "UnhandledAdapterError": (".core.errors", "UnhandledAdapterError"),
    "ResponseParsingError": (".core.errors", "ResponseParsingError"),
    "GraphQLError": (".core.errors", "GraphQLError"),
    "classify_error": (".core.errors", "classify_error"),

    # Logging
    "configure_logging": (".core.logging_system", "configure_logging"),
}


def __getattr__(name: str):
    """Lazy-load all module attributes on first access."""
    # Return cached value if available
    if name in _cache:
        return _cache[name]

    if name in _LAZY_IMPORTS:
        module_path, attr_name = _LAZY_IMPORTS[name]
        import importlib
        module = importlib.import_module(module_path, __name__)
        value = getattr(module, attr_name)
        _cache[name] = value
        globals()[name] = value  # Also cache in globals for faster subsequent access
        return value

    # Handle submodule access (e.g., graphql_api_kit.errors)
    submodules = {
        "errors": ".core.errors",
        "config": ".core.config",
        "utils": ".core.utils",
        "logging_system": ".core.logging_system",
        "timing_logger": ".core.timing_logger",
    }
    if name in submodules:
        import importlib
        module = importlib.import_module(submodules[name], __name__)
        _cache[name] = module
        globals()[name] = module
        return module

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
