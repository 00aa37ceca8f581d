"""Request pipeline.

The InterceptorChain runs each attempt through six ordered stages (headers,
observers, transport, observer response, status validation, parsing) and
opens streams for incremental and subscription operations.
"""

from __future__ import annotations

from .chain import InterceptorChain
from .interceptors import (
    Attempt,
    Interceptor,
    NetworkFetchInterceptor,
    ObserverInterceptor,
    ObserverResponseInterceptor,
    RequestHeaderInterceptor,
    ResponseCodeInterceptor,
    ResponseParsingInterceptor,
)

__all__ = [
    "InterceptorChain",
    "Attempt",
    "Interceptor",
    "RequestHeaderInterceptor",
    "ObserverInterceptor",
    "NetworkFetchInterceptor",
    "ObserverResponseInterceptor",
    "ResponseCodeInterceptor",
    "ResponseParsingInterceptor",
]
