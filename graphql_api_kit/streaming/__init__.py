"""Streaming response processing subsystem.

This package contains streaming-related functionality:
- stream_adapter: cancellable GraphQLStream over a transport iterator
- multipart_parser: multipart/mixed and text/event-stream framing
"""

from .multipart_parser import MultipartMixedParser, SSEEventParser
from .stream_adapter import GraphQLStream, StreamAdapter

__all__ = [
    "GraphQLStream",
    "StreamAdapter",
    "MultipartMixedParser",
    "SSEEventParser",
]
