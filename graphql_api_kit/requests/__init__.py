"""Request description subsystem.

This module provides the values describing an outgoing request:
- GraphQLOperation / OperationKind: what to execute
- RequestContext / HTTPRequest: one send attempt and its wire request
- resolve_headers: default/override header merging
- Debug utilities: redacted request/response logging helpers
"""

from __future__ import annotations

from .context import GraphQLOperation, HTTPRequest, OperationKind, RequestContext
from .debug import _debug_print_request, _debug_print_response
from .headers import RequestHeaders, resolve_headers

__all__ = [
    "GraphQLOperation",
    "OperationKind",
    "RequestContext",
    "HTTPRequest",
    "RequestHeaders",
    "resolve_headers",
    "_debug_print_request",
    "_debug_print_response",
]
