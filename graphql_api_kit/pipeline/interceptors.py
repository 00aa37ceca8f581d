"""Interceptor stages for single-shot operations.

Each attempt flows through the stages below, in order. A stage receives the
per-attempt record and a ``proceed`` callable that runs the remaining stages:

1. RequestHeaderInterceptor      - resolve headers
2. ObserverInterceptor           - mint tokens, fire will_send; on_failure on error
3. NetworkFetchInterceptor       - hand the request to the transport
4. ObserverResponseInterceptor   - fire on_response with the raw outcome
5. ResponseCodeInterceptor       - reject statuses outside the success range
6. ResponseParsingInterceptor    - decode the body into a GraphQLResult

Stage 2 wraps stages 3-6, so the tokens minted for an attempt see their
terminal callback from the same frame that created them.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Mapping, Optional, Protocol

from ..core.config import (
    INCREMENTAL_ACCEPT,
    JSON_CONTENT_TYPE,
    SINGLE_RESPONSE_ACCEPT,
    SUBSCRIPTION_ACCEPT,
    Valves,
)
from ..core.errors import (
    HTTPStatusError,
    NetworkError,
    OperationCancelledError,
    ResponseParsingError,
    classify_error,
)
from ..core.timing_logger import timed
from ..core.utils import _retry_after_seconds
from ..models.result import GraphQLResult, decode_response_body
from ..requests.context import OperationKind
from ..requests.debug import _debug_print_request, _debug_print_response
from ..requests.headers import HeaderSource, resolve_headers

if TYPE_CHECKING:
    from ..observers.registry import ObserverRegistry
    from ..observers.request_token import RequestToken
    from ..requests.context import HTTPRequest
    from ..transport.base import Transport, TransportResponse

LOGGER = logging.getLogger(__name__)

OPERATION_NAME_HEADER = "X-APOLLO-OPERATION-NAME"


@dataclass(slots=True)
class Attempt:
    """State of one physical send attempt, shared by all stages."""

    request: "HTTPRequest"
    overrides: HeaderSource = None
    tokens: list["RequestToken"] = field(default_factory=list)
    response: Optional["TransportResponse"] = None
    result: Optional[GraphQLResult] = None


Proceed = Callable[[], Awaitable[GraphQLResult]]


class Interceptor(Protocol):
    async def intercept(self, attempt: Attempt, proceed: Proceed) -> GraphQLResult: ...


def base_headers(request: "HTTPRequest") -> dict[str, str]:
    """Protocol headers every request carries before defaults and overrides."""
    if request.context.operation_kind is OperationKind.SUBSCRIPTION:
        accept = SUBSCRIPTION_ACCEPT
    elif request.streaming:
        accept = INCREMENTAL_ACCEPT
    else:
        accept = SINGLE_RESPONSE_ACCEPT
    return {
        "Content-Type": JSON_CONTENT_TYPE,
        "Accept": accept,
        OPERATION_NAME_HEADER: request.context.operation_name,
    }


def fail_tokens(tokens: list["RequestToken"], error: Any) -> None:
    for token in tokens:
        token.on_failure(error)


# -----------------------------------------------------------------------------
# Stage 1: headers
# -----------------------------------------------------------------------------

class RequestHeaderInterceptor:
    def __init__(self, default_headers: Optional[Mapping[str, str]] = None) -> None:
        self.default_headers = dict(default_headers or {})

    def apply(self, attempt: Attempt) -> None:
        request = attempt.request
        merged = resolve_headers(base_headers(request), self.default_headers)
        request.headers = resolve_headers(merged, attempt.overrides)

    async def intercept(self, attempt: Attempt, proceed: Proceed) -> GraphQLResult:
        self.apply(attempt)
        return await proceed()


# -----------------------------------------------------------------------------
# Stage 2: observers (before)
# -----------------------------------------------------------------------------

class ObserverInterceptor:
    """Mint tokens and route the attempt's failure, if any, to them."""

    def __init__(self, registry: "ObserverRegistry") -> None:
        self.registry = registry

    def open(self, attempt: Attempt) -> None:
        attempt.tokens = self.registry.notify_will_send(attempt.request)

    async def intercept(self, attempt: Attempt, proceed: Proceed) -> GraphQLResult:
        self.open(attempt)
        try:
            return await proceed()
        except asyncio.CancelledError:
            fail_tokens(attempt.tokens, OperationCancelledError())
            raise
        except Exception as exc:
            error = classify_error(exc)
            fail_tokens(attempt.tokens, error)
            if error is exc:
                raise
            raise error from exc


# -----------------------------------------------------------------------------
# Stage 3: transport
# -----------------------------------------------------------------------------

class NetworkFetchInterceptor:
    def __init__(self, transport: "Transport") -> None:
        self.transport = transport

    @timed
    async def intercept(self, attempt: Attempt, proceed: Proceed) -> GraphQLResult:
        request = attempt.request
        _debug_print_request(request.headers, request.body, logger=LOGGER)
        attempt.response = await self.transport.send(request)
        _debug_print_response(
            attempt.response.status,
            attempt.response.headers,
            attempt.response.body,
            logger=LOGGER,
        )
        return await proceed()


# -----------------------------------------------------------------------------
# Stage 4: observers (after)
# -----------------------------------------------------------------------------

class ObserverResponseInterceptor:
    async def intercept(self, attempt: Attempt, proceed: Proceed) -> GraphQLResult:
        response = attempt.response
        if response is not None:
            for token in attempt.tokens:
                token.on_response(response, response.body)
        return await proceed()


# -----------------------------------------------------------------------------
# Stage 5: status validation
# -----------------------------------------------------------------------------

def network_error_for(response: "TransportResponse") -> NetworkError:
    return NetworkError(
        response.status,
        HTTPStatusError(response.status, response.reason),
        retry_after=_retry_after_seconds(response.header("Retry-After")),
        body=response.body,
    )


class ResponseCodeInterceptor:
    def __init__(self, valves: Valves) -> None:
        self.valves = valves

    def check(self, response: "TransportResponse") -> None:
        if not self.valves.is_success_status(response.status):
            LOGGER.debug("Rejecting HTTP %s response", response.status)
            raise network_error_for(response)

    async def intercept(self, attempt: Attempt, proceed: Proceed) -> GraphQLResult:
        if attempt.response is None:
            raise ResponseParsingError("Transport returned no response")
        self.check(attempt.response)
        return await proceed()


# -----------------------------------------------------------------------------
# Stage 6: parsing
# -----------------------------------------------------------------------------

class ResponseParsingInterceptor:
    @timed
    async def intercept(self, attempt: Attempt, proceed: Proceed) -> GraphQLResult:
        if attempt.response is None:
            raise ResponseParsingError("Transport returned no response")
        attempt.result = decode_response_body(attempt.response.body, attempt.request.operation)
        return attempt.result
