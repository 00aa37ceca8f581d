"""Interceptor chain.

This module drives operations through the interceptor stages:
- execute(): single-shot operations, one pass over all six stages per
  attempt, with bounded retries for transient failures (tenacity)
- open_stream(): incremental and subscription operations; stages 1-2 run
  once, then the transport stream is decoded chunk by chunk behind a
  GraphQLStream

Every physical attempt gets its own RequestContext (and correlation id), so
observers see one will_send / terminal pair per attempt.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, AsyncIterator, Optional, Sequence

from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..core.config import Valves
from ..core.errors import OperationCancelledError, _is_retryable_error, _RetryWait, classify_error
from ..core.logging_system import request_log_context
from ..core.timing_logger import clear_timing_events, timed, timing_context, timing_mark
from ..models.result import GraphQLResult, decode_stream_payload
from ..requests.context import GraphQLOperation, HTTPRequest, RequestContext
from ..requests.headers import HeaderSource
from ..streaming.stream_adapter import GraphQLStream, StreamAdapter
from .interceptors import (
    Attempt,
    Interceptor,
    NetworkFetchInterceptor,
    ObserverInterceptor,
    ObserverResponseInterceptor,
    RequestHeaderInterceptor,
    ResponseCodeInterceptor,
    ResponseParsingInterceptor,
    fail_tokens,
)

if TYPE_CHECKING:
    from ..observers.registry import ObserverRegistry
    from ..transport.base import Transport

LOGGER = logging.getLogger(__name__)


class InterceptorChain:
    """Ordered stages shared by every operation an adapter sends."""

    def __init__(
        self,
        *,
        valves: Valves,
        registry: "ObserverRegistry",
        transport: "Transport",
        stream_adapter: Optional[StreamAdapter] = None,
    ) -> None:
        self.valves = valves
        self.registry = registry
        self.transport = transport
        self.stream_adapter = stream_adapter or StreamAdapter(valves.STREAM_BUFFER_SIZE)
        self._header_stage = RequestHeaderInterceptor(valves.DEFAULT_HEADERS)
        self._observer_stage = ObserverInterceptor(registry)
        self._response_code_stage = ResponseCodeInterceptor(valves)
        self.interceptors: Sequence[Interceptor] = (
            self._header_stage,
            self._observer_stage,
            NetworkFetchInterceptor(transport),
            ObserverResponseInterceptor(),
            self._response_code_stage,
            ResponseParsingInterceptor(),
        )

    def _new_request(self, operation: GraphQLOperation, attempt_number: int, *, streaming: bool = False) -> HTTPRequest:
        endpoint = self.valves.ENDPOINT_URL
        return HTTPRequest(
            context=RequestContext.new(operation, endpoint, attempt_number),
            operation=operation,
            url=endpoint,
            streaming=streaming,
        )

    async def _dispatch(self, attempt: Attempt, index: int) -> GraphQLResult:
        if index >= len(self.interceptors):
            raise RuntimeError("Interceptor chain ended without producing a result")
        interceptor = self.interceptors[index]

        async def proceed() -> GraphQLResult:
            return await self._dispatch(attempt, index + 1)

        return await interceptor.intercept(attempt, proceed)

    # -------------------------------------------------------------------------
    # Single-shot operations
    # -------------------------------------------------------------------------

    async def _execute_once(
        self,
        operation: GraphQLOperation,
        headers: HeaderSource,
        attempt_number: int,
    ) -> GraphQLResult:
        request = self._new_request(operation, attempt_number)
        attempt = Attempt(request=request, overrides=headers)
        with request_log_context(request.context), timing_context(self.valves.ENABLE_TIMING_LOG):
            LOGGER.debug(
                "Sending %s %s (attempt %d/%d)",
                request.context.operation_kind.value,
                request.context.operation_name,
                attempt_number,
                self.valves.MAX_ATTEMPTS,
            )
            try:
                return await self._dispatch(attempt, 0)
            finally:
                clear_timing_events(request.correlation_id)

    def _log_retry(self, retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome is not None else None
        delay = retry_state.next_action.sleep if retry_state.next_action is not None else 0.0
        LOGGER.warning(
            "Attempt %d/%d failed (%s); retrying in %.2fs",
            retry_state.attempt_number,
            self.valves.MAX_ATTEMPTS,
            exc,
            delay,
        )

    @timed
    async def execute(self, operation: GraphQLOperation, headers: HeaderSource = None) -> GraphQLResult:
        """Run ``operation`` through all stages, retrying transient failures."""
        initial_delay = self.valves.RETRY_INITIAL_DELAY_SECONDS
        retryer = AsyncRetrying(
            stop=stop_after_attempt(self.valves.MAX_ATTEMPTS),
            wait=_RetryWait(
                wait_exponential(
                    multiplier=initial_delay,
                    min=initial_delay,
                    max=self.valves.RETRY_MAX_DELAY_SECONDS,
                )
            ),
            retry=retry_if_exception(_is_retryable_error),
            before_sleep=self._log_retry,
            reraise=True,
        )
        async for retry_attempt in retryer:
            with retry_attempt:
                return await self._execute_once(operation, headers, retry_attempt.retry_state.attempt_number)
        raise RuntimeError("Retry loop exited without a result")  # pragma: no cover

    # -------------------------------------------------------------------------
    # Streamed operations
    # -------------------------------------------------------------------------

    @timed
    def open_stream(self, operation: GraphQLOperation, headers: HeaderSource = None) -> GraphQLStream[GraphQLResult]:
        """Resolve headers, notify observers and return a lazy stream of results.

        Streams are opened once and never retried.
        """
        request = self._new_request(operation, 1, streaming=True)
        attempt = Attempt(request=request, overrides=headers)
        with request_log_context(request.context):
            self._header_stage.apply(attempt)
            self._observer_stage.open(attempt)
            LOGGER.debug(
                "Opening %s stream %s",
                request.context.operation_kind.value,
                request.context.operation_name,
            )

        def _on_cancel() -> None:
            fail_tokens(attempt.tokens, OperationCancelledError())

        return self.stream_adapter.adapt(
            self._stream_results(attempt),
            on_cancel=_on_cancel,
            name=f"graphql-stream-{request.correlation_id[:8]}",
        )

    async def _stream_results(self, attempt: Attempt) -> AsyncIterator[GraphQLResult]:
        request = attempt.request
        with request_log_context(request.context), timing_context(self.valves.ENABLE_TIMING_LOG):
            try:
                async with contextlib.aclosing(self.transport.stream(request)) as chunks:
                    async for chunk in chunks:
                        if attempt.response is None:
                            timing_mark("stream.first_chunk")
                            attempt.response = chunk.response
                            for token in attempt.tokens:
                                token.on_response(chunk.response, chunk.response.body)
                            self._response_code_stage.check(chunk.response)
                        result = decode_stream_payload(chunk.body, request.operation)
                        if result is None:
                            continue
                        if not result.is_empty:
                            yield result
                        if result.has_next is False:
                            LOGGER.debug("Incremental delivery complete")
                            break
            except asyncio.CancelledError:
                fail_tokens(attempt.tokens, OperationCancelledError())
                raise
            except Exception as exc:
                error = classify_error(exc)
                fail_tokens(attempt.tokens, error)
                if error is exc:
                    raise
                raise error from exc
            finally:
                clear_timing_events(request.correlation_id)
