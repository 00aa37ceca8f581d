"""GraphQL API adapter.

This module exposes the public entry point:
- GraphQLAPIAdapter: fetch (queries), perform (mutations), fetch_stream
  (incremental queries), subscribe (subscriptions), submit (cancellable
  single-shot operations)
- OperationHandle: awaitable handle returned by submit()

Configuration (Valves), observers and the transport are supplied once at
construction and never change afterwards. Response caching is not supported:
every call goes to the network.
"""

from __future__ import annotations

import asyncio
from typing import Any, Generator, Iterable, Optional

from .core.config import Valves
from .core.errors import OperationCancelledError
from .core.logging_system import get_logger, set_package_log_level
from .core.timing_logger import close_timing_file, configure_timing_file
from .models.result import GraphQLResult
from .observers.network_observer import GraphQLNetworkObserver
from .observers.registry import ObserverRegistry
from .pipeline.chain import InterceptorChain
from .requests.context import GraphQLOperation, OperationKind
from .requests.headers import HeaderSource
from .streaming.stream_adapter import GraphQLStream
from .transport.aiohttp_transport import AiohttpTransport
from .transport.base import Transport

LOGGER = get_logger(__name__)


def _require_kind(operation: GraphQLOperation, *kinds: OperationKind) -> None:
    if operation.kind not in kinds:
        expected = " or ".join(kind.value for kind in kinds)
        raise ValueError(f"Expected a {expected} operation, got {operation.kind.value} ({operation.name})")


class OperationHandle:
    """Cancellable handle for an in-flight single-shot operation.

    Awaiting the handle returns the operation's GraphQLResult. After
    ``cancel()`` the awaiting caller receives OperationCancelledError.
    """

    def __init__(self, task: "asyncio.Task[GraphQLResult]", operation: GraphQLOperation) -> None:
        self._task = task
        self.operation = operation

    def cancel(self) -> bool:
        return self._task.cancel()

    def done(self) -> bool:
        return self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task.cancelled()

    async def result(self) -> GraphQLResult:
        try:
            await asyncio.wait({self._task})
        except asyncio.CancelledError:
            self._task.cancel()
            raise
        if self._task.cancelled():
            raise OperationCancelledError()
        return self._task.result()

    def __await__(self) -> Generator[Any, None, GraphQLResult]:
        return self.result().__await__()


class GraphQLAPIAdapter:
    """Entry point for executing GraphQL operations over HTTP.

    ``network_observers`` are held by weak reference only. The caller must keep
    each observer alive for as long as it should receive callbacks; an observer
    passed inline (e.g. ``network_observers=[LoggingNetworkObserver()]``) is
    collected straight away and never notified.
    """

    def __init__(
        self,
        valves: Optional[Valves] = None,
        *,
        network_observers: Iterable[GraphQLNetworkObserver] = (),
        transport: Optional[Transport] = None,
    ) -> None:
        self.valves = valves or Valves()
        set_package_log_level(self.valves.LOG_LEVEL)
        if self.valves.ENABLE_TIMING_LOG and self.valves.TIMING_LOG_FILE:
            if not configure_timing_file(self.valves.TIMING_LOG_FILE):
                LOGGER.warning("Unable to open timing log file %s", self.valves.TIMING_LOG_FILE)

        self.registry = ObserverRegistry(network_observers)
        self._owns_transport = transport is None
        self.transport: Transport = transport if transport is not None else AiohttpTransport(self.valves)
        self.chain = InterceptorChain(valves=self.valves, registry=self.registry, transport=self.transport)
        self._pending: set[asyncio.Task] = set()
        LOGGER.debug(
            "GraphQL adapter ready: endpoint=%s observers=%d",
            self.valves.ENDPOINT_URL,
            len(self.registry),
        )

    # -------------------------------------------------------------------------
    # Single-shot operations
    # -------------------------------------------------------------------------

    async def fetch(self, query: GraphQLOperation, headers: HeaderSource = None) -> GraphQLResult:
        """Fetch a query from the server, bypassing any cache."""
        _require_kind(query, OperationKind.QUERY)
        if query.incremental:
            raise ValueError(f"{query.name} uses @defer/@stream; use fetch_stream() instead")
        return await self.chain.execute(query, headers)

    async def perform(self, mutation: GraphQLOperation, headers: HeaderSource = None) -> GraphQLResult:
        """Send a mutation to the server."""
        _require_kind(mutation, OperationKind.MUTATION)
        return await self.chain.execute(mutation, headers)

    def submit(self, operation: GraphQLOperation, headers: HeaderSource = None) -> OperationHandle:
        """Start a query or mutation in the background and return its handle."""
        if operation.kind is OperationKind.QUERY:
            coro = self.fetch(operation, headers)
        elif operation.kind is OperationKind.MUTATION:
            coro = self.perform(operation, headers)
        else:
            raise ValueError(f"Subscriptions cannot be submitted; use subscribe() ({operation.name})")
        task = asyncio.create_task(coro, name=f"graphql-{operation.kind.value}-{operation.name}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return OperationHandle(task, operation)

    # -------------------------------------------------------------------------
    # Streamed operations
    # -------------------------------------------------------------------------

    def fetch_stream(self, query: GraphQLOperation, headers: HeaderSource = None) -> GraphQLStream[GraphQLResult]:
        """Fetch a query whose response may be delivered incrementally."""
        _require_kind(query, OperationKind.QUERY)
        return self.chain.open_stream(query, headers)

    def subscribe(self, subscription: GraphQLOperation, headers: HeaderSource = None) -> GraphQLStream[GraphQLResult]:
        """Open a long-lived subscription stream."""
        _require_kind(subscription, OperationKind.SUBSCRIPTION)
        return self.chain.open_stream(subscription, headers)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Cancel submitted operations and release the transport."""
        pending = [task for task in self._pending if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if self._owns_transport:
            await self.transport.close()
        if self.valves.ENABLE_TIMING_LOG:
            close_timing_file()

    async def __aenter__(self) -> "GraphQLAPIAdapter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
