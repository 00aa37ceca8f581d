"""Cancellable streams of GraphQL payloads.

This module turns a transport-level async iterator into a GraphQLStream:
- Producer task: pulls from the source iterator into a bounded queue
- Consumer side: ``async for`` over the stream, single consumer, forward only
- cancel(): stops the producer, discards buffered payloads, ends iteration
- Errors are translated into the adapter error taxonomy before they reach
  the consumer

A stream ends with exactly one terminal outcome: normal completion, one error,
or cancellation. It cannot be restarted.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Callable, Generic, Optional, TypeVar

from ..core.errors import classify_error

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_ITEM = "item"
_DONE = "done"
_ERROR = "error"


class GraphQLStream(Generic[T]):
    """Lazy, single-consumer, cancellable async sequence.

    The source is not touched until the first ``__anext__``. After
    ``cancel()`` no further element is returned, even if the producer had
    already buffered some.
    """

    def __init__(
        self,
        source: AsyncIterator[T],
        *,
        buffer_size: int = 32,
        on_cancel: Optional[Callable[[], None]] = None,
        name: str = "graphql-stream",
    ) -> None:
        self._source = source
        self._queue: asyncio.Queue[tuple[str, Any]] = asyncio.Queue(maxsize=max(1, buffer_size))
        self._on_cancel = on_cancel
        self._name = name
        self._producer: Optional[asyncio.Task] = None
        self._cancelled = False
        self._finished = False

    # -- state -------------------------------------------------------------

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def finished(self) -> bool:
        """True once the stream reached any terminal outcome."""
        return self._finished or self._cancelled

    # -- producer ----------------------------------------------------------

    async def _produce(self) -> None:
        try:
            async for item in self._source:
                await self._queue.put((_ITEM, item))
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            adapter_error = classify_error(exc)
            if adapter_error is not exc:
                adapter_error.__cause__ = exc
            await self._queue.put((_ERROR, adapter_error))
        else:
            await self._queue.put((_DONE, None))
        finally:
            await self._close_source()

    async def _close_source(self) -> None:
        aclose = getattr(self._source, "aclose", None)
        if aclose is None:
            return
        try:
            await aclose()
        except Exception:
            LOGGER.debug("%s: error while closing source", self._name, exc_info=True)

    # -- consumer ----------------------------------------------------------

    def __aiter__(self) -> "GraphQLStream[T]":
        return self

    async def __anext__(self) -> T:
        if self.finished:
            raise StopAsyncIteration
        if self._producer is None:
            self._producer = asyncio.create_task(self._produce(), name=self._name)
        try:
            kind, value = await self._queue.get()
        except asyncio.CancelledError:
            self.cancel()
            raise
        if self._cancelled:
            raise StopAsyncIteration
        if kind == _ITEM:
            return value
        self._finished = True
        if kind == _ERROR:
            raise value
        raise StopAsyncIteration

    # -- cancellation ------------------------------------------------------

    def cancel(self) -> None:
        """Stop the stream. Idempotent; a no-op once the stream has finished."""
        if self.finished:
            return
        self._cancelled = True
        if self._producer is not None and not self._producer.done():
            self._producer.cancel()
        while True:
            try:
                self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
        self._queue.put_nowait((_DONE, None))
        LOGGER.debug("%s cancelled", self._name)
        if self._on_cancel is not None:
            self._on_cancel()

    async def aclose(self) -> None:
        """Cancel the stream and wait until the source has been closed."""
        self.cancel()
        if self._producer is None:
            await self._close_source()
            return
        await asyncio.gather(self._producer, return_exceptions=True)

    async def __aenter__(self) -> "GraphQLStream[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class StreamAdapter:
    """Factory for GraphQLStream objects sharing one buffer size."""

    def __init__(self, buffer_size: int = 32) -> None:
        self.buffer_size = max(1, buffer_size)

    def adapt(
        self,
        source: AsyncIterator[T],
        *,
        on_cancel: Optional[Callable[[], None]] = None,
        name: str = "graphql-stream",
    ) -> GraphQLStream[T]:
        return GraphQLStream(source, buffer_size=self.buffer_size, on_cancel=on_cancel, name=name)
