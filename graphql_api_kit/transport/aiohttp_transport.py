"""Default HTTP transport built on aiohttp.

- send(): POST the operation and read the whole body
- stream(): POST the operation and split a ``multipart/mixed`` or
  ``text/event-stream`` body into one TransportChunk per JSON document

The transport never interprets GraphQL payloads and never retries; status
validation, parsing and retries belong to the interceptor chain.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, AsyncIterator, Optional

import aiohttp

from ..core.config import EVENT_STREAM_CONTENT_TYPE, MULTIPART_CONTENT_TYPE, Valves
from ..core.timing_logger import timed, timing_mark, timing_scope
from ..streaming.multipart_parser import (
    MultipartMixedParser,
    SSEEvent,
    SSEEventParser,
    boundary_from_content_type,
)
from .base import TransportChunk, TransportResponse

if TYPE_CHECKING:
    from ..requests.context import HTTPRequest

LOGGER = logging.getLogger(__name__)

_SSE_DATA_EVENTS = frozenset({"next", "message"})


def _response_head(resp: aiohttp.ClientResponse) -> TransportResponse:
    return TransportResponse(status=resp.status, headers=dict(resp.headers), reason=resp.reason)


class AiohttpTransport:
    """Transport owning one lazily created ``aiohttp.ClientSession``."""

    def __init__(self, valves: Optional[Valves] = None, *, session: Optional[aiohttp.ClientSession] = None) -> None:
        self.valves = valves or Valves()
        self._session = session
        self._owns_session = session is None

    def _create_http_session(self) -> aiohttp.ClientSession:
        """Return a ClientSession with sane defaults for GraphQL traffic."""
        valves = self.valves
        connector = aiohttp.TCPConnector(
            limit=50,
            limit_per_host=10,
            keepalive_timeout=75,
            ttl_dns_cache=300,
        )
        connect_timeout = float(valves.HTTP_CONNECT_TIMEOUT_SECONDS)
        total_timeout_value = valves.HTTP_TOTAL_TIMEOUT_SECONDS
        total_timeout = float(total_timeout_value) if total_timeout_value else None
        sock_read = float(valves.HTTP_SOCK_READ_SECONDS) if total_timeout is None else None
        timeout = aiohttp.ClientTimeout(total=total_timeout, connect=connect_timeout, sock_read=sock_read)
        LOGGER.debug(
            "HTTP timeouts: connect=%ss total=%s sock_read=%s",
            connect_timeout,
            total_timeout if total_timeout is not None else "disabled",
            sock_read if sock_read is not None else "disabled",
        )
        return aiohttp.ClientSession(
            connector=connector,
            timeout=timeout,
            json_serialize=json.dumps,
        )

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = self._create_http_session()
            self._owns_session = True
        return self._session

    @timed
    async def send(self, request: "HTTPRequest") -> TransportResponse:
        session = self._ensure_session()
        with timing_scope("transport.post"):
            async with session.request(
                request.method,
                request.url,
                json=request.body,
                headers=request.headers,
            ) as resp:
                head = _response_head(resp)
                head.body = await resp.read()
        return head

    async def stream(self, request: "HTTPRequest") -> AsyncIterator[TransportChunk]:
        session = self._ensure_session()
        async with session.request(
            request.method,
            request.url,
            json=request.body,
            headers=request.headers,
        ) as resp:
            head = _response_head(resp)
            timing_mark("transport.response_head")
            content_type = head.content_type
            if not self.valves.is_success_status(resp.status) or content_type not in (
                MULTIPART_CONTENT_TYPE,
                EVENT_STREAM_CONTENT_TYPE,
            ):
                # Single (possibly error) document.
                head.body = await resp.read()
                yield TransportChunk(head, head.body)
                return

            if content_type == MULTIPART_CONTENT_TYPE:
                parser = MultipartMixedParser(boundary_from_content_type(head.header("Content-Type")))
                async for raw in resp.content.iter_any():
                    for part in parser.feed(raw):
                        yield TransportChunk(head, part)
                    if parser.closed:
                        return
                for part in parser.finish():
                    yield TransportChunk(head, part)
                return

            sse = SSEEventParser()
            async for raw in resp.content.iter_any():
                for event in sse.feed(raw):
                    if event.event == "complete":
                        return
                    chunk = self._sse_chunk(head, event)
                    if chunk is not None:
                        yield chunk
            for event in sse.finish():
                if event.event == "complete":
                    return
                chunk = self._sse_chunk(head, event)
                if chunk is not None:
                    yield chunk

    @staticmethod
    def _sse_chunk(head: TransportResponse, event: SSEEvent) -> Optional[TransportChunk]:
        if event.event not in _SSE_DATA_EVENTS or not event.data:
            LOGGER.debug("Ignoring SSE event %r", event.event)
            return None
        return TransportChunk(head, event.data)

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
