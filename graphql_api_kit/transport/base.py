"""Transport boundary.

The pipeline never talks to the network directly. A Transport sends one fully
headered HTTPRequest and returns either a single response or an async iterator
of chunks for incremental and subscription operations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, AsyncIterator, Mapping, Optional, Protocol, runtime_checkable

from ..core.utils import _header_lookup

if TYPE_CHECKING:
    from ..requests.context import HTTPRequest


@dataclass(slots=True)
class TransportResponse:
    """Status line, headers and raw body of one HTTP response."""

    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    reason: Optional[str] = None

    def header(self, name: str) -> Optional[str]:
        return _header_lookup(self.headers, name)

    @property
    def content_type(self) -> str:
        value = self.header("Content-Type") or ""
        return value.split(";", 1)[0].strip().lower()


@dataclass(slots=True)
class TransportChunk:
    """One element of a streamed response.

    ``response`` describes the response head (status and headers) and is the
    same object for every chunk of a stream. ``body`` holds one JSON document:
    a multipart part, an SSE event payload, or a whole non-streamed body.
    """

    response: TransportResponse
    body: bytes


@runtime_checkable
class Transport(Protocol):
    async def send(self, request: "HTTPRequest") -> TransportResponse:
        """Send ``request`` and return the full response."""
        ...

    def stream(self, request: "HTTPRequest") -> AsyncIterator[TransportChunk]:
        """Send ``request`` and iterate over the streamed response.

        Closing the iterator (``aclose``) must release the connection.
        """
        ...

    async def close(self) -> None:
        ...
