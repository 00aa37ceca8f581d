"""Incremental framing for streamed GraphQL responses.

This module splits raw HTTP body bytes into JSON documents:
- MultipartMixedParser: ``multipart/mixed`` bodies used for @defer/@stream
  and for multipart HTTP subscriptions
- SSEEventParser: ``text/event-stream`` bodies (``event: next`` /
  ``event: complete``)
- boundary_from_content_type(): reads the multipart boundary parameter

Both parsers are push-based: ``feed()`` accepts arbitrary chunks and returns the
documents completed by that chunk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_BOUNDARY = "-"


def boundary_from_content_type(content_type: Optional[str]) -> str:
    """Return the ``boundary`` parameter of a multipart Content-Type header."""
    if not content_type:
        return DEFAULT_BOUNDARY
    for param in content_type.split(";")[1:]:
        name, _, value = param.strip().partition("=")
        if name.strip().lower() == "boundary":
            value = value.strip().strip('"')
            if value:
                return value
    return DEFAULT_BOUNDARY


def _part_body(segment: bytes) -> bytes:
    """Strip part headers and surrounding whitespace from one multipart part."""
    segment = segment.strip()
    if not segment or segment.startswith((b"{", b"[")):
        return segment
    for separator in (b"\r\n\r\n", b"\n\n"):
        idx = segment.find(separator)
        if idx != -1:
            return segment[idx + len(separator) :].strip()
    # Headers only, no body.
    return b""


# -----------------------------------------------------------------------------
# multipart/mixed
# -----------------------------------------------------------------------------

class MultipartMixedParser:
    """Push parser for ``multipart/mixed`` GraphQL responses."""

    def __init__(self, boundary: str = DEFAULT_BOUNDARY) -> None:
        self._delimiter = b"\n--" + boundary.encode("utf-8")
        # Lets a delimiter at the very start of the body match like any other.
        self._buffer = bytearray(b"\r\n")
        self._started = False
        self.closed = False

    def feed(self, chunk: bytes) -> list[bytes]:
        """Consume ``chunk`` and return the bodies of every completed part."""
        if self.closed:
            return []
        self._buffer.extend(chunk)
        parts: list[bytes] = []
        while True:
            idx = self._buffer.find(self._delimiter)
            if idx == -1:
                break
            after = idx + len(self._delimiter)
            if len(self._buffer) < after + 2:
                break
            segment = bytes(self._buffer[:idx])
            closing = self._buffer[after : after + 2] == b"--"
            del self._buffer[:after]
            if self._started:
                body = _part_body(segment)
                if body:
                    parts.append(body)
            self._started = True
            if closing:
                self.closed = True
                self._buffer.clear()
                break
        return parts

    def finish(self) -> list[bytes]:
        """Flush a trailing part when the body ended without a closing delimiter."""
        if self.closed or not self._started:
            return []
        self.closed = True
        tail = bytes(self._buffer)
        idx = tail.find(self._delimiter)
        if idx != -1:
            tail = tail[:idx]
        body = _part_body(tail)
        self._buffer.clear()
        if body:
            LOGGER.debug("multipart body ended without closing delimiter")
            return [body]
        return []


# -----------------------------------------------------------------------------
# text/event-stream
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class SSEEvent:
    event: str
    data: bytes


class SSEEventParser:
    """Push parser for Server-Sent Events (data:, event:, comment lines)."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._event_name: Optional[str] = None
        self._data_parts: list[bytes] = []

    def _dispatch(self) -> Optional[SSEEvent]:
        if not self._data_parts and self._event_name is None:
            return None
        event = SSEEvent(
            event=self._event_name or "message",
            data=b"\n".join(self._data_parts).strip(),
        )
        self._event_name = None
        self._data_parts = []
        return event

    def feed(self, chunk: bytes) -> list[SSEEvent]:
        self._buffer.extend(chunk)
        events: list[SSEEvent] = []
        start_idx = 0
        while True:
            newline_idx = self._buffer.find(b"\n", start_idx)
            if newline_idx == -1:
                break
            line = bytes(self._buffer[start_idx:newline_idx]).rstrip(b"\r")
            start_idx = newline_idx + 1

            # Empty line = event boundary
            if not line.strip():
                event = self._dispatch()
                if event is not None:
                    events.append(event)
                continue

            # Skip comment lines
            if line.startswith(b":"):
                continue

            field_name, _, value = line.partition(b":")
            if value.startswith(b" "):
                value = value[1:]
            if field_name == b"data":
                self._data_parts.append(value)
            elif field_name == b"event":
                self._event_name = value.decode("utf-8", errors="replace").strip()

        if start_idx > 0:
            del self._buffer[:start_idx]
        return events

    def finish(self) -> list[SSEEvent]:
        """Flush any event not followed by a blank line."""
        if self._buffer:
            events = self.feed(b"\n")
        else:
            events = []
        event = self._dispatch()
        if event is not None:
            events.append(event)
        return events
