"""Shared fakes and fixtures for graphql_api_kit tests."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Optional

import pytest

from graphql_api_kit.core.config import Valves
from graphql_api_kit.core.timing_logger import clear_timing_events
from graphql_api_kit.requests.context import GraphQLOperation, HTTPRequest
from graphql_api_kit.transport.base import TransportChunk, TransportResponse

ENDPOINT = "https://api.example.com/graphql"

HERO_QUERY = GraphQLOperation.query("query HeroName { hero { name } }")
CREATE_REVIEW = GraphQLOperation.mutation(
    "mutation CreateReview($stars: Int!) { createReview(stars: $stars) { stars } }",
    variables={"stars": 5},
)
REVIEW_ADDED = GraphQLOperation.subscription("subscription OnReviewAdded { reviewAdded { stars } }")
DEFERRED_HERO = GraphQLOperation.query(
    "query DeferredHero { hero { id ... @defer(label: \"friends\") { friends { name } } } }"
)

# Placed in a FakeTransport stream to block until the stream is cancelled.
HANG = object()


def json_response(payload: Any, status: int = 200, headers: Optional[dict[str, str]] = None) -> TransportResponse:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return TransportResponse(
        status=status,
        headers=headers or {"Content-Type": "application/json"},
        body=body,
        reason="OK" if status < 400 else "Error",
    )


def stream_head(status: int = 200, content_type: str = 'multipart/mixed; boundary="graphql"') -> TransportResponse:
    return TransportResponse(status=status, headers={"Content-Type": content_type})


def chunk(payload: Any, head: Optional[TransportResponse] = None) -> TransportChunk:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
    return TransportChunk(head or stream_head(), body)


# -----------------------------------------------------------------------------
# Fake transport
# -----------------------------------------------------------------------------

class FakeTransport:
    """In-memory transport.

    ``outcomes`` are consumed one per send(): a TransportResponse is returned,
    an exception is raised, and a callable is called with the request.
    ``stream_items`` are replayed by stream(): chunks are yielded, exceptions
    raised, and HANG blocks until the consumer cancels.
    """

    def __init__(self, *outcomes: Any, stream_items: Optional[list[Any]] = None) -> None:
        self.outcomes = list(outcomes)
        self.stream_items = list(stream_items or [])
        self.requests: list[HTTPRequest] = []
        self.stream_started = False
        self.stream_closed = False
        self.stream_cancelled = False
        self.closed = False

    async def send(self, request: HTTPRequest) -> TransportResponse:
        self.requests.append(request)
        if not self.outcomes:
            raise AssertionError("FakeTransport has no outcome left")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        if callable(outcome):
            result = outcome(request)
            if asyncio.iscoroutine(result):
                result = await result
            return result
        return outcome

    async def stream(self, request: HTTPRequest):
        self.requests.append(request)
        self.stream_started = True
        try:
            for item in self.stream_items:
                if item is HANG:
                    await asyncio.Event().wait()
                if isinstance(item, BaseException):
                    raise item
                yield item
        except asyncio.CancelledError:
            self.stream_cancelled = True
            raise
        finally:
            self.stream_closed = True

    async def close(self) -> None:
        self.closed = True


# -----------------------------------------------------------------------------
# Recording observer
# -----------------------------------------------------------------------------

class RecordingObserver:
    """Observer recording every callback it receives."""

    def __init__(self, name: str = "observer", *, on_will_send: Optional[Callable[[HTTPRequest], None]] = None) -> None:
        self.name = name
        self.events: list[tuple] = []
        self._on_will_send = on_will_send

    def will_send_request(self, request: HTTPRequest) -> str:
        if self._on_will_send is not None:
            self._on_will_send(request)
        self.events.append(("will_send", request.correlation_id, dict(request.headers)))
        return f"{self.name}:{request.correlation_id}"

    def did_receive_response(self, request, response, data, context) -> None:
        self.events.append(("response", request.correlation_id, response.status, data, context))

    def did_fail(self, request, error, context) -> None:
        self.events.append(("failure", request.correlation_id, error, context))

    @property
    def kinds(self) -> list[str]:
        return [event[0] for event in self.events]

    @property
    def correlation_ids(self) -> list[str]:
        return [event[1] for event in self.events if event[0] == "will_send"]


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def valves() -> Valves:
    return Valves(
        ENDPOINT_URL=ENDPOINT,
        MAX_ATTEMPTS=1,
        RETRY_INITIAL_DELAY_SECONDS=0,
        RETRY_MAX_DELAY_SECONDS=0,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def retry_valves() -> Valves:
    return Valves(
        ENDPOINT_URL=ENDPOINT,
        MAX_ATTEMPTS=3,
        RETRY_INITIAL_DELAY_SECONDS=0,
        RETRY_MAX_DELAY_SECONDS=0,
        LOG_LEVEL="DEBUG",
    )


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    logger = logging.getLogger("graphql_api_kit")
    level = logger.level
    yield
    logger.setLevel(level)
    clear_timing_events()
