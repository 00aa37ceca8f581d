"""Tests for graphql_api_kit/observers.

This test module covers:
- RequestToken: will_send at creation, at-most-once callbacks, weak observer
- ObserverRegistry: registration order, protocol check, released observers,
  observer hook exceptions
- LoggingNetworkObserver output
"""

from __future__ import annotations

import gc
import logging
import weakref

import pytest

from graphql_api_kit.core.errors import (
    HTTPStatusError,
    NetworkError,
    OperationCancelledError,
    UnhandledAdapterError,
)
from graphql_api_kit.observers.logging_observer import LoggingNetworkObserver
from graphql_api_kit.observers.registry import ObserverRegistry
from graphql_api_kit.observers.request_token import RequestToken
from graphql_api_kit.requests.context import HTTPRequest, RequestContext

from conftest import ENDPOINT, HERO_QUERY, RecordingObserver, json_response


def _request() -> HTTPRequest:
    return HTTPRequest(
        context=RequestContext.new(HERO_QUERY, ENDPOINT),
        operation=HERO_QUERY,
        url=ENDPOINT,
        headers={"X-Key": "A"},
    )


# -----------------------------------------------------------------------------
# RequestToken
# -----------------------------------------------------------------------------

class TestRequestToken:
    """Tests for RequestToken."""

    def test_open_fires_will_send_once(self, observer):
        """will_send_request fires exactly once, synchronously, at creation."""
        request = _request()

        token = RequestToken.open(observer, request)

        assert observer.kinds == ["will_send"]
        assert token is not None
        assert token.context == f"observer:{request.correlation_id}"

    def test_context_threaded_to_response(self, observer):
        """The context returned by will_send is handed back on response."""
        request = _request()
        token = RequestToken.open(observer, request)
        response = json_response({"data": {}})

        token.on_response(response, b"raw")

        assert observer.events[-1] == (
            "response",
            request.correlation_id,
            200,
            b"raw",
            f"observer:{request.correlation_id}",
        )

    def test_response_then_failure(self, observer):
        """Response followed by failure is a legal sequence."""
        request = _request()
        token = RequestToken.open(observer, request)
        error = NetworkError(500, HTTPStatusError(500))

        token.on_response(json_response({}, status=500), b"{}")
        token.on_failure(error)

        assert observer.kinds == ["will_send", "response", "failure"]
        assert observer.events[-1][2] is error

    def test_callbacks_fire_at_most_once(self, observer):
        """Repeated on_response / on_failure calls are ignored."""
        token = RequestToken.open(observer, _request())

        token.on_response(json_response({}), b"{}")
        token.on_response(json_response({}), b"{}")
        token.on_failure(OperationCancelledError())
        token.on_failure(OperationCancelledError())

        assert observer.kinds == ["will_send", "response", "failure"]

    def test_response_after_failure_is_ignored(self, observer):
        """Observers never see a failure followed by a response."""
        token = RequestToken.open(observer, _request())

        token.on_failure(OperationCancelledError())
        token.on_response(json_response({}), b"{}")

        assert observer.kinds == ["will_send", "failure"]
        assert token.terminated

    def test_token_does_not_keep_observer_alive(self):
        """The token holds only a weak reference."""
        observer = RecordingObserver()
        ref = weakref.ref(observer)
        token = RequestToken.open(observer, _request())

        del observer
        gc.collect()

        assert ref() is None
        assert token is not None
        assert not token.alive

    def test_released_observer_is_a_no_op(self):
        """Callbacks after the observer is released neither raise nor record."""
        observer = RecordingObserver()
        events = observer.events
        token = RequestToken.open(observer, _request())

        del observer
        gc.collect()
        token.on_response(json_response({}), b"{}")
        token.on_failure(OperationCancelledError())

        assert [event[0] for event in events] == ["will_send"]

    def test_open_with_dead_reference_returns_none(self):
        observer = RecordingObserver()
        ref = weakref.ref(observer)
        del observer
        gc.collect()

        assert RequestToken.open(ref, _request()) is None


# -----------------------------------------------------------------------------
# ObserverRegistry
# -----------------------------------------------------------------------------

class TestObserverRegistry:
    """Tests for ObserverRegistry.notify_will_send()."""

    def test_tokens_in_registration_order(self):
        """One token per observer, in registration order."""
        calls: list[str] = []
        observers = [
            RecordingObserver(name, on_will_send=lambda _request, name=name: calls.append(name))
            for name in ("first", "second", "third")
        ]
        registry = ObserverRegistry(observers)

        tokens = registry.notify_will_send(_request())

        assert calls == ["first", "second", "third"]
        assert [token.observer for token in tokens] == observers

    def test_registry_does_not_keep_observers_alive(self):
        observer = RecordingObserver()
        ref = weakref.ref(observer)
        registry = ObserverRegistry([observer])

        del observer
        gc.collect()

        assert ref() is None
        assert registry.live_observers == []

    def test_released_observers_get_no_token(self):
        keep = RecordingObserver("keep")
        drop = RecordingObserver("drop")
        registry = ObserverRegistry([drop, keep])

        del drop
        gc.collect()
        tokens = registry.notify_will_send(_request())

        assert len(tokens) == 1
        assert tokens[0].observer is keep

    def test_rejects_objects_without_observer_hooks(self):
        with pytest.raises(TypeError, match="GraphQLNetworkObserver"):
            ObserverRegistry([object()])

    def test_hook_exception_propagates(self):
        """A raising will_send hook is surfaced to the caller unchanged."""

        def explode(_request):
            raise RuntimeError("observer bug")

        faulty = RecordingObserver(on_will_send=explode)
        registry = ObserverRegistry([faulty])

        with pytest.raises(RuntimeError, match="observer bug"):
            registry.notify_will_send(_request())

    def test_hook_exception_fails_earlier_tokens(self):
        """Observers notified before a raising hook still get a terminal callback."""

        def explode(_request):
            raise RuntimeError("observer bug")

        first = RecordingObserver("first")
        faulty = RecordingObserver("faulty", on_will_send=explode)
        last = RecordingObserver("last")
        registry = ObserverRegistry([first, faulty, last])

        with pytest.raises(RuntimeError):
            registry.notify_will_send(_request())

        assert first.kinds == ["will_send", "failure"]
        error = first.events[1][2]
        assert isinstance(error, UnhandledAdapterError)
        assert isinstance(error.error, RuntimeError)
        assert faulty.events == []
        assert last.events == []

    def test_empty_registry(self):
        registry = ObserverRegistry()

        assert len(registry) == 0
        assert registry.notify_will_send(_request()) == []


# -----------------------------------------------------------------------------
# LoggingNetworkObserver
# -----------------------------------------------------------------------------

class TestLoggingNetworkObserver:
    """Tests for LoggingNetworkObserver."""

    def test_logs_send_response_and_failure(self, caplog):
        logger = logging.getLogger("tests.logging_observer")
        observer = LoggingNetworkObserver(logger)
        request = _request()
        caplog.set_level(logging.INFO, logger="tests.logging_observer")

        started = observer.will_send_request(request)
        observer.did_receive_response(request, json_response({}, status=502), b"{}", started)
        observer.did_fail(request, NetworkError(502, HTTPStatusError(502, "Bad Gateway")), started)

        messages = [record.getMessage() for record in caplog.records]
        assert messages[0].startswith("-> query HeroName")
        assert "HTTP 502" in messages[1]
        assert "[network]" in messages[2]
        assert caplog.records[2].levelno == logging.WARNING

    def test_context_is_a_timestamp(self):
        observer = LoggingNetworkObserver()

        assert isinstance(observer.will_send_request(_request()), float)
