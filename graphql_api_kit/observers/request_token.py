"""Per-observer, per-attempt correlation handle."""

from __future__ import annotations

import logging
import weakref
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..core.errors import GraphQLAPIAdapterError
    from ..requests.context import HTTPRequest
    from ..transport.base import TransportResponse
    from .network_observer import GraphQLNetworkObserver

LOGGER = logging.getLogger(__name__)


class RequestToken:
    """Pairs one observer with one send attempt.

    The token keeps only a weak reference to its observer. Once the observer has
    been garbage collected, ``on_response`` and ``on_failure`` do nothing.

    ``on_response`` and ``on_failure`` each fire at most once, and
    ``on_response`` is ignored once ``on_failure`` has fired so observers never
    see a failure followed by a response.
    """

    __slots__ = ("_observer_ref", "request", "context", "_responded", "_failed", "__weakref__")

    def __init__(
        self,
        observer_ref: "weakref.ref[GraphQLNetworkObserver]",
        request: "HTTPRequest",
        context: Any,
    ) -> None:
        self._observer_ref = observer_ref
        self.request = request
        self.context = context
        self._responded = False
        self._failed = False

    @classmethod
    def open(
        cls,
        observer: "GraphQLNetworkObserver | weakref.ref[GraphQLNetworkObserver]",
        request: "HTTPRequest",
    ) -> Optional["RequestToken"]:
        """Fire ``will_send_request`` and return the token, or None if the observer is gone."""
        observer_ref = observer if isinstance(observer, weakref.ref) else weakref.ref(observer)
        target = observer_ref()
        if target is None:
            return None
        context = target.will_send_request(request)
        return cls(observer_ref, request, context)

    @property
    def observer(self) -> "Optional[GraphQLNetworkObserver]":
        return self._observer_ref()

    @property
    def alive(self) -> bool:
        return self._observer_ref() is not None

    @property
    def terminated(self) -> bool:
        return self._failed

    def on_response(self, response: "TransportResponse", data: Optional[bytes]) -> None:
        if self._responded or self._failed:
            return
        self._responded = True
        target = self._observer_ref()
        if target is None:
            LOGGER.debug("Observer released before response (cid=%s)", self.request.correlation_id)
            return
        target.did_receive_response(self.request, response, data, self.context)

    def on_failure(self, error: "GraphQLAPIAdapterError") -> None:
        if self._failed:
            return
        self._failed = True
        target = self._observer_ref()
        if target is None:
            LOGGER.debug("Observer released before failure (cid=%s)", self.request.correlation_id)
            return
        target.did_fail(self.request, error, self.context)
