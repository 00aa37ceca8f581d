"""Observer registry.

Holds the observers supplied at adapter construction and mints one
RequestToken per live observer for every send attempt.
"""

from __future__ import annotations

import logging
import weakref
from typing import TYPE_CHECKING, Iterable

from ..core.errors import UnhandledAdapterError
from ..core.timing_logger import timed
from .network_observer import GraphQLNetworkObserver
from .request_token import RequestToken

if TYPE_CHECKING:
    from ..requests.context import HTTPRequest

LOGGER = logging.getLogger(__name__)


class ObserverRegistry:
    """Immutable, weakly-held list of network observers.

    Callers own the observers; one that is garbage collected is skipped on
    later attempts and gets no further callbacks for in-flight ones.
    """

    __slots__ = ("_refs",)

    def __init__(self, observers: Iterable[GraphQLNetworkObserver] = ()) -> None:
        refs = []
        for observer in observers:
            if not isinstance(observer, GraphQLNetworkObserver):
                raise TypeError(
                    f"{type(observer).__name__} does not implement GraphQLNetworkObserver "
                    "(will_send_request, did_receive_response, did_fail)"
                )
            refs.append(weakref.ref(observer))
        self._refs: tuple[weakref.ref, ...] = tuple(refs)

    def __len__(self) -> int:
        return len(self._refs)

    @property
    def live_observers(self) -> list[GraphQLNetworkObserver]:
        return [observer for observer in (ref() for ref in self._refs) if observer is not None]

    @timed
    def notify_will_send(self, request: "HTTPRequest") -> list[RequestToken]:
        """Fire ``will_send_request`` on each live observer in registration order.

        If a hook raises, observers already notified for this attempt get
        ``did_fail`` with an UnhandledAdapterError before the exception
        propagates, so every ``will_send_request`` still has a terminal call.
        """
        tokens: list[RequestToken] = []
        for ref in self._refs:
            try:
                token = RequestToken.open(ref, request)
            except Exception as exc:
                error = UnhandledAdapterError(exc)
                for opened in tokens:
                    opened.on_failure(error)
                raise
            if token is None:
                LOGGER.debug("Skipping released observer (cid=%s)", request.correlation_id)
                continue
            tokens.append(token)
        return tokens
