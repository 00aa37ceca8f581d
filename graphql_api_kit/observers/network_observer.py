"""Network observer capability.

An observer is a passive collaborator notified of each send attempt. It returns
an opaque context value from ``will_send_request``; the pipeline hands that
same value back to ``did_receive_response`` and ``did_fail`` for the attempt.

Hooks run synchronously inside the request flow and must only do lightweight
bookkeeping (no I/O). An exception raised by a hook propagates to the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..core.errors import GraphQLAPIAdapterError
    from ..requests.context import HTTPRequest
    from ..transport.base import TransportResponse


@runtime_checkable
class GraphQLNetworkObserver(Protocol):
    def will_send_request(self, request: "HTTPRequest") -> Any:
        """Called once per attempt before the transport is invoked."""
        ...

    def did_receive_response(
        self,
        request: "HTTPRequest",
        response: "TransportResponse",
        data: Optional[bytes],
        context: Any,
    ) -> None:
        """Called with the raw transport outcome, before status validation and parsing."""
        ...

    def did_fail(self, request: "HTTPRequest", error: "GraphQLAPIAdapterError", context: Any) -> None:
        """Called when the attempt ends with an error."""
        ...
