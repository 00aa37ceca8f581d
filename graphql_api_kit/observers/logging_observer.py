"""Ready-made observer that logs every attempt."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from ..core.errors import GraphQLAPIAdapterError
    from ..requests.context import HTTPRequest
    from ..transport.base import TransportResponse


class LoggingNetworkObserver:
    """Log send / response / failure events with the elapsed time of the attempt.

    The observer context is the ``time.perf_counter()`` value captured at send
    time, so the observer itself stays stateless across concurrent requests.
    """

    def __init__(self, logger: Optional[logging.Logger] = None, *, level: int = logging.INFO) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.level = level

    def will_send_request(self, request: "HTTPRequest") -> float:
        self.logger.log(
            self.level,
            "-> %s %s (%s attempt %d)",
            request.context.operation_kind.value,
            request.context.operation_name,
            request.correlation_id,
            request.context.attempt,
        )
        return time.perf_counter()

    def did_receive_response(
        self,
        request: "HTTPRequest",
        response: "TransportResponse",
        data: Optional[bytes],
        context: Any,
    ) -> None:
        self.logger.log(
            self.level,
            "<- %s HTTP %s in %.1f ms (%s bytes)",
            request.context.operation_name,
            response.status,
            self._elapsed_ms(context),
            len(data) if data is not None else "streamed",
        )

    def did_fail(self, request: "HTTPRequest", error: "GraphQLAPIAdapterError", context: Any) -> None:
        self.logger.warning(
            "x- %s failed after %.1f ms: [%s] %s",
            request.context.operation_name,
            self._elapsed_ms(context),
            error.kind.value,
            error,
        )

    @staticmethod
    def _elapsed_ms(started: Any) -> float:
        if not isinstance(started, float):
            return 0.0
        return (time.perf_counter() - started) * 1000
