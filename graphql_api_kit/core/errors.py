"""Error taxonomy, classification and retry policy.

This module handles all error-related functionality:
- GraphQLError: one application error from a response's ``errors`` array
- GraphQLAPIAdapterError and its five kinds (cancelled, connection, network,
  GraphQL errors, unhandled)
- classify_error(): maps transport/runtime exceptions onto the taxonomy
- Retry helpers used with tenacity (_is_retryable_error, _RetryWait)

Every failure leaving the adapter is one of the kinds defined here.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import aiohttp

LOGGER = logging.getLogger(__name__)

_MISSING_MESSAGE = "-No message-"
_RETRYABLE_STATUS_CODES = frozenset({408, 425, 429})


# -----------------------------------------------------------------------------
# GraphQL application errors
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class GraphQLError:
    """A single entry of a GraphQL response's ``errors`` array."""

    message: str
    code: Optional[str] = None
    path: Optional[list[str | int]] = None
    locations: Optional[list[dict[str, int]]] = None
    extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "GraphQLError":
        """Build a GraphQLError from a wire-format error object."""
        message = raw.get("message") if isinstance(raw, Mapping) else None
        if not isinstance(message, str):
            LOGGER.warning("GraphQL error is missing required `message` field: %r", raw)
            message = _MISSING_MESSAGE
        extensions = raw.get("extensions") if isinstance(raw, Mapping) else None
        extensions = dict(extensions) if isinstance(extensions, Mapping) else {}
        code = extensions.get("code")
        return cls(
            message=message,
            code=code if isinstance(code, str) else None,
            path=raw.get("path") if isinstance(raw.get("path"), list) else None,
            locations=raw.get("locations") if isinstance(raw.get("locations"), list) else None,
            extensions=extensions,
        )

    @property
    def error_description(self) -> str:
        return self.message

    def __str__(self) -> str:
        return self.message


def parse_graphql_errors(raw_errors: Any) -> list[GraphQLError]:
    """Convert a wire ``errors`` value into GraphQLError objects."""
    if not isinstance(raw_errors, list):
        return []
    errors: list[GraphQLError] = []
    for entry in raw_errors:
        if isinstance(entry, Mapping):
            errors.append(GraphQLError.from_dict(entry))
        else:
            errors.append(GraphQLError(message=str(entry)))
    return errors


# -----------------------------------------------------------------------------
# Adapter error taxonomy
# -----------------------------------------------------------------------------

class ErrorKind(str, enum.Enum):
    CANCELLED = "cancelled"
    CONNECTION = "connection"
    NETWORK = "network"
    GRAPHQL = "graphql"
    UNHANDLED = "unhandled"


class GraphQLAPIAdapterError(Exception):
    """Base class for every failure surfaced by the adapter."""

    kind: ErrorKind = ErrorKind.UNHANDLED

    @property
    def error_description(self) -> Optional[str]:
        return None

    def __str__(self) -> str:
        return self.error_description or self.kind.value


class OperationCancelledError(GraphQLAPIAdapterError):
    """The caller (or an upstream component) cancelled the operation."""

    kind = ErrorKind.CANCELLED

    def __str__(self) -> str:
        return "Request was cancelled"


class ConnectionFailedError(GraphQLAPIAdapterError):
    """The request never reached the server or never got a response."""

    kind = ErrorKind.CONNECTION

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(error)

    @property
    def error_description(self) -> Optional[str]:
        return str(self.error) or type(self.error).__name__


class NetworkError(GraphQLAPIAdapterError):
    """The server answered with a status outside the success range."""

    kind = ErrorKind.NETWORK

    def __init__(
        self,
        code: int,
        error: BaseException,
        *,
        retry_after: Optional[float] = None,
        body: Optional[bytes] = None,
    ) -> None:
        self.code = code
        self.error = error
        self.retry_after = retry_after
        self.body = body
        super().__init__(code, error)

    @property
    def error_description(self) -> Optional[str]:
        return str(self.error) or f"HTTP {self.code}"


class GraphQLOperationError(GraphQLAPIAdapterError):
    """The response carried one or more GraphQL application errors."""

    kind = ErrorKind.GRAPHQL

    def __init__(self, errors: list[GraphQLError], *, data: Any = None) -> None:
        self.errors = list(errors)
        self.data = data
        super().__init__(self.errors)

    @property
    def error_description(self) -> Optional[str]:
        if not self.errors:
            return None
        return self.errors[0].error_description


class UnhandledAdapterError(GraphQLAPIAdapterError):
    """Any failure that does not match one of the other kinds."""

    kind = ErrorKind.UNHANDLED

    def __init__(self, error: BaseException) -> None:
        self.error = error
        super().__init__(error)

    @property
    def error_description(self) -> Optional[str]:
        return str(self.error) or type(self.error).__name__


class ResponseParsingError(UnhandledAdapterError):
    """The response body could not be decoded into an operation result."""

    def __init__(self, message: str, *, body: Optional[bytes] = None, cause: Optional[BaseException] = None) -> None:
        self.body = body
        self.cause = cause
        super().__init__(ValueError(message))


class HTTPStatusError(Exception):
    """Underlying error carried by NetworkError for non-success statuses."""

    def __init__(self, status: int, reason: Optional[str] = None) -> None:
        self.status = status
        self.reason = reason
        super().__init__(f"Response status code was unacceptable: {status} {reason or ''}".rstrip())


# -----------------------------------------------------------------------------
# Classification
# -----------------------------------------------------------------------------

def classify_error(error: BaseException) -> GraphQLAPIAdapterError:
    """Map any exception onto the adapter error taxonomy."""
    if isinstance(error, GraphQLAPIAdapterError):
        return error
    if isinstance(error, asyncio.CancelledError):
        return OperationCancelledError()
    if isinstance(error, aiohttp.ClientResponseError):
        return NetworkError(error.status, error)
    if isinstance(error, (aiohttp.ClientConnectionError, asyncio.TimeoutError, OSError)):
        return ConnectionFailedError(error)
    return UnhandledAdapterError(error)


# -----------------------------------------------------------------------------
# Retry helpers (tenacity)
# -----------------------------------------------------------------------------

def _is_retryable_status(status: int) -> bool:
    return status >= 500 or status in _RETRYABLE_STATUS_CODES


def _is_retryable_error(error: BaseException) -> bool:
    """Return True for transient failures worth another transport attempt."""
    if isinstance(error, ConnectionFailedError):
        return True
    if isinstance(error, NetworkError):
        return _is_retryable_status(error.code)
    return False


class _RetryWait:
    """Tenacity wait strategy honoring Retry-After hints on NetworkError."""

    def __init__(self, base_wait):
        self._base_wait = base_wait

    def __call__(self, retry_state) -> float:
        base_delay = self._base_wait(retry_state) if self._base_wait else 0
        exc = None
        if retry_state.outcome is not None and retry_state.outcome.failed:
            exc = retry_state.outcome.exception()
        if isinstance(exc, NetworkError):
            retry_after = exc.retry_after
            if isinstance(retry_after, (int, float)) and retry_after > 0:
                return max(base_delay, retry_after)
        return base_delay
