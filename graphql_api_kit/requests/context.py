"""Operation and request descriptors.

This module defines the immutable values that flow through the pipeline:
- OperationKind: query / mutation / subscription
- GraphQLOperation: document, operation name, variables and optional result model
- RequestContext: one send attempt (operation, endpoint, fresh correlation id)
- HTTPRequest: the fully-headered request handed to the transport
"""

from __future__ import annotations

import enum
import re
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional, Type

from pydantic import BaseModel

_OPERATION_NAME_RE = re.compile(r"^\s*(query|mutation|subscription)\s+([_A-Za-z][_0-9A-Za-z]*)", re.MULTILINE)
_INCREMENTAL_DIRECTIVE_RE = re.compile(r"@(defer|stream)\b")


class OperationKind(str, enum.Enum):
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"


def new_correlation_id() -> str:
    return uuid.uuid4().hex


# -----------------------------------------------------------------------------
# Operations
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class GraphQLOperation:
    """A GraphQL document ready to be executed.

    ``result_model`` is an optional pydantic model used to validate the
    ``data`` object of a successful response. When omitted, results carry the
    decoded JSON unchanged.
    """

    document: str
    operation_name: Optional[str] = None
    variables: Optional[dict[str, Any]] = None
    kind: OperationKind = OperationKind.QUERY
    result_model: Optional[Type[BaseModel]] = None

    @classmethod
    def query(cls, document: str, **kwargs: Any) -> "GraphQLOperation":
        return cls(document, kind=OperationKind.QUERY, **kwargs)

    @classmethod
    def mutation(cls, document: str, **kwargs: Any) -> "GraphQLOperation":
        return cls(document, kind=OperationKind.MUTATION, **kwargs)

    @classmethod
    def subscription(cls, document: str, **kwargs: Any) -> "GraphQLOperation":
        return cls(document, kind=OperationKind.SUBSCRIPTION, **kwargs)

    @property
    def name(self) -> str:
        """Operation name used in logs: explicit name, then the document's, then the kind."""
        if self.operation_name:
            return self.operation_name
        match = _OPERATION_NAME_RE.search(self.document)
        if match:
            return match.group(2)
        return self.kind.value

    @property
    def incremental(self) -> bool:
        """True when the document requests incremental delivery (``@defer``/``@stream``)."""
        return bool(_INCREMENTAL_DIRECTIVE_RE.search(self.document))

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"query": self.document}
        if self.operation_name:
            payload["operationName"] = self.operation_name
        if self.variables:
            payload["variables"] = dict(self.variables)
        return payload


# -----------------------------------------------------------------------------
# Per-attempt descriptors
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RequestContext:
    """Immutable descriptor of one send attempt."""

    operation_name: str
    operation_kind: OperationKind
    endpoint: str
    correlation_id: str
    attempt: int = 1

    @classmethod
    def new(cls, operation: GraphQLOperation, endpoint: str, attempt: int = 1) -> "RequestContext":
        return cls(
            operation_name=operation.name,
            operation_kind=operation.kind,
            endpoint=endpoint,
            correlation_id=new_correlation_id(),
            attempt=attempt,
        )


@dataclass(slots=True)
class HTTPRequest:
    """Request descriptor handed to observers and to the transport."""

    context: RequestContext
    operation: GraphQLOperation
    url: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    streaming: bool = False

    @property
    def correlation_id(self) -> str:
        return self.context.correlation_id

    @property
    def body(self) -> dict[str, Any]:
        return self.operation.to_payload()
