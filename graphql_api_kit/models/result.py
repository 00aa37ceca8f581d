"""GraphQL result models and body decoding.

This module contains:
- GraphQLResult: one delivered payload (single response, initial incremental
  payload, incremental patch, or subscription event)
- IncrementalPayload: one entry of an ``incremental`` array (@defer / @stream)
- decode_response_body(): single-shot body -> GraphQLResult
- decode_stream_payload(): one streamed JSON document -> GraphQLResult or None
  for heartbeats

GraphQL application errors are raised as GraphQLOperationError; undecodable
bodies raise ResponseParsingError.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from pydantic import ValidationError

from ..core.errors import GraphQLOperationError, ResponseParsingError, parse_graphql_errors

if TYPE_CHECKING:
    from ..requests.context import GraphQLOperation


@dataclass(frozen=True, slots=True)
class IncrementalPayload:
    """Deferred fragment (``data``) or streamed list items (``items``) at ``path``."""

    path: list[str | int] = field(default_factory=list)
    data: Optional[dict[str, Any]] = None
    items: Optional[list[Any]] = None
    label: Optional[str] = None
    extensions: Optional[dict[str, Any]] = None


@dataclass(frozen=True, slots=True)
class GraphQLResult:
    """A successfully decoded GraphQL payload.

    ``data`` is the decoded ``data`` object, or an instance of the operation's
    ``result_model`` when one is set. ``has_next`` is None for single responses
    and subscription events, and mirrors ``hasNext`` for incremental delivery.
    """

    data: Any = None
    extensions: dict[str, Any] = field(default_factory=dict)
    incremental: list[IncrementalPayload] = field(default_factory=list)
    has_next: Optional[bool] = None

    @property
    def is_empty(self) -> bool:
        return self.data is None and not self.incremental and not self.extensions


# -----------------------------------------------------------------------------
# Decoding helpers
# -----------------------------------------------------------------------------

def _load_object(body: Optional[bytes]) -> dict[str, Any]:
    if not body:
        raise ResponseParsingError("Response body is empty", body=body)
    try:
        payload = json.loads(body)
    except (TypeError, ValueError) as exc:
        raise ResponseParsingError(f"Response body is not valid JSON: {exc}", body=body, cause=exc) from exc
    if not isinstance(payload, dict):
        raise ResponseParsingError(
            f"Response body must be a JSON object, got {type(payload).__name__}",
            body=body,
        )
    return payload


def _raise_for_errors(raw_errors: Any, data: Any = None) -> None:
    errors = parse_graphql_errors(raw_errors)
    if errors:
        raise GraphQLOperationError(errors, data=data)


def _validate_data(data: Any, operation: "Optional[GraphQLOperation]", body: Optional[bytes]) -> Any:
    model = operation.result_model if operation is not None else None
    if model is None or data is None:
        return data
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ResponseParsingError(
            f"Response data does not match {model.__name__}: {exc.error_count()} validation error(s)",
            body=body,
            cause=exc,
        ) from exc


def _parse_incremental(entries: Any) -> list[IncrementalPayload]:
    if not isinstance(entries, list):
        return []
    parsed: list[IncrementalPayload] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        _raise_for_errors(entry.get("errors"), entry.get("data"))
        parsed.append(
            IncrementalPayload(
                path=list(entry.get("path") or []),
                data=entry.get("data"),
                items=entry.get("items"),
                label=entry.get("label"),
                extensions=entry.get("extensions"),
            )
        )
    return parsed


def decode_response_body(body: Optional[bytes], operation: "Optional[GraphQLOperation]" = None) -> GraphQLResult:
    """Decode a single-shot GraphQL response body."""
    payload = _load_object(body)
    _raise_for_errors(payload.get("errors"), payload.get("data"))
    if "data" not in payload:
        raise ResponseParsingError("Response body has neither `data` nor `errors`", body=body)
    extensions = payload.get("extensions")
    return GraphQLResult(
        data=_validate_data(payload.get("data"), operation, body),
        extensions=extensions if isinstance(extensions, dict) else {},
    )


def decode_stream_payload(
    body: Optional[bytes],
    operation: "Optional[GraphQLOperation]" = None,
) -> Optional[GraphQLResult]:
    """Decode one streamed document; returns None for keep-alive heartbeats.

    Multipart subscription envelopes (``{"payload": ...}``) are unwrapped and
    their top-level ``errors`` (transport errors) raised. Incremental payloads
    keep their ``hasNext`` flag so the caller can end the stream.
    """
    payload = _load_object(body)
    if not payload:
        return None

    if "payload" in payload:
        _raise_for_errors(payload.get("errors"))
        inner = payload.get("payload")
        if inner is None:
            return None
        if not isinstance(inner, dict):
            raise ResponseParsingError("Subscription payload must be a JSON object", body=body)
        payload = inner

    _raise_for_errors(payload.get("errors"), payload.get("data"))
    incremental = _parse_incremental(payload.get("incremental"))
    has_next = payload.get("hasNext")
    data = payload.get("data")
    if operation is not None and not operation.incremental:
        data = _validate_data(data, operation, body)
    extensions = payload.get("extensions")
    return GraphQLResult(
        data=data,
        extensions=extensions if isinstance(extensions, dict) else {},
        incremental=incremental,
        has_next=has_next if isinstance(has_next, bool) else None,
    )
