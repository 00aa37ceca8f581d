"""Configuration for the GraphQL adapter.

This module contains the configuration schemas and constants:
- Valves: adapter-wide configuration (endpoint, default headers, HTTP timeouts,
  retry policy, success status range, logging and timing switches)
- RequestConfiguration: per-call options (additional headers)
- Wire constants (content types and Accept headers)

Configuration is read once when an adapter is constructed.
"""

from __future__ import annotations

import os
from typing import Literal, Optional, cast

from pydantic import BaseModel, ConfigDict, Field, model_validator

# -----------------------------------------------------------------------------
# Constants
# -----------------------------------------------------------------------------

_DEFAULT_ENDPOINT_URL = "http://localhost:4000/graphql"

JSON_CONTENT_TYPE = "application/json"
GRAPHQL_RESPONSE_CONTENT_TYPE = "application/graphql-response+json"
MULTIPART_CONTENT_TYPE = "multipart/mixed"
EVENT_STREAM_CONTENT_TYPE = "text/event-stream"

SINGLE_RESPONSE_ACCEPT = f"{GRAPHQL_RESPONSE_CONTENT_TYPE}, {JSON_CONTENT_TYPE};q=0.9"
INCREMENTAL_ACCEPT = (
    f"{MULTIPART_CONTENT_TYPE};deferSpec=20220824, "
    f"{EVENT_STREAM_CONTENT_TYPE};q=0.9, {JSON_CONTENT_TYPE};q=0.8"
)
SUBSCRIPTION_ACCEPT = (
    f"{MULTIPART_CONTENT_TYPE};subscriptionSpec=1.0, "
    f"{EVENT_STREAM_CONTENT_TYPE};q=0.9, {JSON_CONTENT_TYPE};q=0.8"
)

_ALLOWED_LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _resolve_log_level_default() -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
    """Normalize env-provided log level to the allowed literal set."""
    value = (os.getenv("GLOBAL_LOG_LEVEL") or "INFO").strip().upper()
    if value not in _ALLOWED_LOG_LEVELS:
        value = "INFO"
    return cast(Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], value)


# -----------------------------------------------------------------------------
# Valves
# -----------------------------------------------------------------------------

class Valves(BaseModel):
    """Adapter configuration supplied once at construction."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Endpoint & headers
    ENDPOINT_URL: str = Field(
        default=((os.getenv("GRAPHQL_API_ENDPOINT_URL") or "").strip() or _DEFAULT_ENDPOINT_URL),
        description="GraphQL endpoint URL. Defaults to the GRAPHQL_API_ENDPOINT_URL environment variable.",
    )
    DEFAULT_HEADERS: dict[str, str] = Field(
        default_factory=dict,
        description="Headers added to every request. Per-request headers with the same name win.",
    )

    # HTTP timeouts
    HTTP_CONNECT_TIMEOUT_SECONDS: int = Field(
        default=10,
        ge=1,
        description="Seconds to wait for the TCP/TLS connection before failing.",
    )
    HTTP_TOTAL_TIMEOUT_SECONDS: Optional[int] = Field(
        default=None,
        ge=1,
        description="Overall HTTP timeout (seconds). Null disables it so long-lived subscriptions are not interrupted.",
    )
    HTTP_SOCK_READ_SECONDS: int = Field(
        default=300,
        ge=1,
        description="Idle read timeout (seconds) applied when HTTP_TOTAL_TIMEOUT_SECONDS is disabled.",
    )

    # Retry policy
    MAX_ATTEMPTS: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Total transport attempts for one single-shot operation. 1 disables retries.",
    )
    RETRY_INITIAL_DELAY_SECONDS: float = Field(
        default=0.5,
        ge=0,
        description="Initial exponential backoff delay between attempts.",
    )
    RETRY_MAX_DELAY_SECONDS: float = Field(
        default=4.0,
        ge=0,
        description="Upper bound for the backoff delay (a larger Retry-After header still wins).",
    )

    # Response validation
    SUCCESS_STATUS_MIN: int = Field(
        default=200,
        ge=100,
        le=599,
        description="Lowest HTTP status treated as success.",
    )
    SUCCESS_STATUS_MAX: int = Field(
        default=299,
        ge=100,
        le=599,
        description="Highest HTTP status treated as success.",
    )

    # Streaming
    STREAM_BUFFER_SIZE: int = Field(
        default=32,
        ge=1,
        description="Payloads buffered between the transport reader and the consumer of a stream.",
    )

    # Logging & timing
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default_factory=_resolve_log_level_default,
        description="Level applied to the graphql_api_kit logger. Defaults to GLOBAL_LOG_LEVEL.",
    )
    ENABLE_TIMING_LOG: bool = Field(
        default=False,
        description="Record @timed/timing_scope events per correlation id.",
    )
    TIMING_LOG_FILE: str = Field(
        default="logs/graphql_timing.jsonl",
        description="JSONL file that receives timing events when ENABLE_TIMING_LOG is on.",
    )

    @model_validator(mode="after")
    def _check_status_range(self) -> "Valves":
        if self.SUCCESS_STATUS_MIN > self.SUCCESS_STATUS_MAX:
            raise ValueError("SUCCESS_STATUS_MIN must not exceed SUCCESS_STATUS_MAX")
        return self

    def is_success_status(self, status: int) -> bool:
        return self.SUCCESS_STATUS_MIN <= status <= self.SUCCESS_STATUS_MAX


# -----------------------------------------------------------------------------
# Per-request configuration
# -----------------------------------------------------------------------------

class RequestConfiguration(BaseModel):
    """Options for a single query, mutation or subscription call."""

    model_config = ConfigDict(frozen=True)

    headers: Optional[dict[str, str]] = Field(
        default=None,
        description="Additional headers for this call, e.g. Authorization or Accept-Language.",
    )

    @property
    def additional_headers(self) -> dict[str, str]:
        return dict(self.headers or {})
