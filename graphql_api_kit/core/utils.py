"""Shared utility functions for the GraphQL adapter.

This module contains small helpers used across the codebase:
- JSON helper (_pretty_json)
- Header helpers (_redact_headers, _header_lookup)
- Retry-After parsing (_retry_after_seconds)

These utilities have no dependencies on the rest of the package.
"""

from __future__ import annotations

import datetime
import email.utils
import json
from typing import Any, Mapping, Optional

_REDACTED_HEADERS = frozenset({"authorization", "proxy-authorization", "cookie", "x-api-key"})


# -----------------------------------------------------------------------------
# JSON Helpers
# -----------------------------------------------------------------------------

def _pretty_json(value: Any) -> str:
    """Return a human-readable JSON string or an empty string when not applicable."""
    if value is None:
        return ""
    if isinstance(value, (str, bytes)):
        text = value.decode("utf-8", errors="replace") if isinstance(value, bytes) else value
        return text.strip()
    try:
        return json.dumps(value, indent=2, ensure_ascii=False)
    except Exception:
        return str(value)


# -----------------------------------------------------------------------------
# Header Helpers
# -----------------------------------------------------------------------------

def _header_lookup(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Case-insensitive header lookup on a plain mapping."""
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def _redact_headers(headers: Optional[Mapping[str, str]]) -> dict[str, str]:
    """Return a copy of ``headers`` with credentials shortened for logging."""
    redacted: dict[str, str] = {}
    for key, value in (headers or {}).items():
        if key.lower() in _REDACTED_HEADERS:
            token = str(value)
            redacted[key] = f"{token[:10]}..." if len(token) > 10 else "***"
        else:
            redacted[key] = value
    return redacted


# -----------------------------------------------------------------------------
# Retry-After
# -----------------------------------------------------------------------------

def _retry_after_seconds(value: Optional[str]) -> Optional[float]:
    """Convert Retry-After header value into seconds."""
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed:
        return None
    try:
        seconds = float(trimmed)
        return max(0.0, seconds)
    except ValueError:
        pass
    try:
        dt = email.utils.parsedate_to_datetime(trimmed)
    except (TypeError, ValueError):
        return None
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    now = datetime.datetime.now(datetime.timezone.utc)
    return max(0.0, (dt - now).total_seconds())
