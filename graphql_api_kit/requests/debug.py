"""Debug utilities for request/response logging.

These helpers log sanitized request/response data at DEBUG level. Credentials in
headers are shortened before they reach any handler.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from ..core.timing_logger import timed
from ..core.utils import _pretty_json, _redact_headers

_MAX_BODY_PREVIEW = 2048


@timed
def _debug_print_request(
    headers: Mapping[str, str],
    payload: Optional[dict[str, Any]],
    *,
    logger: logging.Logger,
) -> None:
    """Log sanitized request metadata when DEBUG logging is enabled."""
    if not logger.isEnabledFor(logging.DEBUG):
        return

    try:
        logger.debug("GraphQL request headers: %s", json.dumps(_redact_headers(headers), indent=2))
        if payload is not None:
            logger.debug("GraphQL request payload: %s", json.dumps(payload, indent=2, ensure_ascii=False))
    except Exception:
        # Never allow debug logging helpers to break request handling.
        logger.debug("GraphQL request debug logging failed", exc_info=True)


@timed
def _debug_print_response(
    status: int,
    headers: Mapping[str, str],
    body: Optional[bytes],
    *,
    logger: logging.Logger,
) -> None:
    """Log the response status, headers and a body preview when DEBUG logging is enabled."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    try:
        preview = _pretty_json(body)
        if len(preview) > _MAX_BODY_PREVIEW:
            preview = preview[:_MAX_BODY_PREVIEW] + "...(truncated)"
        logger.debug(
            "GraphQL response status=%s headers=%s body=%s",
            status,
            json.dumps(_redact_headers(headers), indent=2),
            preview,
        )
    except Exception:
        logger.debug("GraphQL response debug logging failed", exc_info=True)
