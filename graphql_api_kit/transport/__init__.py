"""Transport subsystem.

- Transport: protocol the pipeline sends requests through
- TransportResponse / TransportChunk: raw wire-level results
- AiohttpTransport: default HTTP implementation
"""

from __future__ import annotations

from .aiohttp_transport import AiohttpTransport
from .base import Transport, TransportChunk, TransportResponse

__all__ = [
    "Transport",
    "TransportResponse",
    "TransportChunk",
    "AiohttpTransport",
]
