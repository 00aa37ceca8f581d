"""Network observation subsystem.

- GraphQLNetworkObserver: capability protocol implemented by observers
- ObserverRegistry: weakly-held observer list, mints tokens per attempt
- RequestToken: per-observer, per-attempt callback handle
- LoggingNetworkObserver: ready-made observer logging each attempt
"""

from __future__ import annotations

from .logging_observer import LoggingNetworkObserver
from .network_observer import GraphQLNetworkObserver
from .registry import ObserverRegistry
from .request_token import RequestToken

__all__ = [
    "GraphQLNetworkObserver",
    "ObserverRegistry",
    "RequestToken",
    "LoggingNetworkObserver",
]
