"""Result models.

Submodules:
    result: GraphQLResult, IncrementalPayload and response body decoding
"""

from .result import GraphQLResult, IncrementalPayload

__all__ = [
    "GraphQLResult",
    "IncrementalPayload",
]
