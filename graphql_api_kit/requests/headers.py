"""Header resolution.

``resolve_headers`` merges the adapter's default headers with the headers of a
single call. Later layers win; names compare case-insensitively.
"""

from __future__ import annotations

from typing import Mapping, Optional, Protocol, Union, runtime_checkable


@runtime_checkable
class RequestHeaders(Protocol):
    """Anything that can contribute per-request headers."""

    @property
    def additional_headers(self) -> Mapping[str, str]: ...


HeaderSource = Union[None, Mapping[str, str], RequestHeaders]


def _as_mapping(source: HeaderSource) -> Mapping[str, str]:
    if source is None:
        return {}
    if isinstance(source, Mapping):
        return source
    if isinstance(source, RequestHeaders):
        return source.additional_headers or {}
    raise TypeError(f"Unsupported header source: {type(source).__name__}")


def resolve_headers(defaults: HeaderSource, overrides: HeaderSource = None) -> dict[str, str]:
    """Return ``defaults`` overlaid with ``overrides``.

    When a header name appears in both layers the override value wins and the
    override's spelling of the name is kept.
    """
    merged: dict[str, str] = {}
    spelling: dict[str, str] = {}
    for layer in (_as_mapping(defaults), _as_mapping(overrides)):
        for name, value in layer.items():
            key = name.lower()
            previous = spelling.get(key)
            if previous is not None and previous != name:
                del merged[previous]
            spelling[key] = name
            merged[name] = str(value)
    return merged
