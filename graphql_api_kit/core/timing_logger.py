"""Function timing instrumentation keyed by correlation id.

Provides:
- @timed decorator for entrance/exit timing of sync and async functions
- timing_scope() context manager for code block timing
- timing_mark() for point-in-time events
- Optional JSONL file output (configured via the TIMING_LOG_FILE valve)

Usage:
    from .core.timing_logger import timed, timing_scope, timing_mark

    @timed
    async def send(request):
        with timing_scope("transport.post"):
            ...
        timing_mark("first_chunk")

Events are attributed to the correlation id of the attempt being processed
(see ``core.logging_system``). Nothing is recorded unless timing is enabled.
The in-memory buffer for an attempt is dropped once the attempt finishes;
configure a timing file to keep events past that point.
"""

from __future__ import annotations

import datetime
import functools
import inspect
import json
import threading
import time
from collections import deque
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional, TypeVar

from .logging_system import correlation_id

MAX_TIMING_EVENTS = 2000

_timing_enabled: ContextVar[bool] = ContextVar("timing_enabled", default=False)

_events: Dict[str, Deque[Dict[str, Any]]] = {}
_events_lock = threading.Lock()

_file_lock = threading.Lock()
_file_path: Optional[Path] = None
_file_handle: Optional[Any] = None


# -----------------------------------------------------------------------------
# Internal helpers
# -----------------------------------------------------------------------------


def _iso_utc(wall_ts: float) -> str:
    dt = datetime.datetime.fromtimestamp(wall_ts, tz=datetime.timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _record(event: str, label: str, elapsed_ms: Optional[float] = None) -> None:
    cid = correlation_id.get()
    if not cid:
        return
    record: Dict[str, Any] = {
        "ts": _iso_utc(time.time()),
        "perf_ts": round(time.perf_counter(), 6),
        "event": event,
        "label": label,
        "correlation_id": cid,
    }
    if elapsed_ms is not None:
        record["elapsed_ms"] = round(elapsed_ms, 3)

    with _events_lock:
        buffer = _events.get(cid)
        if buffer is None:
            buffer = _events[cid] = deque(maxlen=MAX_TIMING_EVENTS)
        buffer.append(record)

    with _file_lock:
        if _file_handle is not None:
            try:
                _file_handle.write(json.dumps(record, separators=(",", ":")) + "\n")
                _file_handle.flush()
            except OSError:
                pass  # timing output must never break a request


# -----------------------------------------------------------------------------
# Public API: configuration
# -----------------------------------------------------------------------------


@contextmanager
def timing_context(enabled: bool) -> Iterator[None]:
    """Enable or disable timing for the duration of the block only."""
    token = _timing_enabled.set(bool(enabled))
    try:
        yield
    finally:
        _timing_enabled.reset(token)


def configure_timing_file(file_path: str) -> bool:
    """Open ``file_path`` for JSONL timing output, replacing any previous file.

    Returns True when the file is ready for writing.
    """
    global _file_path, _file_handle
    path = Path(file_path)
    with _file_lock:
        if _file_handle is not None and _file_path == path:
            return True
        if _file_handle is not None:
            _file_handle.close()
            _file_handle = None
            _file_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            _file_handle = open(path, "a", encoding="utf-8")
        except OSError:
            return False
        _file_path = path
        return True


def close_timing_file() -> None:
    """Close the timing log file. Safe to call multiple times."""
    global _file_path, _file_handle
    with _file_lock:
        if _file_handle is not None:
            _file_handle.close()
        _file_handle = None
        _file_path = None


def get_timing_events(cid: str) -> List[Dict[str, Any]]:
    """Return the buffered events recorded under correlation id ``cid``."""
    with _events_lock:
        buffer = _events.get(cid)
        return list(buffer) if buffer else []


def clear_timing_events(cid: Optional[str] = None) -> None:
    """Drop buffered events for ``cid`` (or all of them)."""
    with _events_lock:
        if cid is None:
            _events.clear()
        else:
            _events.pop(cid, None)


# -----------------------------------------------------------------------------
# Public API: marks, scopes, decorator
# -----------------------------------------------------------------------------


def timing_mark(label: str) -> None:
    """Record a single point-in-time event."""
    if not _timing_enabled.get():
        return
    _record("mark", label)


@contextmanager
def timing_scope(label: str):
    """Record enter/exit events with elapsed time around a code block."""
    if not _timing_enabled.get():
        yield
        return
    start = time.perf_counter()
    _record("enter", label)
    try:
        yield
    finally:
        _record("exit", label, (time.perf_counter() - start) * 1000)


F = TypeVar("F", bound=Callable[..., Any])


def timed(func: F) -> F:
    """Decorator recording entrance/exit of ``func`` (sync or async)."""
    module = getattr(func, "__module__", "") or ""
    if module.startswith("graphql_api_kit."):
        module = module[len("graphql_api_kit.") :]
    qualname = getattr(func, "__qualname__", "") or getattr(func, "__name__", "unknown")
    label = f"{module}.{qualname}" if module else qualname

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            if not _timing_enabled.get():
                return await func(*args, **kwargs)
            with timing_scope(label):
                return await func(*args, **kwargs)

        return async_wrapper  # type: ignore[return-value]

    @functools.wraps(func)
    def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
        if not _timing_enabled.get():
            return func(*args, **kwargs)
        with timing_scope(label):
            return func(*args, **kwargs)

    return sync_wrapper  # type: ignore[return-value]
