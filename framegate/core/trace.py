from __future__ import annotations

import contextlib
import contextvars
import uuid
from typing import Iterator, Optional

_TRACE_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("framegate.trace_id", default=None)
_USER_ID: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("framegate.user_id", default=None)


def new_trace_id() -> str:
    return uuid.uuid4().hex


def current_trace_id(default: Optional[str] = None) -> Optional[str]:
    trace_id = _TRACE_ID.get()
    return trace_id if trace_id else default


def current_user_id() -> Optional[str]:
    """Local user id of the authenticated user handling the current request."""
    return _USER_ID.get()


def resolve_trace_id(trace_id: Optional[str] = None) -> str:
    if trace_id:
        return str(trace_id)
    existing = current_trace_id()
    if existing:
        return existing
    return new_trace_id()


@contextlib.contextmanager
def request_context(trace_id: Optional[str], user_id: Optional[str] = None) -> Iterator[str]:
    tid = resolve_trace_id(trace_id)
    t_token = _TRACE_ID.set(tid)
    u_token = _USER_ID.set(str(user_id) if user_id else None)
    try:
        yield tid
    finally:
        _USER_ID.reset(u_token)
        _TRACE_ID.reset(t_token)
