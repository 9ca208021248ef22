"""Correlation context for request tracing."""

import uuid
import logging
import contextvars
from contextlib import contextmanager
from typing import Iterator, Optional


# Context variable for correlation ID (thread-safe, async-safe)
correlation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)

# Context variable for session ID
session_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "session_id", default=None
)


def generate_correlation_id() -> str:
    """Generate unique correlation ID."""
    return str(uuid.uuid4())[:8]


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return correlation_id_var.get()


def set_correlation_id(cid: str | None):
    """Set correlation ID in context."""
    correlation_id_var.set(cid)


def get_session_id() -> str | None:
    """Get current session ID from context."""
    return session_id_var.get()


def set_session_id(sid: str | None):
    """Set session ID in context."""
    session_id_var.set(sid)


@contextmanager
def request_context(
    correlation_id: Optional[str] = None,
    session_id: Optional[str] = None,
) -> Iterator[str]:
    """
    Tag every log record emitted inside the block with a correlation ID.

    Generates a correlation ID when none is given. Previous values are
    restored on exit so nested contexts behave.

    Usage:
        with request_context(session_id=session.sid) as cid:
            logger.info("Handling page")
    """
    cid = correlation_id or generate_correlation_id()
    cid_token = correlation_id_var.set(cid)
    sid_token = session_id_var.set(session_id) if session_id is not None else None
    try:
        yield cid
    finally:
        correlation_id_var.reset(cid_token)
        if sid_token is not None:
            session_id_var.reset(sid_token)


class CorrelationLogFilter(logging.Filter):
    """
    Logging filter that adds correlation_id and session_id to log records.

    Use with standard logging to auto-inject context vars.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "correlation_id", None):
            record.correlation_id = get_correlation_id()
        record.session_id = get_session_id()
        return True
