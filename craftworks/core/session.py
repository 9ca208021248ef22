"""
Session - Minimal per-visitor session context.

The web layer owns session persistence and authentication. The core only
needs to know which session is active so that private cache entries and the
session-scoped cache backend can find their data.

Usage:
    from craftworks.core.session import Session, session_scope

    with session_scope(Session(sid=cookie_value, data=stored_data)):
        user = persister.find_unique("User", "ID", 3)
"""

import uuid
import contextvars
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional

from craftworks.common.logging.correlation import request_context


@dataclass
class Session:
    """Session identifier plus its mutable data map."""
    sid: str = field(default_factory=lambda: uuid.uuid4().hex)
    data: Dict[str, Any] = field(default_factory=dict)


_current_session: contextvars.ContextVar[Optional[Session]] = contextvars.ContextVar(
    "current_session", default=None
)


def get_current_session() -> Optional[Session]:
    """Get the session active in this context, if any."""
    return _current_session.get()


def set_current_session(session: Optional[Session]) -> contextvars.Token:
    """Activate a session; returns the token to restore the previous one."""
    return _current_session.set(session)


@contextmanager
def session_scope(session: Optional[Session] = None) -> Iterator[Session]:
    """
    Activate a session for the duration of the block.

    A fresh session is created when none is given. Log records emitted inside
    the block carry the session ID.
    """
    session = session or Session()
    token = _current_session.set(session)
    try:
        with request_context(session_id=session.sid):
            yield session
    finally:
        _current_session.reset(token)
