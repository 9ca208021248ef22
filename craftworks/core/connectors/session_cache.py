"""
SessionCache - Cache backend stored inside the visitor's session.

Entries live in session.data["cache"]. TTL is emulated with an expiry
timestamp and expired entries are pruned lazily on fetch and keys.
"""

from typing import Callable, Dict, List, Optional

from craftworks.common.logging import get_logger
from ..errors import CacheError, CacheNotFoundError
from ..session import Session, get_current_session
from .inmemory_cache import CacheEntry

logger = get_logger(__name__)

SESSION_CACHE_KEY = "cache"


class SessionCache:
    """
    Session-scoped cache implementation.

    Implements CacheBackendProtocol. The session is resolved on every call,
    so one instance serves all sessions of the process.
    """

    def __init__(self, session_provider: Callable[[], Optional[Session]] = get_current_session):
        """
        Initialize session cache.

        Args:
            session_provider: Returns the active session, or None outside a request
        """
        self._session_provider = session_provider

    def _entries(self) -> Dict[str, CacheEntry]:
        session = self._session_provider()
        if session is None:
            raise CacheError("Session support is required: no active session")
        return session.data.setdefault(SESSION_CACHE_KEY, {})

    def fetch(self, key: str) -> bytes:
        """Get value by key."""
        entries = self._entries()
        entry = entries.get(key)
        if entry is None:
            raise CacheNotFoundError(key)
        if entry.is_expired():
            # Timed out, flush it
            del entries[key]
            logger.debug(f"Session cache entry expired: {key}")
            raise CacheNotFoundError(key)
        return entry.value

    def store(self, key: str, value: bytes, ttl: int = 0) -> None:
        """Set value with TTL in seconds, 0 for no expiry."""
        self._entries()[key] = CacheEntry.create(value, ttl)

    def flush(self, key: str) -> None:
        """Delete key."""
        entries = self._entries()
        if key not in entries:
            raise CacheNotFoundError(key)
        del entries[key]

    def keys(self) -> List[str]:
        """Get all non-expired keys of the active session, dropping expired ones."""
        entries = self._entries()
        for key in [k for k, entry in entries.items() if entry.is_expired()]:
            del entries[key]
        return list(entries)
