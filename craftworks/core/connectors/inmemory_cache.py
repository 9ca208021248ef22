"""
InMemoryCache - In-memory cache backend.

Simple dict-based cache without persistence, shared by the whole process.
Used for unit tests and single-process deployments.
"""

import time
from typing import Optional, Dict, List
from dataclasses import dataclass

from ..errors import CacheNotFoundError


@dataclass
class CacheEntry:
    """Cache entry with optional expiration (epoch seconds)."""
    value: bytes
    expires_at: Optional[float] = None

    @classmethod
    def create(cls, value: bytes, ttl: int = 0) -> "CacheEntry":
        """Build an entry expiring ttl seconds from now; 0 never expires."""
        expires_at = time.time() + ttl if ttl else None
        return cls(value=value, expires_at=expires_at)

    def is_expired(self) -> bool:
        """Check if entry is expired."""
        if self.expires_at is None:
            return False
        return time.time() > self.expires_at


class InMemoryCache:
    """
    In-memory cache implementation.

    Implements CacheBackendProtocol.
    No persistence - data lost on restart.
    """

    def __init__(self):
        self._store: Dict[str, CacheEntry] = {}

    def fetch(self, key: str) -> bytes:
        """Get value by key."""
        entry = self._store.get(key)
        if entry is None:
            raise CacheNotFoundError(key)
        if entry.is_expired():
            del self._store[key]
            raise CacheNotFoundError(key)
        return entry.value

    def store(self, key: str, value: bytes, ttl: int = 0) -> None:
        """Set value with TTL in seconds, 0 for no expiry."""
        self._store[key] = CacheEntry.create(value, ttl)

    def flush(self, key: str) -> None:
        """Delete key."""
        if self._store.pop(key, None) is None:
            raise CacheNotFoundError(key)

    def keys(self) -> List[str]:
        """Get all non-expired keys, dropping expired ones."""
        self._store = {k: v for k, v in self._store.items() if not v.is_expired()}
        return list(self._store)
