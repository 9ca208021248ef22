"""
Cache Protocol - Interface for cache backend implementations.

Implementations:
- RedisCache (craftworks.core.connectors.redis_cache)
- SessionCache (craftworks.core.connectors.session_cache)
- InMemoryCache (craftworks.core.connectors.inmemory_cache)
"""

from typing import Protocol, List, runtime_checkable


@runtime_checkable
class CacheBackendProtocol(Protocol):
    """Byte-oriented cache backend (DI interface).

    Values are opaque serialized payloads. Failures raise CacheError,
    absent or expired keys raise CacheNotFoundError.
    """

    def fetch(self, key: str) -> bytes:
        """Get value by key."""
        ...

    def store(self, key: str, value: bytes, ttl: int = 0) -> None:
        """Set value with TTL in seconds, 0 for no expiry."""
        ...

    def flush(self, key: str) -> None:
        """Delete key."""
        ...

    def keys(self) -> List[str]:
        """List all live keys."""
        ...
