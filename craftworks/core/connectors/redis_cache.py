"""
RedisCache - Redis-based cache backend for production.

Requires redis package: pip install redis
"""

from typing import Any, List, Optional

from craftworks.common.logging import get_logger
from ..errors import CacheError, CacheNotFoundError

logger = get_logger(__name__)


class RedisCache:
    """
    Redis-based cache implementation.

    Implements CacheBackendProtocol for production use.
    Requires Redis server; the constructor fails if it is unreachable.
    """

    def __init__(
        self,
        url: str,
        prefix: str = "",
        connect_timeout: Optional[float] = None,
        client: Any = None,
    ):
        """
        Initialize Redis cache.

        Args:
            url: Redis connection URL (redis://[:password@]host:port/db)
            prefix: Key prefix for namespacing
            connect_timeout: Socket connect timeout in seconds
            client: Pre-built client (skips URL parsing)

        Raises:
            ImportError: redis package is not installed
            CacheError: server unreachable or authentication failed
        """
        try:
            import redis
        except ImportError:
            raise ImportError("redis package required: pip install redis")

        self._redis_error = redis.RedisError
        self.prefix = prefix

        try:
            if client is None:
                client = redis.from_url(url, socket_connect_timeout=connect_timeout)
            self.client = client
            # Make sure the connection is up
            self.client.ping()
        except redis.RedisError as e:
            raise CacheError(f"Unable to connect to \"{url}\": {e}", data={"url": url}, cause=e)

        logger.info(f"Redis cache initialized: {url}")

    def _key(self, key: str) -> str:
        """Add prefix to key."""
        return f"{self.prefix}{key}"

    def fetch(self, key: str) -> bytes:
        """Get value by key."""
        try:
            value = self.client.get(self._key(key))
        except self._redis_error as e:
            raise CacheError(f"Caught Redis exception: {e}", data={"key": key}, cause=e)
        if value is None:
            raise CacheNotFoundError(key)
        return value

    def store(self, key: str, value: bytes, ttl: int = 0) -> None:
        """Set value with TTL in seconds, 0 for no expiry."""
        try:
            if ttl:
                self.client.setex(self._key(key), ttl, value)
            else:
                self.client.set(self._key(key), value)
        except self._redis_error as e:
            raise CacheError(f"Caught Redis exception: {e}", data={"key": key}, cause=e)

    def flush(self, key: str) -> None:
        """Delete key."""
        try:
            self.client.delete(self._key(key))
        except self._redis_error as e:
            raise CacheError(f"Caught Redis exception: {e}", data={"key": key}, cause=e)

    def keys(self) -> List[str]:
        """Get all keys with prefix."""
        try:
            keys = self.client.keys(f"{self.prefix}*")
        except self._redis_error as e:
            raise CacheError(f"Caught Redis exception: {e}", cause=e)
        names = [k.decode() if isinstance(k, bytes) else k for k in keys]
        return [name[len(self.prefix):] for name in names]
