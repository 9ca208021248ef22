"""
EntityCache - Keyed snapshot cache shared by entities and schema descriptors.

Composes keys for an entity type, serializes payloads and turns every cache
failure into a logged miss. Nothing here raises CacheError to the caller.
"""

from typing import Any, Optional

from craftworks.common.logging import get_logger
from ..errors import CacheError, CacheNotFoundError
from ..session import get_current_session
from .aside import CacheAside
from .codec import decode, encode
from .keys import build_cache_key

logger = get_logger(__name__)


class EntityCache:
    """
    Cache-aside helper for per-type snapshots.

    Usage:
        entity_cache = EntityCache(get_cache_aside(), namespace="rf")
        entity_cache.save("Zone", 27, snapshot, private=False, ttl=3600)
        snapshot = entity_cache.load("Zone", 27, private=False)
    """

    def __init__(
        self,
        cache: Optional[CacheAside],
        namespace: Optional[str] = None,
        debug: bool = False,
    ):
        """
        Initialize entity cache.

        Args:
            cache: Cache front, None to disable caching
            namespace: Project-wide key prefix
            debug: Log cache failures at warning instead of debug
        """
        self._cache = cache
        self.namespace = namespace
        self.debug = debug

    @property
    def available(self) -> bool:
        """True if a cache backend is active."""
        return self._cache is not None and self._cache.available

    def key(self, entity_type: str, ident: Any, private: bool) -> Optional[str]:
        """
        Cache key of an entry, None when it cannot be cached.

        Entries without an identifier are never cached, nor are private
        entries outside of a session.
        """
        if not ident:
            return None
        session_id = None
        if private:
            session = get_current_session()
            if session is None:
                return None
            session_id = session.sid
        return build_cache_key(entity_type, ident, private, session_id, self.namespace)

    def _report(self, action: str, key: str, error: CacheError) -> None:
        log = logger.warning if self.debug else logger.debug
        log(f"Cache {action} failed for {key}: {error.message}", data={"key": key})

    def load(self, entity_type: str, ident: Any, private: bool) -> Optional[Any]:
        """Cached payload, None on miss or when caching is unavailable."""
        key = self.key(entity_type, ident, private)
        if key is None or self._cache is None:
            return None
        try:
            return decode(self._cache.fetch(key))
        except CacheNotFoundError:
            return None
        except CacheError as e:
            self._report("fetch", key, e)
            return None

    def save(self, entity_type: str, ident: Any, data: Any, private: bool, ttl: int = 0) -> bool:
        """Store a payload; returns False if nothing was cached."""
        key = self.key(entity_type, ident, private)
        if key is None or self._cache is None:
            return False
        try:
            self._cache.store(key, encode(data), ttl)
        except CacheError as e:
            self._report("store", key, e)
            return False
        return True

    def forget(self, entity_type: str, ident: Any, private: bool) -> bool:
        """Drop a cached entry; returns False if nothing was flushed."""
        key = self.key(entity_type, ident, private)
        if key is None or self._cache is None:
            return False
        try:
            self._cache.flush(key)
        except CacheError as e:
            self._report("flush", key, e)
            return False
        return True
