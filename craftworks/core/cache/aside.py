"""
CacheAside - Front for the first cache backend that can be constructed.

Backends are given as an ordered list of constructor callables. Each one is
tried in turn; a constructor that raises is logged and skipped. When none
succeeds every operation raises NoBackendError, which callers treat as
"cache unavailable".
"""

from typing import Callable, List, Optional, Sequence

from craftworks.common.logging import get_logger
from ..errors import CacheNotFoundError, NoBackendError
from ..interfaces.cache_protocol import CacheBackendProtocol

logger = get_logger(__name__)

BackendFactory = Callable[[], CacheBackendProtocol]


class CacheAside:
    """
    Cache front selecting one backend at construction.

    Usage:
        cache = CacheAside([lambda: RedisCache(url), SessionCache])
        cache.store("Zone_27_public", payload, ttl=3600)
        payload = cache.fetch("Zone_27_public")
    """

    def __init__(self, candidates: Sequence[BackendFactory]):
        self._backend: Optional[CacheBackendProtocol] = None
        self._failures: List[str] = []

        for factory in candidates:
            name = getattr(factory, "__name__", None) or repr(factory)
            try:
                backend = factory()
            except Exception as e:
                self._failures.append(f"{name}: {e}")
                logger.info(f"Unable to load cache backend {name}: {e}")
                continue
            self._backend = backend
            break

        if self._backend is None:
            logger.warning("No cache backend available", data={"failures": self._failures})
        else:
            logger.info(f"Cache backend selected: {self.backend_name}")

    @property
    def backend(self) -> Optional[CacheBackendProtocol]:
        """Active backend, None when no candidate could be constructed."""
        return self._backend

    @property
    def backend_name(self) -> Optional[str]:
        """Class name of the active backend."""
        return type(self._backend).__name__ if self._backend is not None else None

    @property
    def available(self) -> bool:
        """True if a backend was selected."""
        return self._backend is not None

    def _require(self) -> CacheBackendProtocol:
        if self._backend is None:
            raise NoBackendError(data={"failures": self._failures})
        return self._backend

    def fetch(self, key: str) -> bytes:
        """Get value by key; raises CacheNotFoundError on miss."""
        return self._require().fetch(key)

    def store(self, key: str, value: bytes, ttl: int = 0) -> None:
        """Set value with TTL in seconds, 0 for no expiry."""
        self._require().store(key, value, ttl)

    def flush(self, key: str) -> None:
        """Delete key; flushing a missing key is not an error."""
        backend = self._require()
        try:
            backend.flush(key)
        except CacheNotFoundError:
            pass

    def keys(self) -> List[str]:
        """List all live keys of the active backend."""
        return self._require().keys()
