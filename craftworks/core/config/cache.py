"""
Cache Factory - Create cache backends based on configuration.

Uses factory pattern for dependency injection.
"""

from functools import partial
from typing import List, Optional, Sequence

from ..cache.aside import BackendFactory, CacheAside
from ..interfaces import CacheBackendProtocol
from .settings import CacheBackend, Settings, get_settings


def create_cache_backend(
    backend: CacheBackend,
    **kwargs
) -> CacheBackendProtocol:
    """
    Factory for cache backends.

    Args:
        backend: Cache backend
        **kwargs: Backend-specific arguments

    Returns:
        CacheBackendProtocol implementation

    Example:
        cache = create_cache_backend(CacheBackend.MEMORY)
        cache = create_cache_backend(CacheBackend.REDIS, url="redis://...")
    """
    settings = kwargs.pop("settings", None) or get_settings()

    if backend == CacheBackend.REDIS:
        from ..connectors.redis_cache import RedisCache
        url = kwargs.get("url", settings.redis_url)
        if not url:
            raise ValueError("Redis URL required for redis backend")
        return RedisCache(
            url=url,
            prefix=kwargs.get("prefix", ""),
            connect_timeout=kwargs.get("connect_timeout", settings.redis_connect_timeout),
        )

    elif backend == CacheBackend.SESSION:
        from ..connectors.session_cache import SessionCache
        if "session_provider" in kwargs:
            return SessionCache(session_provider=kwargs["session_provider"])
        return SessionCache()

    elif backend == CacheBackend.MEMORY:
        from ..connectors.inmemory_cache import InMemoryCache
        return InMemoryCache()

    raise ValueError(f"Unknown cache backend: {backend}")


def cache_candidates(
    backends: Optional[Sequence[CacheBackend]] = None,
    settings: Optional[Settings] = None,
) -> List[BackendFactory]:
    """
    Constructor callables for CacheAside, in configured order.

    Args:
        backends: Backend names to try (default from settings)
        settings: Settings to build backends from
    """
    settings = settings or get_settings()
    if backends is None:
        backends = settings.cache_backends

    candidates = []
    for backend in backends:
        factory = partial(create_cache_backend, CacheBackend(backend), settings=settings)
        factory.__name__ = CacheBackend(backend).value
        candidates.append(factory)
    return candidates


# Singleton instance
_cache_aside: Optional[CacheAside] = None


def get_cache_aside() -> CacheAside:
    """Get the process cache front, built from settings on first use."""
    global _cache_aside
    if _cache_aside is None:
        _cache_aside = CacheAside(cache_candidates())
    return _cache_aside


def reset_cache_aside() -> None:
    """Drop the cache front so the next call selects a backend again."""
    global _cache_aside
    _cache_aside = None
