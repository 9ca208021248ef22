"""
Config - Application configuration.

- settings.py: Dataclass settings from environment
- cache.py: Cache backend factory and CacheAside singleton
- store.py: Store and persister singletons
"""

from .settings import Settings, CacheBackend, LogLevel, get_settings, reset_settings
from .cache import create_cache_backend, cache_candidates, get_cache_aside, reset_cache_aside
from .store import get_store, get_persister, set_store, reset_store

__all__ = [
    # Settings
    "Settings",
    "CacheBackend",
    "LogLevel",
    "get_settings",
    "reset_settings",
    # Cache
    "create_cache_backend",
    "cache_candidates",
    "get_cache_aside",
    "reset_cache_aside",
    # Store
    "get_store",
    "get_persister",
    "set_store",
    "reset_store",
]
