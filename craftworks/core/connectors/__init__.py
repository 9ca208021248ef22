"""
Connectors - Cache backends and the relational store.

- redis_cache.py: Redis-based (production, shared between processes)
- session_cache.py: Session-based (fallback, per visitor)
- inmemory_cache.py: In-memory (unit tests, single process)
- sqlite_store.py: SQLite relational store
"""

from .redis_cache import RedisCache
from .session_cache import SessionCache
from .inmemory_cache import InMemoryCache, CacheEntry
from .sqlite_store import SQLiteStore, SQLiteStatement

__all__ = [
    "RedisCache",
    "SessionCache",
    "InMemoryCache",
    "CacheEntry",
    "SQLiteStore",
    "SQLiteStatement",
]
