"""
Cache - Cache-aside layer in front of the configured backends.

- aside.py: CacheAside, first-working-backend selection
- entity_cache.py: EntityCache, keyed snapshots with failures turned into misses
- keys.py: Cache key composition
- codec.py: Payload serialization
"""

from .aside import CacheAside
from .entity_cache import EntityCache
from .keys import build_cache_key, unique_ident

__all__ = [
    "CacheAside",
    "EntityCache",
    "build_cache_key",
    "unique_ident",
]
