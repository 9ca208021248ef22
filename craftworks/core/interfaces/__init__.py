"""
Interfaces - Protocols for dependency injection.

- cache_protocol.py: CacheBackendProtocol
- store_protocol.py: StoreProtocol, StatementProtocol, ColumnInfo
"""

from .cache_protocol import CacheBackendProtocol
from .store_protocol import (
    ColumnInfo,
    StatementProtocol,
    StoreProtocol,
    KEY_PRIMARY,
    KEY_UNIQUE,
    KEY_MULTIPLE,
)

__all__ = [
    "CacheBackendProtocol",
    "ColumnInfo",
    "StatementProtocol",
    "StoreProtocol",
    "KEY_PRIMARY",
    "KEY_UNIQUE",
    "KEY_MULTIPLE",
]
