"""
Store Factory - Process-wide store connection and persister.
"""

from typing import TYPE_CHECKING, Optional

from ..interfaces import StoreProtocol
from .cache import get_cache_aside
from .settings import get_settings

if TYPE_CHECKING:
    from ..mapping.persister import Persister


_store: Optional[StoreProtocol] = None
_persister: Optional["Persister"] = None


def get_store() -> StoreProtocol:
    """Get the store singleton, opened on DB_PATH on first use."""
    global _store
    if _store is None:
        from ..connectors.sqlite_store import SQLiteStore
        _store = SQLiteStore(db_path=get_settings().db_path)
    return _store


def get_persister() -> "Persister":
    """Get the persister singleton over the process store and cache."""
    global _persister
    if _persister is None:
        from ..mapping.persister import Persister
        _persister = Persister(get_store(), get_cache_aside(), get_settings())
    return _persister


def set_store(store: Optional[StoreProtocol]) -> None:
    """Install the process store, dropping the persister built on the old one."""
    global _store, _persister
    _store = store
    _persister = None


def reset_store() -> None:
    """Drop the store and persister singletons."""
    global _store, _persister
    _store = None
    _persister = None
