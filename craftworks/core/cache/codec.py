"""Serialization of cached payloads."""

import pickle
from typing import Any

from ..errors import CacheError


def encode(data: Any) -> bytes:
    """Serialize a snapshot or descriptor for the cache."""
    return pickle.dumps(data, protocol=pickle.HIGHEST_PROTOCOL)


def decode(payload: bytes) -> Any:
    """Deserialize a cached payload; corrupt payloads raise CacheError."""
    try:
        return pickle.loads(payload)
    except Exception as e:
        raise CacheError(f"Unable to decode cached payload: {e}", cause=e)
