"""Cache key composition."""

import hashlib
from typing import Any, Optional


def _md5(value: Any) -> str:
    return hashlib.md5(str(value).encode("utf-8")).hexdigest()


def build_cache_key(
    entity_type: str,
    ident: Any,
    private: bool,
    session_id: Optional[str] = None,
    namespace: Optional[str] = None,
) -> str:
    """
    Compose the cache key of one entry.

    Private entries hash both the identifier and the session ID so that a
    visitor's projections never collide with shared data or other visitors.
    Public entries keep the raw identifier.

    Examples:
        build_cache_key("Zone", 27, private=False)          -> "Zone_27_public"
        build_cache_key("Zone", "keys", private=False)      -> "Zone_keys_public"
        build_cache_key("User", 3, True, "abc")             -> "User_<md5(3)>_<md5(abc)>"
        build_cache_key("Zone", 27, False, namespace="rf")  -> "rf_Zone_27_public"
    """
    if private:
        if not session_id:
            raise ValueError("Private cache keys require a session ID")
        key = f"{entity_type}_{_md5(ident)}_{_md5(session_id)}"
    else:
        key = f"{entity_type}_{ident}_public"

    if namespace:
        key = f"{namespace}_{key}"
    return key


def unique_ident(field: str, value: Any) -> Any:
    """Identifier of a unique-key lookup: the raw value for ID, else FIELD_value."""
    if field == "ID":
        return value
    return f"{field}_{value}"
