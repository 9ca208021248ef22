"""
AttributeStore - In-memory field values of one entity.

Holds the snapshot of declared fields. The ID field is read-only for
callers; only the persister assigns it after an insert or a delete.
"""

from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from ..errors import ImmutableFieldError, UnknownAttributeError

IDENTIFIER_FIELD = "ID"

_ACCESSORS = ("get", "set")


class AttributeStore:
    """Declared field values of one entity instance."""

    def __init__(self, entity_type: str, defaults: Mapping[str, Any]):
        self.entity_type = entity_type
        self._values: Dict[str, Any] = dict(defaults)
        self._values.setdefault(IDENTIFIER_FIELD, 0)

    def has(self, name: str) -> bool:
        return name in self._values

    def get(self, name: str) -> Any:
        if name not in self._values:
            raise UnknownAttributeError(self.entity_type, name)
        return self._values[name]

    def set(self, name: str, value: Any) -> None:
        if name == IDENTIFIER_FIELD:
            raise ImmutableFieldError(self.entity_type, name)
        if name not in self._values:
            raise UnknownAttributeError(self.entity_type, name)
        self._values[name] = value

    def snapshot(self) -> Dict[str, Any]:
        """Copy of all field values, ID included."""
        return dict(self._values)

    def restore(self, values: Mapping[str, Any]) -> None:
        """Overwrite declared fields from a store row or cached snapshot."""
        for name, value in values.items():
            if name in self._values:
                self._values[name] = value

    def assign_identifier(self, value: int) -> None:
        self._values[IDENTIFIER_FIELD] = int(value or 0)

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"AttributeStore({self.entity_type}, {self._values!r})"


def parse_accessor(method: str) -> Optional[Tuple[str, str]]:
    """
    Split a GetX/SetX method name into (action, field).

    The prefix is matched case-insensitively, the field name is kept as is.
    Returns None for anything else.

    Examples:
        parse_accessor("GetName")   -> ("get", "Name")
        parse_accessor("setPrice")  -> ("set", "Price")
        parse_accessor("Get")       -> None
    """
    if len(method) <= 3:
        return None
    action = method[:3].lower()
    if action not in _ACCESSORS:
        return None
    return action, method[3:]


def dispatch(target: Any, method: str, *args: Any) -> Any:
    """
    Route a GetX/SetX call to target.get("X") / target.set("X", value).

    Raises:
        AttributeError: method is not an accessor name
        TypeError: wrong number of arguments for the accessor
    """
    parsed = parse_accessor(method)
    if parsed is None:
        raise AttributeError(f"{type(target).__name__} has no method {method}")

    action, name = parsed
    if action == "get":
        if args:
            raise TypeError(f"{method}() takes no arguments ({len(args)} given)")
        return target.get(name)

    if len(args) != 1:
        raise TypeError(f"{method}() takes exactly one argument ({len(args)} given)")
    return target.set(name, args[0])
