"""
DataObject - Base class of persisted entities.

Subclasses only declare how they are stored; fields come from the relation's
schema. Field access goes through the persister so that every read and
write is validated in one place:

    zone = Zone.find_unique("Name", "Limsa Lominsa")
    zone.GetName()            # same as zone.get("Name") and zone.Name
    zone.SetRegion(2)         # same as zone.set("Region", 2) and zone.Region = 2
    zone.write()
"""

from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Type, Union

from ..errors import UnknownAttributeError
from .attributes import IDENTIFIER_FIELD, AttributeStore, dispatch, parse_accessor
from .schema import SchemaDescriptor

if TYPE_CHECKING:
    from .persister import Persister


class EntityState(str, Enum):
    """Lifecycle state of one entity instance."""
    TRANSIENT = "transient"
    CLEAN = "clean"
    DIRTY = "dirty"
    DELETED = "deleted"


_registry: Dict[str, Type["DataObject"]] = {}


def _default_persister() -> "Persister":
    from ..config.store import get_persister
    return get_persister()


class DataObject:
    """
    Active-record style entity backed by one relation row.

    Class attributes:
        __relation__: Relation name in the store (default: class name)
        data_is_private: Cache snapshots per session instead of publicly
        cache_ttl: TTL of unique-key cache entries (default: long timeout)
        dispose_ttl: Re-cache the snapshot with this TTL on dispose
    """

    __relation__: ClassVar[Optional[str]] = None
    data_is_private: ClassVar[bool] = True
    cache_ttl: ClassVar[Optional[int]] = None
    dispose_ttl: ClassVar[Optional[int]] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        _registry[cls.__name__] = cls

    def __init__(self, persister: "Persister", schema: SchemaDescriptor, attributes: AttributeStore):
        object.__setattr__(self, "_persister", persister)
        object.__setattr__(self, "_schema", schema)
        object.__setattr__(self, "_attributes", attributes)
        object.__setattr__(self, "_state", EntityState.TRANSIENT)
        object.__setattr__(self, "_delay_writes", True)

    # Type information

    @classmethod
    def entity_type(cls) -> str:
        return cls.__name__

    @classmethod
    def relation(cls) -> str:
        return cls.__relation__ or cls.__name__

    # Lookups

    @classmethod
    def create_new(cls, persister: Optional["Persister"] = None) -> "DataObject":
        """Fresh, defaulted entity with delayed writes."""
        return (persister or _default_persister()).create_new(cls)

    @classmethod
    def find_unique(cls, field: str, value: Any, persister: Optional["Persister"] = None) -> "DataObject":
        """Entity whose unique field equals value, cache first."""
        return (persister or _default_persister()).find_unique(cls, field, value)

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Mapping[str, Any]],
        persister: Optional["Persister"] = None,
    ) -> List["DataObject"]:
        """Entities built from already fetched rows."""
        return (persister or _default_persister()).create_from_rows(cls, rows)

    @classmethod
    def get_all(cls, persister: Optional["Persister"] = None) -> List["DataObject"]:
        return (persister or _default_persister()).find_all(cls)

    @classmethod
    def get_all_by(cls, field: str, value: Any, persister: Optional["Persister"] = None) -> List["DataObject"]:
        return (persister or _default_persister()).find_all_by(cls, field, value)

    # Instance API

    @property
    def persister(self) -> "Persister":
        return self._persister

    @property
    def schema(self) -> SchemaDescriptor:
        return self._schema

    @property
    def state(self) -> EntityState:
        return self._state

    @property
    def delayed(self) -> bool:
        """True while field changes only touch the snapshot."""
        return self._delay_writes

    @property
    def id(self) -> int:
        return self._attributes.get(IDENTIFIER_FIELD)

    def get(self, name: str) -> Any:
        return self._persister.get(self, name)

    def set(self, name: str, value: Any) -> None:
        self._persister.set(self, name, value)

    def snapshot(self) -> Dict[str, Any]:
        return self._attributes.snapshot()

    def write(self, keep_delayed: bool = True) -> None:
        self._persister.write(self, keep_delayed)

    def remove(self) -> None:
        self._persister.remove(self)

    def reset(self) -> None:
        self._persister.reset(self)

    def delay_writes(self) -> None:
        self._persister.delay_writes(self)

    def dispose(self) -> bool:
        return self._persister.dispose(self)

    def post_create(self) -> None:
        """Hook run after a cold unique-key read; re-seeds the cache."""
        self._persister.cache_unique_keys(self)

    # Accessor routing

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        attributes = self.__dict__.get("_attributes")
        if attributes is None:
            raise AttributeError(name)
        if attributes.has(name):
            return self.get(name)
        if parse_accessor(name) is not None:
            return partial(dispatch, self, name)
        raise UnknownAttributeError(self.entity_type(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        attributes = self.__dict__.get("_attributes")
        if not name.startswith("_") and attributes is not None and attributes.has(name):
            self.set(name, value)
        else:
            object.__setattr__(self, name, value)

    # Disposal

    def __enter__(self) -> "DataObject":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.dispose()
        return False

    def __repr__(self) -> str:
        return f"<{self.entity_type()} ID={self.id} {self._state.value}>"


def resolve_entity_type(entity_type: Union[str, Type[DataObject]]) -> Type[DataObject]:
    """
    Entity class for a class or a type name.

    Unregistered names get a plain DataObject subclass backed by the
    relation of the same name.
    """
    if isinstance(entity_type, type):
        if not issubclass(entity_type, DataObject):
            raise TypeError(f"{entity_type.__name__} is not a DataObject")
        return entity_type
    cls = _registry.get(entity_type)
    if cls is None:
        cls = type(entity_type, (DataObject,), {})
    return cls
