"""
SchemaCatalog - Column metadata of entity relations.

Descriptors are read from the store once per entity type, kept in process
memory and in the cache under the public "keys" entry with the persistent
TTL. The schema is assumed stable for the lifetime of the process.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from craftworks.common.logging import get_logger
from ..cache.entity_cache import EntityCache
from ..config.settings import Settings, get_settings
from ..errors import ConfigurationError, SchemaError, StoreError, TypeMappingError
from ..interfaces.store_protocol import KEY_PRIMARY, KEY_UNIQUE, StoreProtocol
from .attributes import IDENTIFIER_FIELD

logger = get_logger(__name__)

SCHEMA_CACHE_IDENT = "keys"


class BindType(str, Enum):
    """Statement bind-type, valued by its binding character."""
    INT = "i"
    STRING = "s"
    FLOAT = "d"
    BLOB = "b"

    @property
    def default(self) -> Any:
        """Value of a field of this type on a fresh entity."""
        return _DEFAULTS[self]


_DEFAULTS = {
    BindType.INT: 0,
    BindType.STRING: "",
    BindType.FLOAT: 0.0,
    BindType.BLOB: None,
}

_TYPE_FAMILIES = {
    BindType.INT: ("integer", "int", "smallint", "tinyint", "mediumint", "bigint", "timestamp", "bool", "boolean"),
    BindType.FLOAT: ("decimal", "numeric", "float", "double", "real"),
    BindType.STRING: ("char", "varchar", "text", "tinytext", "mediumtext", "longtext", "date", "time", "datetime"),
    BindType.BLOB: ("blob", "tinyblob", "mediumblob", "longblob", "binary", "varbinary"),
}

_NATIVE_TYPES = {
    name: bind_type
    for bind_type, names in _TYPE_FAMILIES.items()
    for name in names
}

_QUALIFIER = re.compile(r"\(.*?\)")


def map_native_type(native_type: str, relation: Optional[str] = None) -> BindType:
    """
    Bind-type of a native column type.

    The parenthesised qualifier is stripped and the first word is matched
    case-insensitively, so "VARCHAR(255)" and "int(10) unsigned" both map.

    Raises:
        TypeMappingError: type belongs to no known family
    """
    words = _QUALIFIER.sub(" ", native_type or "").split()
    if words:
        bind_type = _NATIVE_TYPES.get(words[0].lower())
        if bind_type is not None:
            return bind_type
    raise TypeMappingError(native_type, relation)


@dataclass(frozen=True)
class FieldMeta:
    """Bind-type, native type and uniqueness of one field."""
    bind_type: BindType
    native_type: str
    is_unique: bool = False


@dataclass
class SchemaDescriptor:
    """Ordered field metadata of one relation."""
    relation_name: str
    fields: Dict[str, FieldMeta] = field(default_factory=dict)

    @property
    def field_names(self) -> List[str]:
        return list(self.fields)

    @property
    def unique_fields(self) -> List[str]:
        return [name for name, meta in self.fields.items() if meta.is_unique]

    @property
    def value_fields(self) -> List[str]:
        """Fields written by INSERT and UPDATE, i.e. everything but ID."""
        return [name for name in self.fields if name != IDENTIFIER_FIELD]

    def binding_string(self, names: Iterable[str]) -> str:
        """Concatenated binding characters of the given fields, in order."""
        return "".join(self.fields[name].bind_type.value for name in names)

    def defaults(self) -> Dict[str, Any]:
        """Snapshot of a fresh entity."""
        return {name: meta.bind_type.default for name, meta in self.fields.items()}


class SchemaCatalog:
    """
    Per-type schema descriptors, memoized and cached.

    Usage:
        catalog = SchemaCatalog(store, entity_cache)
        schema = catalog.describe("Zone")
        schema.unique_fields  # ['ID', 'Name']
    """

    def __init__(
        self,
        store: StoreProtocol,
        entity_cache: EntityCache,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.entity_cache = entity_cache
        self.settings = settings or get_settings()
        self._memo: Dict[str, SchemaDescriptor] = {}

    def describe(self, entity_type: str, relation: Optional[str] = None) -> SchemaDescriptor:
        """
        Schema descriptor of an entity type.

        Args:
            entity_type: Entity type name, also the cache key prefix
            relation: Relation name in the store (default: entity_type)

        Raises:
            SchemaError: metadata could not be fetched or has no usable ID
            TypeMappingError: a column type is unknown
            ConfigurationError: a cache is required but none is usable
        """
        descriptor = self._memo.get(entity_type)
        if descriptor is not None:
            return descriptor

        cached = self.entity_cache.load(entity_type, SCHEMA_CACHE_IDENT, private=False)
        if isinstance(cached, SchemaDescriptor):
            self._memo[entity_type] = cached
            return cached

        if self.settings.cache_required and not self.entity_cache.available:
            raise ConfigurationError(
                "Unable to load any cache backend",
                data={"entity": entity_type},
            )

        descriptor = self._load(entity_type, relation or entity_type)
        self.entity_cache.save(
            entity_type,
            SCHEMA_CACHE_IDENT,
            descriptor,
            private=False,
            ttl=self.settings.cache_timeout_persistent,
        )
        self._memo[entity_type] = descriptor
        return descriptor

    def _load(self, entity_type: str, relation: str) -> SchemaDescriptor:
        try:
            columns = self.store.describe(relation)
        except StoreError as e:
            raise SchemaError(
                f"Unable to fetch field data for {entity_type}: {e.message}",
                data={"entity": entity_type, "relation": relation},
                cause=e,
            )

        fields = {}
        for column in columns:
            fields[column.name] = FieldMeta(
                bind_type=map_native_type(column.native_type, relation),
                native_type=column.native_type,
                is_unique=column.key in (KEY_PRIMARY, KEY_UNIQUE),
            )

        identifier = fields.get(IDENTIFIER_FIELD)
        if identifier is None or identifier.bind_type != BindType.INT or not identifier.is_unique:
            raise SchemaError(
                f"Relation {relation} has no unique integer {IDENTIFIER_FIELD} field",
                data={"entity": entity_type, "relation": relation},
            )

        logger.debug(
            f"Schema loaded for {entity_type}",
            data={"relation": relation, "fields": list(fields)},
        )
        return SchemaDescriptor(relation_name=relation, fields=fields)

    def invalidate(self, entity_type: str) -> None:
        """Forget the descriptor of one type, in memory and in the cache."""
        self._memo.pop(entity_type, None)
        self.entity_cache.forget(entity_type, SCHEMA_CACHE_IDENT, private=False)
