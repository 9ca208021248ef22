"""
Persister - Creation, lookup, writing and removal of entities.

Every entity type shares this one implementation. SQL is derived from the
schema descriptor: field order gives the column list, the parameter order
and the binding string. Unique-key lookups are cache first; list queries
always go to the store.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, Union

from craftworks.common.logging import get_logger
from ..cache.aside import CacheAside
from ..cache.entity_cache import EntityCache
from ..cache.keys import unique_ident
from ..config.settings import Settings, get_settings
from ..errors import (
    ConfigurationError,
    EntityStateError,
    ImmutableFieldError,
    MissingIdentifierError,
    NotFoundError,
    SchemaError,
    ShapeMismatchError,
    UnknownAttributeError,
)
from ..interfaces.store_protocol import StatementProtocol, StoreProtocol
from .attributes import IDENTIFIER_FIELD, AttributeStore
from .entity import DataObject, EntityState, resolve_entity_type
from .schema import BindType, SchemaCatalog, SchemaDescriptor

logger = get_logger(__name__)

EntityType = Union[str, Type[DataObject]]


class Persister:
    """
    Data-mapping engine for DataObject entities.

    Usage:
        persister = Persister(store, CacheAside([InMemoryCache]))
        widget = persister.create_new("Widget")
        widget.SetName("Gear")
        widget.write()
        same = persister.find_unique("Widget", "Name", "Gear")
    """

    def __init__(
        self,
        store: Optional[StoreProtocol],
        cache: Optional[CacheAside] = None,
        settings: Optional[Settings] = None,
        catalog: Optional[SchemaCatalog] = None,
    ):
        """
        Initialize persister.

        Args:
            store: Relational store
            cache: Cache front, None to run without caching
            settings: Settings (default: process settings)
            catalog: Schema catalog to share between persisters
        """
        if store is None:
            raise ConfigurationError("No database connection")

        self.store = store
        self.settings = settings or get_settings()
        self.entity_cache = EntityCache(
            cache,
            namespace=self.settings.cache_namespace,
            debug=self.settings.debug_cache,
        )
        self.catalog = catalog or SchemaCatalog(store, self.entity_cache, self.settings)

    # Construction

    def schema_of(self, entity_type: EntityType) -> SchemaDescriptor:
        cls = resolve_entity_type(entity_type)
        return self.catalog.describe(cls.entity_type(), cls.relation())

    def _build(self, cls: Type[DataObject]) -> DataObject:
        schema = self.catalog.describe(cls.entity_type(), cls.relation())
        return cls(self, schema, AttributeStore(cls.entity_type(), schema.defaults()))

    def create_new(self, entity_type: EntityType) -> DataObject:
        """Fresh entity: defaults by bind-type, ID 0, delayed writes on."""
        return self._build(resolve_entity_type(entity_type))

    def find_unique(self, entity_type: EntityType, field: str, value: Any) -> DataObject:
        """
        Entity whose unique field equals value.

        The cache is consulted first. On a miss the row is selected from the
        store and the entity's post_create hook re-seeds the cache.

        Raises:
            UnknownAttributeError: field is not declared
            SchemaError: field is not unique
            NotFoundError: no row matches, or value cannot be of the field's type;
                nothing is cached
        """
        cls = resolve_entity_type(entity_type)
        schema = self.catalog.describe(cls.entity_type(), cls.relation())
        meta = schema.fields.get(field)
        if meta is None:
            raise UnknownAttributeError(cls.entity_type(), field)
        if not meta.is_unique:
            raise SchemaError(
                f"Field {field} of {cls.entity_type()} is not a unique key",
                data={"entity": cls.entity_type(), "field": field},
            )

        value = self._lookup_value(cls.entity_type(), field, meta.bind_type, value)
        entity = self._build(cls)

        cached = self.entity_cache.load(cls.entity_type(), unique_ident(field, value), cls.data_is_private)
        if isinstance(cached, dict):
            entity._attributes.restore(cached)
            entity._state = EntityState.CLEAN
            logger.debug(f"{cls.entity_type()} {field}={value} served from cache")
            return entity

        statement = self._prepare(
            f"SELECT {self._column_list(schema.field_names)} FROM {self._quote(schema.relation_name)} "
            f"WHERE {self._quote(field)} = ?"
        )
        self._bind(statement, schema, [field], {field: value})
        statement.execute()
        rows = statement.fetch_all()
        if not rows:
            raise NotFoundError(cls.entity_type(), field, value)

        entity._attributes.restore(rows[0])
        entity._state = EntityState.CLEAN
        entity.post_create()
        return entity

    def cache_unique_keys(self, entity: DataObject, ttl: Optional[int] = None) -> None:
        """Cache the entity's snapshot under its ID and each other unique field."""
        cls = type(entity)
        if ttl is None:
            ttl = cls.cache_ttl if cls.cache_ttl is not None else self.settings.cache_timeout_long

        snapshot = entity.snapshot()
        if not snapshot[IDENTIFIER_FIELD]:
            return

        for ident in self._unique_idents(entity.schema, snapshot):
            self.entity_cache.save(cls.entity_type(), ident, snapshot, cls.data_is_private, ttl)

    def create_from_rows(self, entity_type: EntityType, rows: Iterable[Mapping[str, Any]]) -> List[DataObject]:
        """
        Entities from already fetched rows, bypassing the cache.

        Raises:
            ShapeMismatchError: a row lacks a declared field or has extra columns
        """
        cls = resolve_entity_type(entity_type)
        schema = self.catalog.describe(cls.entity_type(), cls.relation())
        declared = set(schema.field_names)

        entities = []
        for index, row in enumerate(rows):
            columns = set(row)
            if columns != declared:
                raise ShapeMismatchError(
                    f"Row {index} does not match the fields of {cls.entity_type()}",
                    data={
                        "entity": cls.entity_type(),
                        "missing": sorted(declared - columns),
                        "extra": sorted(columns - declared),
                    },
                )
            entity = self._build(cls)
            entity._attributes.restore(row)
            entity._state = EntityState.CLEAN
            entities.append(entity)
        return entities

    def find_all(self, entity_type: EntityType) -> List[DataObject]:
        """All entities of a type, ordered by ID."""
        cls = resolve_entity_type(entity_type)
        schema = self.catalog.describe(cls.entity_type(), cls.relation())
        statement = self._prepare(
            f"SELECT {self._column_list(schema.field_names)} FROM {self._quote(schema.relation_name)} "
            f"ORDER BY {self._quote(IDENTIFIER_FIELD)}"
        )
        statement.execute()
        return self.create_from_rows(cls, statement.fetch_all())

    def find_all_by(self, entity_type: EntityType, field: str, value: Any) -> List[DataObject]:
        """All entities whose field equals value, ordered by ID."""
        cls = resolve_entity_type(entity_type)
        schema = self.catalog.describe(cls.entity_type(), cls.relation())
        if field not in schema.fields:
            raise UnknownAttributeError(cls.entity_type(), field)
        statement = self._prepare(
            f"SELECT {self._column_list(schema.field_names)} FROM {self._quote(schema.relation_name)} "
            f"WHERE {self._quote(field)} = ? ORDER BY {self._quote(IDENTIFIER_FIELD)}"
        )
        self._bind(statement, schema, [field], {field: value})
        statement.execute()
        return self.create_from_rows(cls, statement.fetch_all())

    # Field access

    def get(self, entity: DataObject, field: str) -> Any:
        return entity._attributes.get(field)

    def set(self, entity: DataObject, field: str, value: Any) -> None:
        """
        Change one field.

        Identical values (same type, equal) are ignored. With delayed writes
        only the snapshot changes; otherwise the store is updated first and
        the snapshot only once that succeeded.

        Raises:
            ImmutableFieldError: field is ID
            EntityStateError: entity was removed
            UnknownAttributeError: field is not declared
        """
        if field == IDENTIFIER_FIELD:
            raise ImmutableFieldError(entity.entity_type(), field)
        self._require_alive(entity, "set")

        current = entity._attributes.get(field)
        if type(current) is type(value) and current == value:
            return

        if not entity._delay_writes:
            if entity.id:
                schema = entity.schema
                statement = self._prepare(
                    f"UPDATE {self._quote(schema.relation_name)} SET {self._quote(field)} = ? "
                    f"WHERE {self._quote(IDENTIFIER_FIELD)} = ?"
                )
                self._bind(statement, schema, [field, IDENTIFIER_FIELD], {field: value, IDENTIFIER_FIELD: entity.id})
                statement.execute()
            else:
                candidate = entity.snapshot()
                candidate[field] = value
                identifier = self._insert(entity.schema, candidate)
                entity._attributes.set(field, value)
                entity._attributes.assign_identifier(identifier)
                entity._state = EntityState.DIRTY
                return

        entity._attributes.set(field, value)
        entity._state = EntityState.DIRTY

    # Writing

    def write(self, entity: DataObject, keep_delayed: bool = True) -> None:
        """
        Flush the whole snapshot in one statement.

        UPDATE by ID for persisted entities, INSERT otherwise; the generated
        ID is captured on insert.

        Args:
            entity: Entity to flush
            keep_delayed: Delayed-write mode of the entity afterwards
        """
        self._require_alive(entity, "write")
        snapshot = entity.snapshot()

        if snapshot[IDENTIFIER_FIELD]:
            self._update(entity.schema, snapshot)
        else:
            entity._attributes.assign_identifier(self._insert(entity.schema, snapshot))

        entity._delay_writes = keep_delayed
        entity._state = EntityState.CLEAN
        logger.debug(f"{entity.entity_type()} {entity.id} written")

    def remove(self, entity: DataObject) -> None:
        """
        Delete the entity's row and its cached snapshots.

        Raises:
            MissingIdentifierError: entity was never written
        """
        self._require_alive(entity, "remove")
        identifier = entity.id
        if not identifier:
            raise MissingIdentifierError(entity.entity_type())

        schema = entity.schema
        statement = self._prepare(
            f"DELETE FROM {self._quote(schema.relation_name)} WHERE {self._quote(IDENTIFIER_FIELD)} = ?"
        )
        self._bind(statement, schema, [IDENTIFIER_FIELD], {IDENTIFIER_FIELD: identifier})
        statement.execute()

        for ident in self._unique_idents(schema, entity.snapshot()):
            self.entity_cache.forget(entity.entity_type(), ident, type(entity).data_is_private)

        entity._attributes.assign_identifier(0)
        entity._state = EntityState.DELETED
        logger.debug(f"{entity.entity_type()} {identifier} removed")

    def reset(self, entity: DataObject) -> None:
        """Re-default the entity as if freshly created."""
        entity._attributes = AttributeStore(entity.entity_type(), entity.schema.defaults())
        entity._delay_writes = True
        entity._state = EntityState.TRANSIENT

    def delay_writes(self, entity: DataObject) -> None:
        """Turn delayed writes back on."""
        self._require_alive(entity, "delay writes of")
        entity._delay_writes = True

    def dispose(self, entity: DataObject) -> bool:
        """Re-cache the snapshot under its ID when the type sets dispose_ttl."""
        cls = type(entity)
        if cls.dispose_ttl is None or entity.state == EntityState.DELETED or not entity.id:
            return False
        return self.entity_cache.save(cls.entity_type(), entity.id, entity.snapshot(), cls.data_is_private, cls.dispose_ttl)

    def _lookup_value(self, entity_type: str, field: str, bind_type: BindType, value: Any) -> Any:
        """Lookup value coerced to the field's bind-type."""
        try:
            if bind_type == BindType.INT:
                return int(str(value))
            if bind_type == BindType.FLOAT:
                return float(value)
            return value
        except (TypeError, ValueError):
            raise NotFoundError(entity_type, field, value)

    # SQL helpers

    def _quote(self, name: str) -> str:
        return self.store.quote_identifier(name)

    def _column_list(self, names: Sequence[str]) -> str:
        return ", ".join(self._quote(name) for name in names)

    def _prepare(self, sql: str) -> StatementProtocol:
        return self.store.prepare(sql)

    def _bind(
        self,
        statement: StatementProtocol,
        schema: SchemaDescriptor,
        names: Sequence[str],
        values: Mapping[str, Any],
    ) -> None:
        """Bind values in order; blob values are streamed as long data."""
        blobs: Dict[int, Any] = {}
        params = []
        for index, name in enumerate(names):
            if schema.fields[name].bind_type == BindType.BLOB:
                params.append(None)
                if values[name] is not None:
                    blobs[index] = values[name]
            else:
                params.append(values[name])

        statement.bind_param(schema.binding_string(names), *params)

        chunk_size = self.settings.long_data_chunk_size
        for index, value in blobs.items():
            data = value.encode("utf-8") if isinstance(value, str) else bytes(value)
            for offset in range(0, len(data) or 1, chunk_size):
                statement.send_long_data(index, data[offset:offset + chunk_size])

    def _insert(self, schema: SchemaDescriptor, snapshot: Mapping[str, Any]) -> int:
        names = schema.value_fields
        if names:
            placeholders = ", ".join("?" for _ in names)
            sql = (
                f"INSERT INTO {self._quote(schema.relation_name)} ({self._column_list(names)}) "
                f"VALUES ({placeholders})"
            )
        else:
            sql = f"INSERT INTO {self._quote(schema.relation_name)} DEFAULT VALUES"

        statement = self._prepare(sql)
        self._bind(statement, schema, names, snapshot)
        statement.execute()
        return statement.insert_id

    def _update(self, schema: SchemaDescriptor, snapshot: Mapping[str, Any]) -> None:
        names = schema.value_fields
        if not names:
            return
        assignments = ", ".join(f"{self._quote(name)} = ?" for name in names)
        statement = self._prepare(
            f"UPDATE {self._quote(schema.relation_name)} SET {assignments} "
            f"WHERE {self._quote(IDENTIFIER_FIELD)} = ?"
        )
        self._bind(statement, schema, names + [IDENTIFIER_FIELD], snapshot)
        statement.execute()

    def _unique_idents(self, schema: SchemaDescriptor, snapshot: Mapping[str, Any]) -> List[Any]:
        idents = [snapshot[IDENTIFIER_FIELD]]
        for name in schema.unique_fields:
            if name == IDENTIFIER_FIELD or snapshot.get(name) is None:
                continue
            idents.append(unique_ident(name, snapshot[name]))
        return idents

    def _require_alive(self, entity: DataObject, action: str) -> None:
        if entity.state == EntityState.DELETED:
            raise EntityStateError(
                f"Unable to {action} removed {entity.entity_type()}",
                data={"entity": entity.entity_type()},
            )
