"""
Mapping - Generic data-mapping engine.

- attributes.py: AttributeStore and GetX/SetX dispatch
- schema.py: SchemaCatalog, bind-types and descriptors
- entity.py: DataObject base class and lifecycle states
- persister.py: Persister, creation/lookup/write/remove
"""

from .attributes import IDENTIFIER_FIELD, AttributeStore, dispatch, parse_accessor
from .schema import BindType, FieldMeta, SchemaCatalog, SchemaDescriptor, map_native_type
from .entity import DataObject, EntityState, resolve_entity_type
from .persister import Persister

__all__ = [
    "IDENTIFIER_FIELD",
    "AttributeStore",
    "dispatch",
    "parse_accessor",
    "BindType",
    "FieldMeta",
    "SchemaCatalog",
    "SchemaDescriptor",
    "map_native_type",
    "DataObject",
    "EntityState",
    "resolve_entity_type",
    "Persister",
]
