"""
Store Protocol - Interface for the relational store.

Implementations:
- SQLiteStore (craftworks.core.connectors.sqlite_store)
"""

from dataclasses import dataclass
from typing import Protocol, Any, Dict, List, runtime_checkable


# Column key markers, same convention as MySQL DESCRIBE
KEY_PRIMARY = "PRI"
KEY_UNIQUE = "UNI"
KEY_MULTIPLE = "MUL"


@dataclass(frozen=True)
class ColumnInfo:
    """Column metadata for one field of a relation."""
    name: str
    native_type: str
    key: str = ""


@runtime_checkable
class StatementProtocol(Protocol):
    """Prepared statement.

    bind_param takes a binding string with one character per parameter:
    i (integer), s (string), d (double), b (blob).
    """

    insert_id: int
    affected_rows: int

    def bind_param(self, types: str, *values: Any) -> None:
        """Bind parameters in order."""
        ...

    def send_long_data(self, index: int, data: bytes) -> None:
        """Append a chunk of data to the blob parameter at index."""
        ...

    def execute(self) -> None:
        """Execute the statement."""
        ...

    def fetch_all(self) -> List[Dict[str, Any]]:
        """Rows of the last execution as column -> value maps."""
        ...


@runtime_checkable
class StoreProtocol(Protocol):
    """Protocol for the relational store (DI interface).

    Every failure raises StoreError carrying the driver message.
    """

    def describe(self, relation: str) -> List[ColumnInfo]:
        """Column metadata of a relation, in declaration order."""
        ...

    def prepare(self, sql: str) -> StatementProtocol:
        """Prepare a parameterized statement."""
        ...

    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name."""
        ...
