"""
SQLiteStore - Relational store on top of the sqlite3 module.

Implements StoreProtocol. Runs in autocommit mode: every executed statement
is committed on its own.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from craftworks.common.logging import get_logger
from ..errors import StoreError
from ..interfaces.store_protocol import ColumnInfo, KEY_PRIMARY, KEY_UNIQUE, KEY_MULTIPLE

logger = get_logger(__name__)

_COERCE = {
    "i": int,
    "d": float,
    "s": str,
}


class SQLiteStatement:
    """
    Prepared statement with mysqli-style binding.

    Blob parameters are bound as placeholders and filled through
    send_long_data before execute.
    """

    def __init__(self, connection: sqlite3.Connection, sql: str):
        self._connection = connection
        self.sql = sql
        self._types = ""
        self._values: List[Any] = []
        self._long_data: Dict[int, bytearray] = {}
        self._rows: List[Dict[str, Any]] = []
        self.insert_id = 0
        self.affected_rows = 0

    def bind_param(self, types: str, *values: Any) -> None:
        """Bind parameters; types holds one of i/s/d/b per value."""
        if len(types) != len(values):
            raise StoreError(
                f"Unable to execute database query: {len(types)} bind types for {len(values)} values",
                data={"sql": self.sql},
            )
        unknown = set(types) - set("isdb")
        if unknown:
            raise StoreError(
                f"Unable to execute database query: invalid bind types {''.join(sorted(unknown))}",
                data={"sql": self.sql},
            )
        self._types = types
        self._values = list(values)
        self._long_data = {}

    def send_long_data(self, index: int, data: bytes) -> None:
        """Append a chunk to the blob parameter at index."""
        if index >= len(self._types) or self._types[index] != "b":
            raise StoreError(
                f"Unable to execute database query: parameter {index} is not a blob",
                data={"sql": self.sql},
            )
        self._long_data.setdefault(index, bytearray()).extend(data)

    def _parameters(self) -> List[Any]:
        params = []
        for index, (bind, value) in enumerate(zip(self._types, self._values)):
            if index in self._long_data:
                params.append(bytes(self._long_data[index]))
            elif value is None:
                params.append(None)
            elif bind == "b":
                params.append(bytes(value))
            else:
                params.append(_COERCE[bind](value))
        return params

    def execute(self) -> None:
        """Execute the statement."""
        try:
            params = self._parameters()
        except (TypeError, ValueError) as e:
            raise StoreError(f"Unable to execute database query: {e}", data={"sql": self.sql}, cause=e)

        try:
            cursor = self._connection.execute(self.sql, params)
            if cursor.description is not None:
                columns = [column[0] for column in cursor.description]
                self._rows = [dict(zip(columns, row)) for row in cursor.fetchall()]
            else:
                self._rows = []
        except sqlite3.Error as e:
            raise StoreError(f"Unable to execute database query: {e}", data={"sql": self.sql}, cause=e)

        self.insert_id = cursor.lastrowid or 0
        self.affected_rows = cursor.rowcount

    def fetch_all(self) -> List[Dict[str, Any]]:
        """Rows returned by the last execute."""
        return list(self._rows)


class SQLiteStore:
    """
    SQLite-backed relational store.

    One connection per store instance, shared by the process.
    """

    def __init__(self, db_path: str = ":memory:", connection: Optional[sqlite3.Connection] = None):
        """
        Initialize SQLite store.

        Args:
            db_path: Path to SQLite database, ":memory:" for a private in-memory database
            connection: Existing connection to reuse instead of opening db_path
        """
        self.db_path = db_path
        if connection is None:
            if db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            try:
                connection = sqlite3.connect(db_path, isolation_level=None, check_same_thread=False)
            except sqlite3.Error as e:
                raise StoreError(f"Unable to connect to database: {e}", data={"db_path": db_path}, cause=e)
        self._connection = connection
        logger.info(f"SQLite store opened: {db_path}")

    @property
    def connection(self) -> sqlite3.Connection:
        """Underlying sqlite3 connection."""
        return self._connection

    def quote_identifier(self, name: str) -> str:
        """Quote a table or column name."""
        return '"' + name.replace('"', '""') + '"'

    def prepare(self, sql: str) -> SQLiteStatement:
        """Prepare a parameterized statement."""
        return SQLiteStatement(self._connection, sql)

    def _pragma(self, pragma: str, name: str) -> List[sqlite3.Row]:
        try:
            cursor = self._connection.execute(f"PRAGMA {pragma}({self.quote_identifier(name)})")
            return cursor.fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Unable to execute database query: {e}", data={"relation": name}, cause=e)

    def describe(self, relation: str) -> List[ColumnInfo]:
        """
        Column metadata of a relation.

        Single-column primary keys report PRI, columns covered by a
        single-column unique index report UNI and foreign key columns
        report MUL. Composite keys mark nothing unique.
        """
        # cid, name, type, notnull, dflt_value, pk
        columns = self._pragma("table_info", relation)
        if not columns:
            raise StoreError(
                f"Unable to execute database query: no such table: {relation}",
                data={"relation": relation},
            )

        keys: Dict[str, str] = {}
        for row in self._pragma("foreign_key_list", relation):
            # id, seq, table, from, to, on_update, on_delete, match
            keys[row[3]] = KEY_MULTIPLE

        # seq, name, unique, origin, partial
        for index in self._pragma("index_list", relation):
            if not index[2]:
                continue
            indexed = self._pragma("index_info", index[1])
            if len(indexed) == 1:
                keys[indexed[0][2]] = KEY_UNIQUE

        primary = [column for column in columns if column[5]]
        if len(primary) == 1:
            keys[primary[0][1]] = KEY_PRIMARY

        return [ColumnInfo(name=column[1], native_type=column[2], key=keys.get(column[1], "")) for column in columns]

    def executescript(self, script: str) -> None:
        """Run a multi-statement SQL script (DDL, fixtures)."""
        try:
            self._connection.executescript(script)
        except sqlite3.Error as e:
            raise StoreError(f"Unable to execute database script: {e}", cause=e)

    def close(self) -> None:
        """Close the connection."""
        self._connection.close()
