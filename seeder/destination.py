"""
Destination port for seeded records.

The seeding pipeline only needs two things from storage: "does this table
have column X" and "insert this batch of records into table T over
connection C". Destination describes that contract; SQLiteDestination
implements it on top of sqlite3 with named connections.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional, Protocol, Sequence, Union

from .exceptions import ConstraintViolation, InsertError, SchemaMismatch

logger = logging.getLogger(__name__)

ConnectionTarget = Union[str, Path, sqlite3.Connection]


class Destination(Protocol):
    """Storage capability consumed by the seeder."""

    def has_column(self, table: str, field: str, connection: str = "") -> bool:
        ...

    def insert(self, connection: str, table: str, records: Sequence[dict[str, Any]]) -> None:
        ...


def initialize_database(db_path: str, schema_path: str) -> sqlite3.Connection:
    """
    Initialize SQLite database with schema if not exists.

    Args:
        db_path: Path to SQLite database file
        schema_path: Path to a .sql file of CREATE TABLE IF NOT EXISTS statements

    Returns:
        SQLite connection with foreign keys enabled

    Raises:
        FileNotFoundError: If schema file not found
        sqlite3.Error: If database creation fails
    """
    schema_file = Path(schema_path)
    if not schema_file.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    conn = sqlite3.connect(db_path)
    conn.execute("PRAGMA foreign_keys = ON")

    # Execute schema DDL
    with open(schema_file, "r") as f:
        schema_sql = f.read()
        conn.executescript(schema_sql)

    conn.commit()
    return conn


def quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SQLiteDestination:
    """
    SQLite-backed destination with named connections.

    The empty connection name "" is the default connection. Targets may be a
    database path or an already open sqlite3.Connection (useful for
    ":memory:" databases in tests).

    Example:
        >>> dest = SQLiteDestination("db/app.sqlite", connections={"audit": "db/audit.sqlite"})
        >>> dest.has_column("users", "email")
        True
    """

    def __init__(self, database: Optional[ConnectionTarget] = None, connections: Optional[dict[str, ConnectionTarget]] = None):
        self.targets: dict[str, ConnectionTarget] = {}
        if database is not None:
            self.targets[""] = database
        self.targets.update(connections or {})
        self._connections: dict[str, sqlite3.Connection] = {}
        self._owned: set[str] = set()
        self._columns: dict[tuple[str, str], list[str]] = {}

    def __enter__(self) -> "SQLiteDestination":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def connect(self, connection: str = "") -> sqlite3.Connection:
        """
        Return the sqlite3 connection registered under a name, opening it lazily.

        Raises:
            InsertError: If no connection is registered under that name or it cannot be opened
        """
        if connection in self._connections:
            return self._connections[connection]

        if connection not in self.targets:
            raise InsertError(f"Unknown database connection '{connection or 'default'}'")

        target = self.targets[connection]
        if isinstance(target, sqlite3.Connection):
            conn = target
        else:
            try:
                conn = sqlite3.connect(str(target))
                conn.execute("PRAGMA foreign_keys = ON")
            except sqlite3.Error as e:
                raise InsertError(f"Cannot open database connection '{connection or 'default'}': {e}") from e
            self._owned.add(connection)

        self._connections[connection] = conn
        return conn

    def columns(self, table: str, connection: str = "") -> list[str]:
        """
        List the columns of a table (empty if the table does not exist).

        Raises:
            InsertError: If the connection is unknown or the lookup fails
        """
        key = (connection, table)
        if key not in self._columns:
            conn = self.connect(connection)
            try:
                cursor = conn.execute(f"PRAGMA table_info({quote_identifier(table)})")
                self._columns[key] = [row[1] for row in cursor.fetchall()]
            except sqlite3.Error as e:
                raise InsertError(f"Column lookup on {table} failed: {e}") from e
        return self._columns[key]

    def has_column(self, table: str, field: str, connection: str = "") -> bool:
        return field in self.columns(table, connection)

    def insert(self, connection: str, table: str, records: Sequence[dict[str, Any]]) -> None:
        """
        Insert a batch of records in a single transaction.

        Either every record in the batch is written or none is.

        Raises:
            SchemaMismatch: If the table is missing or a record field is not a column
            ConstraintViolation: If a unique/not-null/foreign key constraint fails
            InsertError: For any other storage failure
        """
        if not records:
            return

        fields: list[str] = []
        for record in records:
            for field in record:
                if field not in fields:
                    fields.append(field)

        known = self.columns(table, connection)
        if not known:
            raise SchemaMismatch(f"no such table: {table}")
        unknown = [field for field in fields if field not in known]
        if unknown:
            raise SchemaMismatch(f"table {table} has no column named {unknown[0]}")

        sql = "INSERT INTO {} ({}) VALUES ({})".format(
            quote_identifier(table),
            ", ".join(quote_identifier(field) for field in fields),
            ", ".join("?" for _ in fields),
        )
        params = [tuple(record.get(field) for field in fields) for record in records]

        conn = self.connect(connection)
        try:
            with conn:
                conn.executemany(sql, params)
        except sqlite3.IntegrityError as e:
            raise ConstraintViolation(str(e)) from e
        except sqlite3.OperationalError as e:
            message = str(e)
            if "no column" in message or "no such table" in message:
                raise SchemaMismatch(message) from e
            raise InsertError(message) from e
        except sqlite3.Error as e:
            raise InsertError(str(e)) from e

    def close(self) -> None:
        """Close connections this destination opened itself."""
        for name in list(self._owned):
            self._connections.pop(name).close()
        self._owned.clear()
        self._connections.clear()
        self._columns.clear()
