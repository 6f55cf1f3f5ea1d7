"""Shared fixtures: CSV files, a SQLite users table and an in-memory destination."""

import csv
import gzip
import io
import sqlite3
from pathlib import Path

import pytest

from seeder.destination import SQLiteDestination
from seeder.exceptions import ConstraintViolation

USERS_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY,
    first_name TEXT DEFAULT '',
    last_name TEXT DEFAULT '',
    email TEXT DEFAULT '',
    password TEXT DEFAULT '',
    address TEXT DEFAULT '',
    age INTEGER DEFAULT 0,
    created_at TEXT,
    updated_at TEXT
);
"""

USERS_COLUMNS = ["id", "first_name", "last_name", "email", "password", "address", "age", "created_at", "updated_at"]

USERS_ROWS = [
    ["id", "first_name", "last_name", "email", "password", "age"],
    ["1", "Abe", "Abeson", "abe@x.com", "pw1", "50"],
    ["2", "Bob", "Bobson", "bob@x.com", "pw2", "51"],
    ["3", "Charly", "Charlyson", "charly@x.com", "pw3", "52"],
    ["4", "Dick", "Dickson", "dick@x.com", "pw4", "53"],
    ["5", "Echo", "Echoson", "", "pw5", "54"],
]


class FakeDestination:
    """In-memory destination recording every insert call."""

    def __init__(self, tables=None, fail_batches=()):
        self.tables = tables if tables is not None else {"users": list(USERS_COLUMNS)}
        self.fail_batches = set(fail_batches)
        self.calls = []
        self.inserted = []

    def has_column(self, table, field, connection=""):
        return field in self.tables.get(table, [])

    def columns(self, table, connection=""):
        return list(self.tables.get(table, []))

    def insert(self, connection, table, records):
        self.calls.append((connection, table, records))
        if len(self.calls) in self.fail_batches:
            raise ConstraintViolation(f"UNIQUE constraint failed: {table}.id")
        self.inserted.extend(records)


@pytest.fixture
def write_csv(tmp_path):
    """Factory writing rows to a CSV file, optionally with a BOM or gzip-compressed."""

    def _write(rows, name="data.csv", delimiter=",", bom=False, compress=False):
        path = tmp_path / name
        buffer = io.StringIO()
        csv.writer(buffer, delimiter=delimiter, lineterminator="\n").writerows(rows)
        text = ("\ufeff" if bom else "") + buffer.getvalue()
        data = text.encode("utf-8")
        if compress:
            data = gzip.compress(data)
        path.write_bytes(data)
        return path

    return _write


@pytest.fixture
def users_csv(write_csv) -> Path:
    return write_csv(USERS_ROWS, name="users.csv")


@pytest.fixture
def schema_file(tmp_path) -> Path:
    path = tmp_path / "schema.sql"
    path.write_text(USERS_SCHEMA)
    return path


@pytest.fixture
def users_db(tmp_path) -> Path:
    db_path = tmp_path / "app.sqlite"
    conn = sqlite3.connect(db_path)
    conn.executescript(USERS_SCHEMA)
    conn.commit()
    conn.close()
    return db_path


@pytest.fixture
def sqlite_destination(users_db):
    with SQLiteDestination(str(users_db)) as destination:
        yield destination


@pytest.fixture
def fake_destination():
    return FakeDestination()


@pytest.fixture
def fetch_users():
    """Return all users rows of a database as dicts ordered by id."""

    def _fetch(db_path):
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        try:
            return [dict(row) for row in conn.execute("SELECT * FROM users ORDER BY id")]
        finally:
            conn.close()

    return _fetch
