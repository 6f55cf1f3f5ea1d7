"""Tests for destination module."""

import sqlite3

import pytest

from conftest import USERS_COLUMNS, USERS_SCHEMA
from seeder.destination import SQLiteDestination, initialize_database, quote_identifier
from seeder.exceptions import ConstraintViolation, InsertError, SchemaMismatch


def test_columns_and_has_column(sqlite_destination):
    assert sqlite_destination.columns("users") == USERS_COLUMNS
    assert sqlite_destination.has_column("users", "email")
    assert not sqlite_destination.has_column("users", "nickname")
    assert not sqlite_destination.has_column("no_such_table", "id")


def test_insert_writes_rows_and_nulls(sqlite_destination, users_db, fetch_users):
    sqlite_destination.insert("", "users", [
        {"id": "1", "first_name": "Abe", "email": None},
        {"id": "2", "first_name": "Bob", "email": "bob@x.com"},
    ])

    rows = fetch_users(users_db)
    assert [row["first_name"] for row in rows] == ["Abe", "Bob"]
    assert rows[0]["email"] is None
    assert rows[1]["email"] == "bob@x.com"
    # Columns not in the batch keep their defaults
    assert rows[0]["last_name"] == ""


def test_records_with_different_fields(sqlite_destination, users_db, fetch_users):
    sqlite_destination.insert("", "users", [{"id": "1", "first_name": "Abe"}, {"id": "2", "age": "30"}])
    rows = fetch_users(users_db)
    assert rows[0]["age"] is None
    assert rows[1]["first_name"] is None
    assert rows[1]["age"] == 30


def test_unknown_column_is_schema_mismatch(sqlite_destination, users_db, fetch_users):
    with pytest.raises(SchemaMismatch, match="nickname"):
        sqlite_destination.insert("", "users", [{"id": "1", "nickname": "abe"}])
    assert fetch_users(users_db) == []


def test_missing_table_is_schema_mismatch(sqlite_destination):
    with pytest.raises(SchemaMismatch, match="no such table"):
        sqlite_destination.insert("", "accounts", [{"id": "1"}])


def test_unique_violation_rolls_back_whole_batch(sqlite_destination, users_db, fetch_users):
    sqlite_destination.insert("", "users", [{"id": "1", "first_name": "Abe"}])

    with pytest.raises(ConstraintViolation):
        sqlite_destination.insert("", "users", [
            {"id": "2", "first_name": "Bob"},
            {"id": "1", "first_name": "Duplicate"},
        ])

    assert [row["id"] for row in fetch_users(users_db)] == [1]


def test_empty_batch_is_noop(sqlite_destination, users_db, fetch_users):
    sqlite_destination.insert("", "users", [])
    assert fetch_users(users_db) == []


def test_named_connections(tmp_path, users_db, fetch_users):
    audit_db = tmp_path / "audit.sqlite"
    initialize_database(str(audit_db), _schema(tmp_path)).close()

    with SQLiteDestination(str(users_db), connections={"audit": str(audit_db)}) as dest:
        dest.insert("audit", "users", [{"id": "7", "first_name": "Gus"}])

    assert fetch_users(users_db) == []
    assert [row["first_name"] for row in fetch_users(audit_db)] == ["Gus"]


def test_unknown_connection(sqlite_destination):
    with pytest.raises(InsertError, match="reporting"):
        sqlite_destination.insert("reporting", "users", [{"id": "1"}])


def test_open_connection_target_is_not_closed():
    conn = sqlite3.connect(":memory:")
    conn.executescript(USERS_SCHEMA)

    with SQLiteDestination(conn) as dest:
        dest.insert("", "users", [{"id": "1"}])

    assert conn.execute("SELECT COUNT(*) FROM users").fetchone()[0] == 1
    conn.close()


def test_initialize_database(tmp_path):
    db_path = tmp_path / "new.sqlite"
    conn = initialize_database(str(db_path), _schema(tmp_path))
    try:
        tables = [row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")]
    finally:
        conn.close()
    assert tables == ["users"]


def test_initialize_database_missing_schema(tmp_path):
    with pytest.raises(FileNotFoundError):
        initialize_database(str(tmp_path / "new.sqlite"), str(tmp_path / "missing.sql"))


def test_quote_identifier():
    assert quote_identifier("users") == '"users"'
    assert quote_identifier('we"ird') == '"we""ird"'


def _schema(tmp_path):
    path = tmp_path / "schema.sql"
    path.write_text(USERS_SCHEMA)
    return str(path)


def test_lookup_on_closed_connection_is_insert_error():
    conn = sqlite3.connect(":memory:")
    conn.close()
    with pytest.raises(InsertError, match="Column lookup on users failed"):
        SQLiteDestination(conn).has_column("users", "id")


def test_unopenable_database_is_insert_error(tmp_path):
    with SQLiteDestination(str(tmp_path)) as dest:
        with pytest.raises(InsertError, match="Cannot open database connection"):
            dest.columns("users")
