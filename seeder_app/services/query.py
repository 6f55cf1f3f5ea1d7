"""
Read-back queries for seeded tables.

Provides functions to:
- List the tables of a database with their row counts
- Fetch the first rows of a table as a DataFrame for display
"""

import sqlite3
from pathlib import Path
from typing import Any

import pandas as pd

from seeder.destination import quote_identifier


def _connect(db_path: str) -> sqlite3.Connection:
    db_file = Path(db_path)
    if not db_file.exists():
        raise FileNotFoundError(f"Database not found: {db_path}")
    return sqlite3.connect(db_path)


def list_tables(db_path: str) -> list[dict[str, Any]]:
    """
    List user tables with their row counts.

    Args:
        db_path: Path to SQLite database

    Returns:
        List of dicts: [{"table": str, "rows": int}, ...] ordered by table name

    Raises:
        FileNotFoundError: If database file not found
        sqlite3.Error: If database query fails
    """
    conn = _connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("""
            SELECT name FROM sqlite_master
            WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
            ORDER BY name
        """)
        tables = [row[0] for row in cursor.fetchall()]

        results = []
        for table in tables:
            cursor.execute(f"SELECT COUNT(*) FROM {quote_identifier(table)}")
            results.append({"table": table, "rows": cursor.fetchone()[0]})
        return results
    finally:
        conn.close()


def get_table_rows(table: str, db_path: str, limit: int = 20) -> pd.DataFrame:
    """
    Fetch the first rows of a table.

    Args:
        table: Table name
        db_path: Path to SQLite database
        limit: Maximum number of rows to return

    Returns:
        DataFrame with one column per table column, NULLs as None

    Raises:
        FileNotFoundError: If database file not found
        pandas.errors.DatabaseError: If the table does not exist
    """
    conn = _connect(db_path)
    try:
        df = pd.read_sql_query(
            f"SELECT * FROM {quote_identifier(table)} LIMIT ?",
            conn,
            params=(limit,),
        )
    finally:
        conn.close()

    return df.astype(object).where(df.notna(), None)
