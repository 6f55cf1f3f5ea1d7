"""Row transformer: one raw CSV row into one DB-insertable record."""

from typing import Iterable, Optional

from .hashing import Hasher
from .mapping import Mapping

Record = dict[str, Optional[str]]


def read_row(
    row: list[str],
    mapping: Mapping,
    *,
    should_trim: bool = False,
    hashable: Iterable[str] = (),
    hasher: Optional[Hasher] = None,
    timestamps: Optional[tuple[str, str]] = None,
) -> Record:
    """
    Read a CSV row into a DB insertable dict.

    Missing or empty columns become None. Values are trimmed first (when
    enabled) and then hashed, so the hash is taken over the trimmed value.

    Args:
        row: List of CSV columns
        mapping: Dict of csv_col -> db_col
        should_trim: Strip leading/trailing whitespace from values
        hashable: DB columns whose non-null values are replaced by hasher(value)
        hasher: One-way hash function, required when hashable is non-empty
        timestamps: (created_at, updated_at) to add to the record, or None

    Returns:
        Dict of db_col -> value
    """
    record: Record = {}

    for csv_col, db_col in mapping.items():
        value = row[csv_col] if 0 <= csv_col < len(row) else None
        if value is None or value == "":
            record[db_col] = None
        else:
            record[db_col] = value.strip() if should_trim else value

    for column in hashable:
        if record.get(column) is not None:
            if hasher is None:
                raise ValueError(f"No hasher configured for hashable column '{column}'")
            record[column] = hasher(record[column])

    if timestamps is not None:
        record["created_at"], record["updated_at"] = timestamps

    return record
