"""
CSV -> DB column mapping helpers.

Mappings take the form {csv_column_number: db_column_name}. Positions do not
need to be contiguous: unmapped CSV columns are ignored, and mapped positions
past the end of a row read as NULL.
"""

import logging
from typing import Iterable, Optional

from .destination import Destination
from .reader import strip_utf8_bom

logger = logging.getLogger(__name__)

Mapping = dict[int, str]


def create_mapping_from_row(
    row: list[str],
    table: str,
    destination: Destination,
    connection: str = "",
) -> Mapping:
    """
    Create a CSV->DB column mapping from a CSV title row.

    Columns whose name is not a column of the destination table are dropped.
    Kept columns retain their original CSV position.

    Args:
        row: Header row read from the CSV
        table: Destination table name
        destination: Destination used for column lookups
        connection: Named connection the table lives on

    Returns:
        Mapping of CSV position to DB column name (possibly empty)

    Example:
        >>> create_mapping_from_row(["id", "nickname", "email"], "users", dest)
        {0: 'id', 2: 'email'}
    """
    mapping: Mapping = {}
    for index, fieldname in enumerate(row):
        if index == 0:
            fieldname = strip_utf8_bom(fieldname)
        if destination.has_column(table, fieldname, connection):
            mapping[index] = fieldname
        else:
            logger.debug("Skipping CSV column %d (%r): not a column of %s", index, fieldname, table)
    return mapping


def normalize_mapping(mapping: Optional[dict]) -> Mapping:
    """
    Coerce an explicit mapping to {int: str}, ordered by CSV position.

    Manifests loaded from JSON carry string keys ("0", "2"), so keys are
    converted with int().

    Raises:
        ValueError: If a key is not a non-negative integer
    """
    if not mapping:
        return {}

    normalized: Mapping = {}
    for key, fieldname in mapping.items():
        try:
            position = int(key)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Mapping key must be a CSV column number, got: {key!r}") from e
        if position < 0:
            raise ValueError(f"Mapping key must be non-negative, got: {position}")
        normalized[position] = str(fieldname)
    return dict(sorted(normalized.items()))


def remove_unused_hash_columns(hashable: Iterable[str], mapping: Mapping) -> list[str]:
    """
    Remove fields from the hashable list that don't exist in the mapping.

    Avoids looking for hash targets on every imported row when we already know
    they can't be there.

    Args:
        hashable: Field names configured for hashing
        mapping: Resolved CSV->DB mapping

    Returns:
        Hashable fields present in the mapping, in their configured order
    """
    mapped = set(mapping.values())
    return [field for field in hashable if field in mapped]
