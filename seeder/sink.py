"""
Insert sink: write one batch and isolate its failure.

A failing batch is logged and reported back as an InsertResult. The error is
never re-raised, so one bad batch does not stop the rest of the import.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from .destination import Destination
from .exceptions import InsertError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertResult:
    """Outcome of a single batch insert."""
    ok: bool
    rows: int
    kind: Optional[str] = None
    message: Optional[str] = None


def insert_batch(
    destination: Destination,
    table: str,
    connection: str,
    records: Sequence[dict[str, Any]],
    source: str = "",
    log: Optional[logging.Logger] = None,
) -> InsertResult:
    """
    Seed a given batch of records to the destination.

    Args:
        destination: Storage to write to
        table: Destination table name
        connection: Named connection ("" for default)
        records: Records to insert as one bulk write
        source: CSV filename, included in failure logs
        log: Logger to report failures on (defaults to this module's logger)

    Returns:
        InsertResult with ok=True on success, else the failure kind and message
    """
    log = log or logger
    try:
        destination.insert(connection, table, records)
    except Exception as e:
        kind = e.kind if isinstance(e, InsertError) else "storage"
        log.error("CSV insert failed: %s - CSV %s", e, source)
        return InsertResult(ok=False, rows=len(records), kind=kind, message=str(e))

    log.info("Inserted %d rows into %s", len(records), table)
    return InsertResult(ok=True, rows=len(records))
