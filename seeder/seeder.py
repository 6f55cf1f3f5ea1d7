"""
CSV seeding orchestrator.

Streams a CSV file into a database table:
- Skips offset_rows, then reads a title row unless an explicit mapping is set
- Transforms each row (null-coalescing, trimming, hashing, timestamps)
- Inserts rows in chunks of insert_chunk_size
- Isolates failing batches so the rest of the file still loads
"""

import csv
import logging
import zlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Iterator, Optional

from .batch import Batch, BatchAccumulator
from .config import SeedConfig
from .destination import Destination
from .exceptions import InsertError, SourceUnavailable
from .hashing import Hasher, compute_sha256, sha256_hasher
from .mapping import Mapping, create_mapping_from_row, remove_unused_hash_columns
from .reader import read_csv
from .sink import InsertResult, insert_batch
from .transform import Record, read_row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InsertFailure:
    """A batch that could not be written. Batch 0 is the title row column lookup."""
    batch: int
    rows: int
    kind: str
    message: str


@dataclass
class SeedResult:
    """Outcome of seeding one CSV file."""
    table: str
    filename: str
    rows: list[Record] = field(default_factory=list)
    rows_prepared: int = 0
    rows_inserted: int = 0
    batches: int = 0
    failures: list[InsertFailure] = field(default_factory=list)
    source_available: bool = True
    degenerate: bool = False
    read_error: Optional[str] = None
    sha256: Optional[str] = None

    @property
    def status(self) -> str:
        if not self.source_available:
            return "source_unavailable"
        if self.degenerate:
            return "degenerate"
        if self.failures or self.read_error:
            return "partial" if self.rows_inserted else "failed"
        if self.rows_prepared == 0:
            return "empty"
        return "success"

    @property
    def ok(self) -> bool:
        return self.status in ("success", "empty")

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "filename": self.filename,
            "status": self.status,
            "rows_prepared": self.rows_prepared,
            "rows_inserted": self.rows_inserted,
            "batches": self.batches,
            "failures": [vars(failure) for failure in self.failures],
            "read_error": self.read_error,
            "sha256": self.sha256,
        }


class CsvSeeder:
    """
    Seed a database table from a CSV file.

    Example:
        >>> config = SeedConfig(table="users", filename="seeds/users.csv")
        >>> with SQLiteDestination("db/app.sqlite") as dest:
        ...     result = CsvSeeder(config, dest).run()
        >>> result.status
        'success'
    """

    def __init__(
        self,
        config: SeedConfig,
        destination: Destination,
        hasher: Hasher = sha256_hasher,
        log: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.destination = destination
        self.hasher = hasher
        self.logger = log or logger

    def run(self, collect_rows: bool = True) -> SeedResult:
        """
        Run DB seed.

        Args:
            collect_rows: Keep every prepared record on the result. Turn off
                for large files to keep memory bounded by the chunk size.
        """
        if self.config.timestamps:
            self.config.cache_timestamps()

        return self.seed_from_csv(collect_rows=collect_rows)

    def seed_from_csv(self, collect_rows: bool = True) -> SeedResult:
        """
        Stream the configured CSV into the destination table.

        Returns:
            SeedResult. If the CSV doesn't exist or couldn't be read the
            result has source_available=False and nothing was inserted.
        """
        config = self.config
        result = SeedResult(table=config.table, filename=config.filename)

        try:
            with read_csv(config.filename, config.csv_delimiter, config.encoding) as rows:
                self._seed_rows(rows, result, collect_rows)
        except SourceUnavailable:
            result.source_available = False
            return result

        self.logger.info(
            "Seeded %s from %s: %d/%d rows inserted in %d batch(es), %d failed",
            config.table, config.filename, result.rows_inserted,
            result.rows_prepared, result.batches, len(result.failures),
        )
        return result

    def _seed_rows(self, rows: Iterator[list[str]], result: SeedResult, collect_rows: bool) -> None:
        config = self.config
        mapping: Optional[Mapping] = dict(config.mapping) or None
        hashable = remove_unused_hash_columns(config.hashable, mapping) if mapping else []
        timestamps = config.cache_timestamps() if config.timestamps else None
        offset = config.offset_rows

        accumulator = BatchAccumulator(config.insert_chunk_size, lambda batch: self._flush(batch, result))

        try:
            for row in rows:
                # Offset the specified number of rows
                if offset > 0:
                    offset -= 1
                    continue

                if result.degenerate:
                    continue

                # No mapping specified - the first row is the CSV title row.
                # It is not inserted into the DB
                if mapping is None:
                    try:
                        mapping = create_mapping_from_row(row, config.table, self.destination, config.connection)
                    except InsertError as e:
                        self.logger.error("CSV insert failed: %s - CSV %s", e, config.filename)
                        result.failures.append(InsertFailure(batch=0, rows=0, kind=e.kind, message=str(e)))
                        break
                    hashable = remove_unused_hash_columns(config.hashable, mapping)
                    if not mapping:
                        result.degenerate = True
                        self.logger.warning(
                            "CSV %s has no columns matching table %s; no rows will be seeded",
                            config.filename, config.table,
                        )
                    continue

                record = read_row(
                    row,
                    mapping,
                    should_trim=config.should_trim,
                    hashable=hashable,
                    hasher=self.hasher,
                    timestamps=timestamps,
                )

                # insert only non-empty rows from the csv file
                if not record:
                    continue

                result.rows_prepared += 1
                if collect_rows:
                    result.rows.append(record)
                accumulator.add(record)
        except (csv.Error, UnicodeDecodeError, EOFError, zlib.error, OSError) as e:
            result.read_error = str(e)
            self.logger.error("CSV read failed: %s - CSV %s", e, config.filename)
        finally:
            # Insert any leftover rows
            accumulator.finish()

    def _flush(self, batch: Batch, result: SeedResult) -> InsertResult:
        config = self.config
        outcome = insert_batch(
            self.destination,
            config.table,
            config.connection,
            batch,
            source=config.filename,
            log=self.logger,
        )
        result.batches += 1
        if outcome.ok:
            result.rows_inserted += outcome.rows
        else:
            result.failures.append(
                InsertFailure(batch=result.batches, rows=outcome.rows, kind=outcome.kind, message=outcome.message)
            )
        return outcome


def seed_all(
    configs: Iterable[SeedConfig],
    destination: Destination,
    hasher: Hasher = sha256_hasher,
    log: Optional[logging.Logger] = None,
) -> dict[str, Any]:
    """
    Seed several tables in order.

    Seeds run in the given order, so parent tables should come before child
    tables. A failing seed does not stop the ones after it.

    Args:
        configs: Seeds to run
        destination: Destination shared by all seeds
        hasher: Hasher for hashable fields
        log: Logger for progress and failures

    Returns:
        Seeding report dictionary with:
        - status: "success" | "partial" | "failed"
        - seeded: [SeedResult.to_dict(), ...]
        - errors: [{table, file, error, severity}, ...]
        - timestamp: ISO datetime of the report
    """
    log = log or logger
    configs = list(configs)
    seeded = []
    errors = []
    failed_seeds = 0

    for config in configs:
        result = CsvSeeder(config, destination, hasher=hasher, log=log).run(collect_rows=False)
        if result.source_available:
            result.sha256 = compute_sha256(config.filename)

        seeded.append(result.to_dict())

        if not result.source_available:
            errors.append({
                "table": config.table,
                "file": config.filename,
                "error": "File not found or not readable",
                "severity": "error",
            })
        elif result.degenerate:
            errors.append({
                "table": config.table,
                "file": config.filename,
                "error": "No CSV columns match the table",
                "severity": "error",
            })
        if result.read_error:
            errors.append({
                "table": config.table,
                "file": config.filename,
                "error": result.read_error,
                "severity": "error",
            })
        for failure in result.failures:
            errors.append({
                "table": config.table,
                "file": config.filename,
                "error": (
                    f"Batch {failure.batch} ({failure.rows} rows): {failure.message}"
                    if failure.batch else f"Title row lookup: {failure.message}"
                ),
                "severity": "error",
            })

        if not result.ok:
            failed_seeds += 1

    if failed_seeds == 0:
        status = "success"
    elif failed_seeds == len(configs):
        status = "failed"
    else:
        status = "partial"

    return {
        "status": status,
        "seeded": seeded,
        "errors": errors,
        "timestamp": datetime.now().isoformat(),
    }
