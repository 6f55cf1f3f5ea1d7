"""
Seed run configuration.

SeedConfig describes one CSV -> table import. Seed manifests (JSON) describe
several of them plus the database connections they use, e.g.:

    {
        "database": "db/app.sqlite",
        "connections": {"audit": "db/audit.sqlite"},
        "seeds": [
            {"table": "users", "filename": "seeds/users.csv", "hashable": ["password"]},
            {"table": "events", "filename": "seeds/events.csv.gz", "connection": "audit",
             "mapping": {"0": "id", "2": "name"}, "timestamps": true}
        ]
    }
"""

import json
from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

from .exceptions import ConfigurationError
from .mapping import Mapping, normalize_mapping

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class SeedConfig:
    """Settings for seeding one table from one CSV file."""

    # DB table name
    table: str
    # CSV filename (plain or gzip-compressed)
    filename: str
    # DB connection to use. Empty for the default connection
    connection: str = ""
    csv_delimiter: str = ","
    # Number of rows to skip at the start of the CSV, before any title row
    offset_rows: int = 0
    # Trim leading/trailing whitespace from every value
    should_trim: bool = False
    # Add created_at and updated_at to rows
    timestamps: bool = False
    # Values for created_at/updated_at. Filled in once per run when empty
    created_at: str = ""
    updated_at: str = ""
    # csv_col_number -> db_col_name. When empty, the first row (after
    # offset_rows) is read as the title row
    mapping: Mapping = field(default_factory=dict)
    # DB fields to be hashed before import
    hashable: list[str] = field(default_factory=lambda: ["password"])
    # An INSERT is issued every time this many rows are read
    insert_chunk_size: int = 50
    encoding: str = "utf-8"

    def __post_init__(self):
        if not self.table:
            raise ConfigurationError("table is required")
        if not self.filename:
            raise ConfigurationError("filename is required")
        if len(self.csv_delimiter) != 1:
            raise ConfigurationError(f"csv_delimiter must be a single character, got: {self.csv_delimiter!r}")
        if self.offset_rows < 0:
            raise ConfigurationError(f"offset_rows must be >= 0, got: {self.offset_rows}")
        if self.insert_chunk_size < 1:
            raise ConfigurationError(f"insert_chunk_size must be >= 1, got: {self.insert_chunk_size}")

        self.filename = str(self.filename)

        try:
            self.mapping = normalize_mapping(self.mapping)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

        # Accept a single field name or "" for no hashing
        if isinstance(self.hashable, str):
            self.hashable = [self.hashable] if self.hashable else []
        else:
            self.hashable = list(self.hashable or [])

    def cache_timestamps(self, now: Optional[datetime] = None) -> tuple[str, str]:
        """
        Fill in created_at/updated_at if they were not supplied.

        Computed once and then reused for every row, so all rows of a run
        share identical timestamps.

        Returns:
            (created_at, updated_at)
        """
        if not self.created_at or not self.updated_at:
            stamp = (now or datetime.now()).strftime(TIMESTAMP_FORMAT)
            if not self.created_at:
                self.created_at = stamp
            if not self.updated_at:
                self.updated_at = stamp
        return self.created_at, self.updated_at

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Optional[Path] = None) -> "SeedConfig":
        """
        Build a SeedConfig from a manifest entry.

        Relative filenames are resolved against base_dir (the manifest's directory).

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown seed option(s): {', '.join(unknown)}")

        data = dict(data)
        if base_dir is not None and "filename" in data:
            path = Path(data["filename"])
            if not path.is_absolute():
                data["filename"] = str(base_dir / path)

        try:
            return cls(**data)
        except TypeError as e:
            raise ConfigurationError(str(e)) from e


@dataclass
class SeedManifest:
    """A set of seeds and the connections they write to."""
    seeds: list[SeedConfig]
    database: Optional[str] = None
    connections: dict[str, str] = field(default_factory=dict)


def load_manifest(manifest_path: Union[str, Path]) -> SeedManifest:
    """
    Load a JSON seed manifest.

    The manifest is either a list of seed objects or an object with "seeds"
    and optional "database" / "connections" keys.

    Args:
        manifest_path: Path to manifest JSON

    Returns:
        Parsed SeedManifest

    Raises:
        FileNotFoundError: If the manifest does not exist
        ConfigurationError: If the manifest is malformed
    """
    manifest_path = Path(manifest_path)
    if not manifest_path.exists():
        raise FileNotFoundError(f"Seed manifest not found: {manifest_path}")

    with open(manifest_path, "r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {manifest_path}: {e}") from e

    if isinstance(raw, list):
        raw = {"seeds": raw}
    if not isinstance(raw, dict) or not isinstance(raw.get("seeds"), list):
        raise ConfigurationError(f"Manifest {manifest_path} must contain a list of seeds")

    base_dir = manifest_path.parent
    seeds = [SeedConfig.from_dict(entry, base_dir) for entry in raw["seeds"]]

    connections = {
        name: _resolve_database(path, base_dir)
        for name, path in (raw.get("connections") or {}).items()
    }

    return SeedManifest(
        seeds=seeds,
        database=_resolve_database(raw.get("database"), base_dir),
        connections=connections,
    )


def _resolve_database(database: Optional[str], base_dir: Path) -> Optional[str]:
    if not database or database == ":memory:" or Path(database).is_absolute():
        return database
    return str(base_dir / database)
