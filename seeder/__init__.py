"""
CSV seeder: populate database tables from CSV files.

This package provides:
- Streaming CSV reading (gzip and UTF-8 BOM aware)
- Header or explicit column mappings
- Per-field hashing and created_at/updated_at injection
- Chunked inserts with per-batch failure isolation
"""

from .config import SeedConfig, SeedManifest, load_manifest
from .destination import Destination, SQLiteDestination
from .seeder import CsvSeeder, InsertFailure, SeedResult, seed_all

__version__ = "0.1.0"

__all__ = [
    "CsvSeeder",
    "Destination",
    "InsertFailure",
    "SQLiteDestination",
    "SeedConfig",
    "SeedManifest",
    "SeedResult",
    "load_manifest",
    "seed_all",
]
