"""
Pre-flight checks for seed configurations.

Validates a seed against its destination before any row is written:
- Source file exists and is readable
- Destination table exists
- Explicit mappings only name real columns
- Title rows share at least one column with the table
- Timestamp columns exist when timestamps are enabled
"""

import csv
import zlib
from typing import Any, Iterable, Optional

from .config import SeedConfig
from .destination import Destination
from .exceptions import InsertError, SourceUnavailable
from .mapping import create_mapping_from_row
from .reader import read_csv


def _issue(severity: str, config: SeedConfig, column: str, issue: str, details: str) -> dict[str, Any]:
    return {
        "type": "seed_config",
        "severity": severity,
        "table": config.table,
        "column": column,
        "issue": issue,
        "details": details,
    }


def _read_title_row(config: SeedConfig) -> list[str]:
    """Return the first row after offset_rows, or [] if the file runs out first."""
    with read_csv(config.filename, config.csv_delimiter, config.encoding) as rows:
        for index, row in enumerate(rows):
            if index >= config.offset_rows:
                return row
    return []


def validate_seed_config(config: SeedConfig, destination: Destination) -> list[dict[str, Any]]:
    """
    Validate one seed against its source file and destination.

    Args:
        config: Seed to check
        destination: Destination the seed would write to

    Returns:
        List of issue dictionaries with keys: type, severity, table, column, issue, details

    Example issue:
        {
            "type": "seed_config",
            "severity": "error",
            "table": "users",
            "column": "nickname",
            "issue": "unknown_column",
            "details": "Mapping position 2 targets 'nickname', which is not a column of users"
        }
    """
    issues = []

    try:
        title_row = None if config.mapping else _read_title_row(config)
    except SourceUnavailable as e:
        issues.append(_issue("error", config, "", "source_unavailable", str(e)))
        return issues
    except (csv.Error, UnicodeDecodeError, EOFError, zlib.error, OSError) as e:
        issues.append(_issue("error", config, "", "unreadable_source", f"{config.filename}: {e}"))
        return issues

    try:
        _check_destination(config, destination, title_row, issues)
    except InsertError as e:
        issues.append(_issue("error", config, "", "destination_unavailable", str(e)))

    return issues


def _check_destination(
    config: SeedConfig,
    destination: Destination,
    title_row: Optional[list[str]],
    issues: list[dict[str, Any]],
) -> None:
    if hasattr(destination, "columns") and not destination.columns(config.table, config.connection):
        issues.append(_issue("error", config, "", "missing_table", f"Table '{config.table}' does not exist"))
        return

    if config.mapping:
        for position, fieldname in config.mapping.items():
            if not destination.has_column(config.table, fieldname, config.connection):
                issues.append(_issue(
                    "error", config, fieldname, "unknown_column",
                    f"Mapping position {position} targets '{fieldname}', which is not a column of {config.table}",
                ))
        mapped = set(config.mapping.values())
    elif not title_row:
        issues.append(_issue(
            "warning", config, "", "empty_source",
            f"{config.filename} has no title row after skipping {config.offset_rows} row(s)",
        ))
        mapped = set()
    else:
        mapping = create_mapping_from_row(title_row, config.table, destination, config.connection)
        if not mapping:
            issues.append(_issue(
                "error", config, "", "no_usable_columns",
                f"No column of the title row in {config.filename} exists on {config.table}",
            ))
        ignored = [name for index, name in enumerate(title_row) if index not in mapping]
        if mapping and ignored:
            issues.append(_issue(
                "warning", config, ", ".join(ignored), "ignored_columns",
                f"{len(ignored)} CSV column(s) not on {config.table} will be skipped",
            ))
        mapped = set(mapping.values())

    for fieldname in config.hashable:
        if fieldname in mapped and not destination.has_column(config.table, fieldname, config.connection):
            issues.append(_issue(
                "error", config, fieldname, "unknown_column",
                f"Hashable field '{fieldname}' is not a column of {config.table}",
            ))

    if config.timestamps:
        for fieldname in ("created_at", "updated_at"):
            if not destination.has_column(config.table, fieldname, config.connection):
                issues.append(_issue(
                    "error", config, fieldname, "missing_timestamp_column",
                    f"timestamps is enabled but {config.table} has no '{fieldname}' column",
                ))


def generate_validation_report(issues: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Generate human-readable validation report.

    Args:
        issues: Issue dictionaries from validate_seed_config()

    Returns:
        Dictionary with report structure:
        {
            "status": "pass" | "warnings" | "errors",
            "error_count": int,
            "warning_count": int,
            "errors": [...],
            "warnings": [...],
            "summary": "Human readable summary"
        }
    """
    errors = [i for i in issues if i.get("severity") == "error"]
    warnings = [i for i in issues if i.get("severity") == "warning"]

    error_count = len(errors)
    warning_count = len(warnings)

    if error_count > 0:
        status = "errors"
        summary = f"Validation FAILED: {error_count} error(s), {warning_count} warning(s)"
    elif warning_count > 0:
        status = "warnings"
        summary = f"Validation passed with {warning_count} warning(s)"
    else:
        status = "pass"
        summary = "Validation passed: no errors or warnings"

    return {
        "status": status,
        "error_count": error_count,
        "warning_count": warning_count,
        "errors": errors,
        "warnings": warnings,
        "summary": summary,
    }


def validate_all(configs: Iterable[SeedConfig], destination: Destination) -> dict[str, Any]:
    """
    Run all validation checks over a set of seeds and return a report.

    Example:
        >>> report = validate_all(manifest.seeds, dest)
        >>> print(report["summary"])
        Validation passed: no errors or warnings
    """
    issues = []
    for config in configs:
        issues.extend(validate_seed_config(config, destination))
    return generate_validation_report(issues)
