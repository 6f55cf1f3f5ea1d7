"""
Command-line interface for the CSV seeder.

Provides commands for:
- Seeding one table from one CSV file
- Seeding every table listed in a JSON manifest
- Pre-flight checks of a manifest against the database
- Inspecting seeded tables
"""

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from seeder.config import SeedConfig, load_manifest
from seeder.destination import SQLiteDestination, initialize_database
from seeder.exceptions import ConfigurationError
from seeder.hashing import make_bcrypt_hasher, sha256_hasher
from seeder.log import setup_logging
from seeder.seeder import CsvSeeder, SeedResult, seed_all
from seeder.validators import validate_all
from seeder_app.services.query import get_table_rows, list_tables

# Initialize Typer app
app = typer.Typer(
    name="csv-seeder",
    help="Seed database tables from CSV files",
    add_completion=False
)

console = Console()


@app.callback()
def main(
    log_level: str = typer.Option(
        default="WARNING",
        help="Log level (DEBUG, INFO, WARNING, ERROR)"
    ),
    json_logs: bool = typer.Option(
        default=False,
        help="Emit log records as JSON lines"
    )
):
    """Seed database tables from CSV files."""
    setup_logging(log_level, json_format=json_logs)


def parse_mapping_options(values: Optional[list[str]]) -> dict[int, str]:
    """Parse repeated --map POSITION=FIELD options into a mapping."""
    mapping = {}
    for value in values or []:
        position, sep, fieldname = value.partition("=")
        if not sep or not fieldname.strip():
            raise typer.BadParameter(f"Expected POSITION=FIELD, got: {value}", param_hint="--map")
        try:
            mapping[int(position)] = fieldname.strip()
        except ValueError:
            raise typer.BadParameter(f"Position must be an integer, got: {position}", param_hint="--map")
    return mapping


def _print_result(result: SeedResult) -> None:
    table = Table(title=f"Seed: {result.table}")
    table.add_column("File", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Prepared", justify="right", style="magenta")
    table.add_column("Inserted", justify="right", style="green")
    table.add_column("Batches", justify="right")
    table.add_column("Failed", justify="right", style="red")
    table.add_row(
        Path(result.filename).name,
        result.status,
        str(result.rows_prepared),
        str(result.rows_inserted),
        str(result.batches),
        str(len(result.failures)),
    )
    console.print(table)

    for failure in result.failures:
        console.print(f"  [red]Batch {failure.batch} ({failure.kind}):[/red] {failure.message}")


@app.command()
def seed(
    table: str = typer.Argument(..., help="Destination table"),
    filename: str = typer.Argument(..., help="CSV file (plain or gzip-compressed)"),
    db: str = typer.Option(
        default="db/app.sqlite",
        help="Path to SQLite database"
    ),
    schema: Optional[str] = typer.Option(
        default=None,
        help="Optional schema.sql to apply before seeding"
    ),
    delimiter: str = typer.Option(
        default=",",
        help="CSV field delimiter"
    ),
    offset: int = typer.Option(
        default=0,
        help="Number of rows to skip at the start of the CSV"
    ),
    trim: bool = typer.Option(
        default=False,
        help="Trim leading/trailing whitespace from values"
    ),
    timestamps: bool = typer.Option(
        default=False,
        help="Set created_at and updated_at on every row"
    ),
    hash_fields: Optional[list[str]] = typer.Option(
        None,
        "--hash",
        help="Field to hash before insert (repeatable, default: password)"
    ),
    no_hash: bool = typer.Option(
        False,
        "--no-hash",
        help="Do not hash any field"
    ),
    salted: bool = typer.Option(
        default=False,
        help="Use salted bcrypt password hashes instead of SHA256"
    ),
    chunk_size: int = typer.Option(
        default=50,
        help="Rows per INSERT"
    ),
    mapping: Optional[list[str]] = typer.Option(
        None,
        "--map",
        help="Explicit mapping POSITION=FIELD (repeatable). Disables title row detection"
    )
):
    """
    Seed TABLE from FILENAME.

    Without --map the first row (after --offset) is read as the title row and
    only columns that exist on TABLE are imported.

    Example:
        csv-seeder seed users seeds/users.csv --db db/app.sqlite --hash password
    """
    try:
        if no_hash:
            hashable = []
        elif hash_fields:
            hashable = list(hash_fields)
        else:
            hashable = ["password"]

        config = SeedConfig(
            table=table,
            filename=filename,
            csv_delimiter=delimiter,
            offset_rows=offset,
            should_trim=trim,
            timestamps=timestamps,
            mapping=parse_mapping_options(mapping),
            hashable=hashable,
            insert_chunk_size=chunk_size,
        )
    except ConfigurationError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(2)

    console.print(f"\n[bold blue]Seeding[/bold blue] {table} [bold blue]from[/bold blue] {filename}")
    console.print(f"[bold blue]Target database:[/bold blue] {db}\n")

    try:
        if schema:
            initialize_database(db, schema).close()

        hasher = make_bcrypt_hasher() if salted else sha256_hasher
        with SQLiteDestination(db) as destination:
            result = CsvSeeder(config, destination, hasher=hasher).run(collect_rows=False)

        if not result.source_available:
            console.print(f"[bold red]Error:[/bold red] CSV {filename} does not exist or is not readable")
            sys.exit(1)

        _print_result(result)

        if result.degenerate:
            console.print(f"\n[bold yellow]⚠ No CSV columns match table {table}; nothing was seeded[/bold yellow]")
        if not result.ok:
            sys.exit(1)

        console.print("\n[bold green]✓ Seeding complete[/bold green]\n")

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@app.command("seed-all")
def seed_all_command(
    manifest: str = typer.Argument(..., help="Path to JSON seed manifest"),
    db: Optional[str] = typer.Option(
        default=None,
        help="SQLite database (overrides the manifest's database)"
    ),
    schema: Optional[str] = typer.Option(
        default=None,
        help="Optional schema.sql to apply before seeding"
    ),
    output_report: Optional[str] = typer.Option(
        default=None,
        help="Path to write JSON seeding report"
    ),
    salted: bool = typer.Option(
        default=False,
        help="Use salted bcrypt password hashes instead of SHA256"
    )
):
    """
    Seed every table listed in MANIFEST, in order.

    Example:
        csv-seeder seed-all seeds/manifest.json --output-report seed_report.json
    """
    try:
        seed_manifest = load_manifest(manifest)
        database = db or seed_manifest.database
        if not database:
            console.print("[bold red]Error:[/bold red] No database given (use --db or set \"database\" in the manifest)")
            sys.exit(2)

        console.print(f"\n[bold blue]Seeding from manifest:[/bold blue] {manifest}")
        console.print(f"[bold blue]Target database:[/bold blue] {database}\n")

        if schema:
            initialize_database(database, schema).close()

        hasher = make_bcrypt_hasher() if salted else sha256_hasher
        with SQLiteDestination(database, connections=seed_manifest.connections) as destination:
            report = seed_all(seed_manifest.seeds, destination, hasher=hasher)

        if output_report:
            with open(output_report, "w") as f:
                json.dump(report, f, indent=2)

        table = Table(title="Seeded Tables")
        table.add_column("Table", style="cyan")
        table.add_column("File", style="dim")
        table.add_column("Status", style="bold")
        table.add_column("Inserted", justify="right", style="green")
        table.add_column("SHA256", style="dim")

        for info in report["seeded"]:
            sha = (info["sha256"] or "")[:16]
            table.add_row(info["table"], Path(info["filename"]).name, info["status"], str(info["rows_inserted"]), sha)

        console.print(table)

        if report["errors"]:
            console.print("\n[bold red]Seeding errors:[/bold red]")
            for error in report["errors"]:
                console.print(f"  [red]{error['table']}:[/red] {error['error']}")

        console.print(f"\n[bold]Status:[/bold] {report['status']}")
        if output_report:
            console.print(f"[dim]Full report written to: {output_report}[/dim]\n")

        if report["status"] != "success":
            sys.exit(1)

    except (FileNotFoundError, ConfigurationError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@app.command()
def check(
    manifest: str = typer.Argument(..., help="Path to JSON seed manifest"),
    db: Optional[str] = typer.Option(
        default=None,
        help="SQLite database (overrides the manifest's database)"
    )
):
    """
    Check a manifest against the database without writing anything.

    Validates:
    - Source files exist and are readable
    - Destination tables exist
    - Mapped and title-row columns exist on the tables
    - Timestamp columns exist when timestamps are enabled
    """
    try:
        seed_manifest = load_manifest(manifest)
        database = db or seed_manifest.database
        if not database or (database != ":memory:" and not Path(database).exists()):
            console.print(f"[bold red]Error:[/bold red] Database not found: {database}")
            sys.exit(1)

        with SQLiteDestination(database, connections=seed_manifest.connections) as destination:
            report = validate_all(seed_manifest.seeds, destination)

        console.print(f"[bold]Status:[/bold] {report['status']}")
        console.print(f"[bold]Errors:[/bold] {report['error_count']}")
        console.print(f"[bold]Warnings:[/bold] {report['warning_count']}\n")

        if report["errors"]:
            console.print("[bold red]Errors:[/bold red]")
            for error in report["errors"]:
                console.print(f"  • [{error['table']}.{error['column']}] {error['issue']}: {error['details']}")

        if report["warnings"]:
            console.print("\n[bold yellow]Warnings:[/bold yellow]")
            for warning in report["warnings"]:
                console.print(f"  • [{warning['table']}.{warning['column']}] {warning['issue']}: {warning['details']}")

        if report["status"] == "errors":
            console.print("\n[bold red]✗ Validation failed[/bold red]\n")
            sys.exit(1)

        console.print("\n[bold green]✓ All checks passed[/bold green]\n")

    except (FileNotFoundError, ConfigurationError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@app.command()
def show(
    table: Optional[str] = typer.Argument(None, help="Table to display (omit to list tables)"),
    db: str = typer.Option(
        default="db/app.sqlite",
        help="Path to SQLite database"
    ),
    limit: int = typer.Option(
        default=20,
        help="Maximum number of rows to display"
    )
):
    """
    Display seeded rows, or list tables with row counts.

    Example:
        csv-seeder show users --limit 5
    """
    try:
        if table is None:
            tables = list_tables(db)
            if not tables:
                console.print("[yellow]No tables found in database[/yellow]")
                return

            listing = Table(title=f"Tables ({len(tables)} total)")
            listing.add_column("Table", style="cyan", no_wrap=True)
            listing.add_column("Rows", justify="right", style="magenta")
            for info in tables:
                listing.add_row(info["table"], str(info["rows"]))
            console.print(listing)
            return

        df = get_table_rows(table, db, limit=limit)
        if df.empty:
            console.print(f"[yellow]No rows in {table}[/yellow]")
            return

        rows = Table(title=f"{table} (first {len(df)} rows)")
        for column in df.columns:
            rows.add_column(str(column))
        for record in df.itertuples(index=False):
            rows.add_row(*["" if value is None else str(value) for value in record])
        console.print(rows)

    except FileNotFoundError:
        console.print(f"[bold red]Error:[/bold red] Database not found: {db}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)


@app.command()
def version():
    """Display version information."""
    from seeder_app import __version__ as app_version
    console.print(f"\n[bold]CSV Seeder[/bold]")
    console.print(f"Version: {app_version}")
    console.print(f"Python: {sys.version.split()[0]}\n")


if __name__ == "__main__":
    app()
