"""Command Line Interface for Clinic Records.

This module provides a Typer CLI for running the API server and for
administering the records database: creating the tables, loading demo
data, and printing records and statistics.

Security Impact:
    - ``info`` prints connection details without credentials
    - Patient names are printed only by ``list``, never logged
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.table import Table

from clinic_records import __version__
from clinic_records.dashboard.api.logging_config import setup_logging
from clinic_records.domain.kinds import RecordKind, get_schema
from clinic_records.domain.ports import RecordsError, StoragePort
from clinic_records.domain.record_store import RecordStore
from clinic_records.domain.records import RecordStatus
from clinic_records.domain.statistics import StatisticsAggregator
from clinic_records.domain.utils import utc_now
from clinic_records.infrastructure.settings import settings
from clinic_records.main import bootstrap_storage, create_storage_adapter

# Initialize Typer app and Rich console
app = typer.Typer(
    name="clinic-records",
    help="Clinic Records: registration and expiry tracking for clinic files",
    add_completion=False
)
console = Console()


@contextmanager
def open_storage(seed: bool = False) -> Iterator[StoragePort]:
    """Create, prepare and finally close the configured storage adapter.

    Exits with code 1 when the adapter cannot be created or initialized.
    """
    try:
        storage = create_storage_adapter(settings.db_config)
    except (RecordsError, ValueError) as e:
        console.print(f"[red]✗[/red] Failed to create storage adapter: {str(e)}")
        raise typer.Exit(code=1)

    try:
        result = bootstrap_storage(storage, seed=seed)
        if result.is_failure():
            console.print(f"[red]✗[/red] Failed to initialize storage: {result.error}")
            raise typer.Exit(code=1)
        if seed:
            console.print(f"[green]✓[/green] Inserted {result.value} demo records")
        yield storage
    finally:
        storage.close()


def _warn_if_in_memory() -> None:
    db_config = settings.db_config
    if db_config.db_type == "duckdb" and (db_config.db_path or ":memory:") == ":memory:":
        console.print("[yellow]⚠[/yellow] Using an in-memory database; set CR_DB_PATH to keep data")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: CR_HOST or 127.0.0.1)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: CR_PORT or 3001)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes (development)"),
) -> None:
    """Run the records API with uvicorn."""
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(f"[bold blue]{settings.app_name}[/bold blue] API on http://{bind_host}:{bind_port}")
    console.print(f"[dim]Database:[/dim] {settings.db_config.describe()}")
    uvicorn.run(
        "clinic_records.dashboard.api.main:app",
        host=bind_host,
        port=bind_port,
        reload=reload,
        log_level=settings.log_level.lower()
    )


@app.command("init-db")
def init_db() -> None:
    """Create the record tables if they do not exist."""
    _warn_if_in_memory()
    with open_storage():
        console.print(f"[green]✓[/green] Schema ready ({settings.db_config.describe()})")


@app.command()
def seed() -> None:
    """Insert the demo records (dates relative to now); existing ids are kept."""
    _warn_if_in_memory()
    with open_storage(seed=True):
        pass


@app.command()
def stats() -> None:
    """Print per-kind statistics."""
    with open_storage() as storage:
        result = StatisticsAggregator(storage).compute_stats()
        if result.is_failure():
            console.print(f"[red]✗[/red] Failed to compute statistics: {result.error}")
            raise typer.Exit(code=1)

        table = Table(title="Record Statistics", show_header=True, header_style="bold")
        table.add_column("Kind")
        table.add_column("Total", justify="right")
        table.add_column("This week", justify="right")
        table.add_column("Active", justify="right", style="green")
        table.add_column("Expired", justify="right", style="red")
        for kind in RecordKind:
            kind_stats = result.value.for_kind(kind)
            table.add_row(
                get_schema(kind).label,
                str(kind_stats.total),
                str(kind_stats.weekly),
                str(kind_stats.active),
                str(kind_stats.expired),
            )
        console.print(table)


@app.command("list")
def list_records(
    kind: RecordKind = typer.Argument(..., help="Record kind"),
    expired_only: bool = typer.Option(False, "--expired", help="Only show expired records"),
) -> None:
    """Print the records of one kind, newest registration first."""
    schema = get_schema(kind)
    with open_storage() as storage:
        try:
            records = RecordStore(storage, schema).find()
        except RecordsError as e:
            console.print(f"[red]✗[/red] {str(e)}")
            raise typer.Exit(code=1)

        now = utc_now()
        table = Table(title=f"{schema.label} Files", show_header=True, header_style="bold")
        table.add_column("ID")
        for field in schema.fields:
            table.add_column(field.replace("_", " ").title())
        table.add_column("Registered")
        table.add_column("Expires")
        table.add_column("Status")

        shown = 0
        for record in records:
            record_status = record.status_at(now)
            if expired_only and record_status != RecordStatus.EXPIRED:
                continue
            color = "green" if record_status == RecordStatus.ACTIVE else "red"
            row = schema.to_row(record)
            table.add_row(
                record.id,
                *(str(row[field]) for field in schema.fields),
                record.registration_date.strftime("%Y-%m-%d"),
                record.expiry_date.strftime("%Y-%m-%d"),
                f"[{color}]{record_status.value}[/{color}]",
            )
            shown += 1

        console.print(table)
        console.print(f"[dim]{shown} record(s)[/dim]")


@app.command()
def info() -> None:
    """Display configuration (credentials are never shown)."""
    console.print("[bold blue]System Information[/bold blue]\n")

    db_config = settings.db_config
    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_row("Application:", settings.app_name)
    info_table.add_row("Version:", __version__)
    info_table.add_row("Database Type:", db_config.db_type)

    if db_config.db_type == "duckdb":
        info_table.add_row("Database Path:", db_config.db_path or ":memory:")
    elif db_config.db_type == "postgresql":
        info_table.add_row("Database Host:", f"{db_config.host}:{db_config.port or 5432}")
        info_table.add_row("Database Name:", str(db_config.database))

    info_table.add_row("API Token:", "Configured" if settings.api_token else "Any non-empty token")
    info_table.add_row("CORS Origins:", ", ".join(settings.cors_origins))
    info_table.add_row("Seed On Startup:", "Enabled" if settings.seed_demo_data else "Disabled")

    console.print(info_table)


def version_callback(value: bool) -> None:
    if value:
        console.print(f"Clinic Records v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True, help="Show version information"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Clinic Records: registration and expiry tracking for clinic files."""
    setup_logging(use_json=settings.json_logs, log_level="DEBUG" if verbose else settings.log_level)


if __name__ == "__main__":
    app()
