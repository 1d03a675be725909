"""
drivesync watermarks / init-db - Inspect and prepare the watermark table.
"""

import asyncio
from pathlib import Path

import typer
from rich.markup import escape
from rich.table import Table

from drivesync.cli import apply_verbose, console, fail
from drivesync.exceptions import ConfigurationError, WatermarkError
from drivesync.sync.watermark import WatermarkRecord
from drivesync.worker import Worker


def _fmt(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value is not None else "-"


def watermarks(
    connection_id: str = typer.Argument(..., help="Connection id to list records for"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    List watermark records for a connection.
    """
    worker = Worker(project_dir, env=env)

    async def _load() -> list[WatermarkRecord]:
        store = await worker.open_store(ensure_schema=False)
        apply_verbose(verbose)
        return await asyncio.to_thread(store.load_for_connection, connection_id)

    try:
        records = asyncio.run(_load())
    except (ConfigurationError, WatermarkError) as e:
        fail(str(e))
    finally:
        worker.close()

    if not records:
        console.print(f"[dim]No watermarks for connection {connection_id}[/dim]")
        return

    table = Table(title=f"Watermarks ({len(records)})", show_header=True)
    table.add_column("Id", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Last execution time")
    table.add_column("Status")
    table.add_column("Last modified", style="dim")
    for record in records:
        status = record.last_execution_status or "-"
        style = {"Successful": "green", "Error": "red", "In Progress": "yellow"}.get(status)
        table.add_row(
            str(record.id),
            escape(record.name),
            _fmt(record.last_execution_time),
            f"[{style}]{status}[/{style}]" if style else status,
            _fmt(record.last_modified),
        )
    console.print(table)


def init_db(
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Create the watermark schema, sequence and table.
    """
    worker = Worker(project_dir, env=env)

    async def _init():
        store = await worker.open_store(ensure_schema=True)
        apply_verbose(verbose)
        return store

    try:
        store = asyncio.run(_init())
    except ConfigurationError as e:
        fail(str(e))
    finally:
        worker.close()
    console.print(f"[green]Watermark table {store.table} ready[/green]")
