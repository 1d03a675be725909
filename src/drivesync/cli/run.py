"""
drivesync run - Run a single job payload.
"""

import asyncio
from pathlib import Path

import typer
from rich.table import Table

from drivesync.cli import apply_verbose, console, fail
from drivesync.exceptions import ConfigurationError, JobParseError
from drivesync.intake.job import parse_job
from drivesync.types import SyncSummary
from drivesync.worker import Worker


def summary_table(summary: SyncSummary) -> Table:
    job = summary.job
    table = Table(title=f"{job.kind.name} {job.root_folder_id} (connection {job.connection_id})", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Folders", str(summary.folders))
    table.add_row("Listed", str(summary.listed))
    table.add_row("Created", f"[green]{summary.created}[/green]")
    table.add_row("Updated", f"[green]{summary.updated}[/green]")
    table.add_row("Skipped", f"[dim]{summary.skipped}[/dim]")
    table.add_row("Unsupported", f"[dim]{summary.unsupported}[/dim]")
    errors = f"[red]{summary.errors}[/red]" if summary.errors else "0"
    table.add_row("Errors", errors)
    return table


def run(
    payload: str | None = typer.Argument(None, help="Job payload JSON"),
    file: Path | None = typer.Option(None, "--file", "-f", help="Read the payload from a file"),
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Run one CREATE or SYNC job and print its summary.

    Exits 1 if the job recorded any errors.
    """
    if file is not None:
        try:
            payload = file.read_text()
        except OSError as e:
            fail(f"Cannot read {file}: {e}")
    if not payload:
        fail("Provide a job payload or --file", code=2)

    try:
        job = parse_job(payload)
    except JobParseError as e:
        fail(str(e), code=2)

    worker = Worker(project_dir, env=env)

    async def _run() -> SyncSummary:
        await worker.initialize()
        apply_verbose(verbose)
        return await worker.runner.run(job)

    try:
        summary = asyncio.run(_run())
    except ConfigurationError as e:
        fail(str(e))
    finally:
        worker.close()

    console.print(summary_table(summary))
    if verbose and summary.outputs:
        for location in summary.outputs:
            console.print(f"  [dim]{location}[/dim]")
    if summary.errors:
        raise typer.Exit(1)
