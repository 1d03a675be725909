"""
drivesync serve - Long-running queue worker.

Consumes job payloads from the configured queue (SQS by default) and runs
each one to completion before taking the next.
"""

import asyncio
from pathlib import Path

import typer

from drivesync.cli import apply_verbose, console, fail
from drivesync.exceptions import ConfigurationError
from drivesync.utils.logging import get_logger
from drivesync.worker import Worker

logger = get_logger("drivesync.cli.serve")


def serve(
    env: str | None = typer.Option(None, help="Environment (dev, staging, prod)"),
    max_messages: int | None = typer.Option(None, "--max-messages", help="Stop after handling this many messages"),
    project_dir: Path = typer.Option(Path.cwd(), "--project-dir", "-d", help="Project directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """
    Consume the job queue until interrupted.
    """
    worker = Worker(project_dir, env=env)

    async def _serve() -> None:
        await worker.initialize()
        apply_verbose(verbose)
        await worker.serve(max_messages=max_messages)

    try:
        asyncio.run(_serve())
    except ConfigurationError as e:
        fail(str(e))
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")
    finally:
        worker.close()
