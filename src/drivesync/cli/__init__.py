"""
Command line interface.
"""

import logging
from typing import NoReturn

import typer
from rich.console import Console
from rich.markup import escape

console = Console()


def fail(message: str, code: int = 1) -> NoReturn:
    """Print an error in red and exit with ``code``."""
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(code)


def apply_verbose(verbose: bool) -> None:
    if verbose:
        logger = logging.getLogger("drivesync")
        logger.setLevel(logging.DEBUG)
        for handler in logger.handlers:
            handler.setLevel(logging.DEBUG)
