"""
Main CLI entry point.
"""

import typer

from drivesync import __version__
from drivesync.cli import run, serve, watermarks


def version_callback(value: bool):
    """Callback to display version and exit."""
    if value:
        typer.echo(f"drivesync version {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="drivesync",
    help="drivesync - Incremental Google Drive to S3 sync worker",
    add_completion=True,
)

app.command("serve")(serve.serve)
app.command("run")(run.run)
app.command("watermarks")(watermarks.watermarks)
app.command("init-db")(watermarks.init_db)


@app.callback(invoke_without_command=True)
def entrypoint(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """
    drivesync - Incremental Google Drive to S3 sync worker.

    Run 'drivesync <command> --help' for help on a specific command.
    """
    if ctx.invoked_subcommand is None and not version:
        typer.echo(ctx.get_help())
        raise typer.Exit()


def main():
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
