"""valet CLI - Command-line interface for managing your Git repos."""

import typer

from ..utils import get_version, setup_logging
from . import overlay, repos, run, standalone

# Create the main app
app = typer.Typer(
    name="valet",
    help="Keep track of the Git repos that hold your configuration.",
    add_completion=True,
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output.",
    ),
):
    """valet - manage standalone and overlay Git repos."""
    setup_logging(verbose=verbose)


# Register all commands
standalone.register(app)
overlay.register(app)
run.register(app)
repos.register(app)


@app.command()
def version():
    """Show the version of valet."""
    typer.echo(f"valet version {get_version()}")


def main():
    """Main entry point for the valet CLI."""
    app()
