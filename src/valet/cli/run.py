"""Commands that run programs against tracked repos."""

from typing import List

import typer

from .helpers import runner_session


def register(app: typer.Typer) -> None:
    """Register run commands with the app."""
    app.command()(run)
    app.command("for-each")(for_each)


def run(
    name: str = typer.Argument(..., help="Name of the repo"),
    command: List[str] = typer.Argument(
        ..., help="Command to run, after `--`"
    ),
    cd_root: bool = typer.Option(
        False, "--cd-root", help="Run from the repo's work tree root"
    ),
):
    """Run a command with GIT_DIR and GIT_WORK_TREE set for a repo.

    Exits with the command's exit status.

    Examples:
        valet run home -- git status
        valet run --cd-root notes -- ls -a
    """
    with runner_session() as runner:
        code = runner.run(name, command, cd_root=cd_root)
    raise typer.Exit(code)


def for_each(
    command: List[str] = typer.Argument(
        ..., help="Command to run, after `--`"
    ),
    cd_root: bool = typer.Option(
        True,
        "--cd-root/--no-cd-root",
        help="Run from each repo's work tree root",
    ),
):
    """Run a command against every repo in turn.

    Examples:
        valet for-each -- git status --short
        valet for-each --no-cd-root -- git fetch
    """
    with runner_session() as runner:
        runner.for_each(command, cd_root=cd_root)
