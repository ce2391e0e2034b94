"""Commands for standalone repos: working copies at paths you choose."""

from pathlib import Path
from typing import Optional

import typer

from .helpers import fail, runner_session

standalone_app = typer.Typer(
    name="standalone",
    help="Manage standalone repos.",
    no_args_is_help=True,
)


def register(app: typer.Typer) -> None:
    """Register standalone command group with the app."""
    app.add_typer(standalone_app, name="standalone")


@standalone_app.command()
def init(
    path: Optional[Path] = typer.Argument(
        None, help="Where to create the repo (default: current directory)"
    ),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Repo name (default: base name of path)"
    ),
):
    """Create a new Git repo and start tracking it.

    Examples:
        valet standalone init ~/src/notes
        valet standalone init --name nvim
    """
    with runner_session() as runner:
        repo_name, entry = runner.standalone_init(path, name)
    typer.echo(f"✓ Registered {repo_name} as {entry.short_desc()}")


@standalone_app.command()
def clone(
    source: str = typer.Argument(..., help="URL of the repo to clone"),
    path: Optional[Path] = typer.Argument(
        None, help="Where to clone to (default: base name of the URL)"
    ),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Repo name (default: base name of path)"
    ),
):
    """Clone a Git repo and start tracking it.

    Examples:
        valet standalone clone https://github.com/user/nvim-config.git
        valet standalone clone git@github.com:user/notes ~/notes
    """
    with runner_session() as runner:
        repo_name, entry = runner.standalone_clone(source, path, name)
    typer.echo(f"✓ Registered {repo_name} as {entry.short_desc()}")


@standalone_app.command("register")
def register_repo(
    path: Optional[Path] = typer.Argument(
        None, help="Path of an existing repo (default: current directory)"
    ),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Repo name (default: base name of path)"
    ),
):
    """Start tracking a Git repo that already exists."""
    with runner_session() as runner:
        repo_name, entry = runner.standalone_register(path, name)
    typer.echo(f"✓ Registered {repo_name} as {entry.short_desc()}")


@standalone_app.command()
def deregister(
    repo: Optional[str] = typer.Argument(
        None, help="Path of the repo (default: current directory)"
    ),
    by_name: bool = typer.Option(
        False, "--name", "-n", help="Treat REPO as a repo name, not a path"
    ),
):
    """Stop tracking a standalone repo. Its files are left alone.

    Examples:
        valet standalone deregister            # The repo in this directory
        valet standalone deregister ~/notes
        valet standalone deregister --name notes
    """
    if by_name and not repo:
        fail("--name needs a repo name")

    with runner_session() as runner:
        repo_name, entry = runner.standalone_deregister(repo, by_name=by_name)
    typer.echo(f"✓ Deregistered {repo_name} ({entry.short_desc()})")
