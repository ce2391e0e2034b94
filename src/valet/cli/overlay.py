"""Commands for overlay repos: bare repos checked out over your home."""

from typing import Optional

import typer

from .helpers import runner_session

overlay_app = typer.Typer(
    name="overlay",
    help="Manage overlay repos.",
    no_args_is_help=True,
)


def register(app: typer.Typer) -> None:
    """Register overlay command group with the app."""
    app.add_typer(overlay_app, name="overlay")


@overlay_app.command()
def init(name: str = typer.Argument(..., help="Name of the new repo")):
    """Create a new overlay repo with your home directory as work tree."""
    with runner_session() as runner:
        repo_name, entry = runner.overlay_init(name)
    typer.echo(f"✓ Registered {repo_name} as {entry.short_desc()}")


@overlay_app.command()
def clone(
    source: str = typer.Argument(..., help="URL of the repo to clone"),
    name: Optional[str] = typer.Option(
        None, "--name", "-n", help="Repo name (default: base name of URL)"
    ),
    no_checkout: bool = typer.Option(
        False,
        "--no-checkout",
        help="Don't write the tracked files into your home directory",
    ),
):
    """Clone a repo as an overlay over your home directory.

    Files in your home directory that the clone also tracks are
    overwritten unless --no-checkout is given.

    Examples:
        valet overlay clone https://github.com/user/dotfiles.git
        valet overlay clone git@github.com:user/dotfiles --name home
    """
    with runner_session() as runner:
        repo_name, entry = runner.overlay_clone(
            source, name, no_checkout=no_checkout
        )
    typer.echo(f"✓ Registered {repo_name} as {entry.short_desc()}")


@overlay_app.command("remove-bare-repo")
def remove_bare_repo(
    name: str = typer.Argument(..., help="Name of the overlay repo"),
):
    """Delete an overlay repo's bare repo. Files in $HOME are left alone."""
    with runner_session() as runner:
        runner.overlay_remove_bare_repo(name)
    typer.echo(f"✓ Removed bare repo of {name}")
