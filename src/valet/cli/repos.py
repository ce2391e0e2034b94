"""Commands for inspecting and removing tracked repos."""

from enum import Enum
from typing import List, Optional

import typer

from ..entries import RepoKind
from .helpers import runner_session


class KindFilter(str, Enum):
    ALL = "all"
    STANDALONE = "standalone"
    OVERLAY = "overlay"


class ListFormat(str, Enum):
    FLAT = "flat"
    GROUP_BY_KIND = "group-by-kind"


def register(app: typer.Typer) -> None:
    """Register repo listing and removal commands with the app."""
    app.command("list")(list_repos)
    app.command()(remove)


def selected_kinds(filters: Optional[List[KindFilter]]) -> List[RepoKind]:
    """Map command-line kind filters to repo kinds; nothing means all."""
    if not filters or KindFilter.ALL in filters:
        return list(RepoKind)
    return [RepoKind(f.value) for f in filters]


def list_repos(
    kinds: Optional[List[KindFilter]] = typer.Argument(
        None, help="Kinds of repo to list (default: all)"
    ),
    output_format: ListFormat = typer.Option(
        ListFormat.FLAT, "--format", "-f", help="How to lay out the list"
    ),
):
    """List tracked repos and where they live.

    Examples:
        valet list
        valet list overlay
        valet list --format group-by-kind
    """
    wanted = selected_kinds(kinds)
    with runner_session() as runner:
        listed = [
            (name, entry, runner.describe_path(name, entry))
            for name, entry in runner.list(wanted)
        ]

    if output_format is ListFormat.FLAT:
        width = max((len(name) for name, _, _ in listed), default=0)
        for name, entry, path in listed:
            typer.echo(f"{name:<{width}}  {entry.kind.value:<10}  {path}")
        return

    for kind in wanted:
        group = [
            (name, path) for name, entry, path in listed if entry.kind is kind
        ]
        typer.echo(f"{kind.value.capitalize()} repos:")
        if not group:
            typer.echo("  (none)")
        for name, path in group:
            typer.echo(f"  {name}  {path}")


def remove(
    name: str = typer.Argument(..., help="Name of the repo to remove"),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Don't ask for confirmation"
    ),
):
    """Stop tracking a repo AND delete its files.

    For an overlay repo this deletes every file it tracks in your home
    directory, then the bare repo. For a standalone repo it deletes the
    whole working copy.
    """
    with runner_session() as runner:
        entry = runner.repos.require(name)
        if not yes:
            if not typer.confirm(
                f"Delete {name} ({entry.short_desc()}) and all of its files?"
            ):
                typer.echo("Cancelled.")
                return
        runner.remove(name)
    typer.echo(f"✓ Removed {name}")
