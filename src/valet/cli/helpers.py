"""Shared helper functions for CLI commands."""

import logging
from contextlib import contextmanager
from typing import Iterator, NoReturn

import typer

from ..config import Config, get_config_path
from ..errors import ValetError
from ..runner import Runner

logger = logging.getLogger(__name__)


def fail(error) -> NoReturn:
    """Report ``error`` on stderr and exit with status 1."""
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1)


def get_config() -> Config:
    """Load config from ~/.valet.yaml or ~/.valet.yml."""
    try:
        return Config(get_config_path())
    except ValetError as e:
        fail(e)


@contextmanager
def runner_session() -> Iterator[Runner]:
    """Yield a loaded Runner and flush it if the block succeeds.

    valet errors raised inside the block are reported and turned into
    exit status 1; nothing is flushed in that case.
    """
    config = get_config()
    try:
        runner = Runner.load(config)
    except ValetError as e:
        fail(e)

    try:
        yield runner
        runner.flush()
    except ValetError as e:
        logger.debug("Command failed", exc_info=True)
        fail(e)
