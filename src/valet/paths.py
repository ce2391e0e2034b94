"""Path helpers shared by the registry and the git backend."""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from .errors import WorkingDirectoryError

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def canonicalize_path(path: PathLike) -> Path:
    """Resolve ``path`` to an absolute, symlink-free path that must exist.

    Raises:
        FileNotFoundError: If the path does not exist.
    """
    return Path(path).expanduser().resolve(strict=True)


def absolute_path(path: PathLike) -> Path:
    """Make ``path`` absolute and lexically normalized without touching disk."""
    return Path(os.path.normpath(os.path.abspath(Path(path).expanduser())))


def path_exists(path: PathLike) -> bool:
    """Like ``os.path.exists`` but lets errors other than not-found through."""
    try:
        os.stat(path)
    except (FileNotFoundError, NotADirectoryError):
        return False
    return True


@contextmanager
def working_directory(path: PathLike) -> Iterator[Path]:
    """Temporarily change the process working directory.

    The previous working directory is restored on every exit path. If it
    cannot be restored, ``WorkingDirectoryError`` is raised: carrying on
    from the wrong directory would silently break relative paths for the
    rest of the process.
    """
    try:
        previous = os.getcwd()
    except OSError as e:
        raise WorkingDirectoryError(
            "failed to get current working directory path"
        ) from e

    try:
        os.chdir(path)
    except OSError as e:
        raise WorkingDirectoryError(
            f"failed to change working directory to {path}"
        ) from e

    logger.debug(f"Changed working directory to {path}")
    try:
        yield Path(path)
    finally:
        try:
            os.chdir(previous)
        except OSError as e:
            raise WorkingDirectoryError(
                f"failed to switch back to original working directory "
                f"{previous}"
            ) from e
