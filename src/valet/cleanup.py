"""Destructive cleanup of repo files.

Kept apart from the registry: removing an entry never deletes anything by
itself, callers do that explicitly afterwards with these helpers.
"""

import logging
import shutil
from pathlib import Path

from .dirs import Directories
from .entries import RepoEntry, RepoKind
from .errors import ValetError, WorkingDirectoryError
from .git import GitBackend
from .names import RepoName

logger = logging.getLogger(__name__)


def delete_directory(path: Path) -> None:
    """Delete ``path`` and everything below it."""
    logger.debug(f"Removing {path}")
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        logger.warning(f"{path} was already gone")
    except OSError as e:
        raise ValetError(
            f"failed to delete {path}; watch out, you're on your own now!"
        ) from e


def delete_work_tree_files(
    git: GitBackend, dirs: Directories, name: RepoName, entry: RepoEntry
) -> int:
    """Delete every file an overlay repo tracks in $HOME.

    Files that cannot be deleted are logged and skipped.

    Returns:
        Number of files deleted.
    """
    try:
        files = entry.open(git, dirs, name).list_files()
    except WorkingDirectoryError:
        raise
    except ValetError as e:
        logger.warning(f"failed to list files of {name!r}: {e}")
        return 0

    deleted = 0
    for path in files:
        logger.debug(f"Removing {path}")
        try:
            path.unlink()
            deleted += 1
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"failed to remove {path}: {e}")
    return deleted


def delete_repo_files(
    git: GitBackend, dirs: Directories, name: RepoName, entry: RepoEntry
) -> None:
    """Delete a repo's files from disk.

    For an overlay repo this is its tracked files in $HOME followed by the
    bare repository; for a standalone repo it is the whole working copy.
    Call this after the entry has been removed from the registry.
    """
    if entry.kind is RepoKind.OVERLAY:
        deleted = delete_work_tree_files(git, dirs, name, entry)
        logger.info(f"Removed {deleted} tracked file(s) of {name!r}")
    delete_directory(entry.repo_path(dirs, name))
