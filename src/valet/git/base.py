"""Abstract interface over the version-control tool.

``GitBackend`` creates and probes repositories; ``GitRepo`` is a handle
bound to one repository directory and one work tree. The registry only
ever talks to these interfaces, so another implementation (for example
one built on a git library) can be dropped in without touching it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from ..errors import KindMismatchError

T = TypeVar("T")

# Receives the argument list and the environment bound to a repo.
Continuation = Callable[[List[str], Dict[str, str]], T]

EXCLUDES_FILE_CONFIG_KEY = "core.excludesFile"
ATTRIBUTES_FILE_CONFIG_KEY = "core.attributesFile"
SHOW_UNTRACKED_FILES_CONFIG_KEY = "status.showUntrackedFiles"


class GitRepoKind(Enum):
    NORMAL = "normal"
    BARE = "bare"


@dataclass(frozen=True)
class OpenRepoOptions:
    """Which repository to open, and with which work tree.

    Use :meth:`bare` for a bare repository with an explicit work tree,
    and :meth:`normal` for an ordinary working copy.
    """

    kind: GitRepoKind
    repo_path: Path
    work_tree_path: Path

    @classmethod
    def bare(cls, repo_path: Path, work_tree_path: Path) -> "OpenRepoOptions":
        return cls(GitRepoKind.BARE, Path(repo_path), Path(work_tree_path))

    @classmethod
    def normal(cls, work_tree_path: Path) -> "OpenRepoOptions":
        work_tree_path = Path(work_tree_path)
        return cls(GitRepoKind.NORMAL, work_tree_path / ".git", work_tree_path)

    @property
    def probe_path(self) -> Path:
        """The path whose repository kind must match ``kind``."""
        if self.kind is GitRepoKind.BARE:
            return self.repo_path
        return self.work_tree_path


class GitBackend(ABC):
    """Creates, probes and opens repositories."""

    @abstractmethod
    def exists(
        self, path: Path, expected_kind: GitRepoKind
    ) -> Optional[KindMismatchError]:
        """Check that a repository of ``expected_kind`` lives at ``path``.

        Returns:
            None if the expected kind was found, otherwise a
            ``KindMismatchError`` describing what was found instead
            (a ``RepoNotFoundError`` if nothing was).

        Raises:
            BackendError: If the check itself could not be performed.
        """

    def check_exists(self, path: Path, expected_kind: GitRepoKind) -> None:
        """Like :meth:`exists`, but raise the mismatch."""
        mismatch = self.exists(path, expected_kind)
        if mismatch is not None:
            raise mismatch

    @abstractmethod
    def init(self, path: Path, kind: GitRepoKind) -> None:
        """Create an empty repository of ``kind`` at ``path``."""

    @abstractmethod
    def clone(self, path: Path, source: str, kind: GitRepoKind) -> None:
        """Clone ``source`` into ``path`` as a repository of ``kind``."""

    @abstractmethod
    def open_repo(self, options: OpenRepoOptions) -> "GitRepo":
        """Open a handle on an existing repository.

        Raises:
            KindMismatchError: If the repository is missing or of the
                wrong kind.
        """


class GitRepo(ABC):
    """Handle on one repository directory paired with one work tree."""

    def __init__(self, repo_path: Path, work_tree_path: Path):
        self.repo_path = Path(repo_path)
        self.work_tree_path = Path(work_tree_path)

    @abstractmethod
    def run_cmd(self, args: Sequence[str], continuation: Continuation) -> T:
        """Bind ``args`` to this repository and hand them to ``continuation``.

        The continuation decides how to execute: with inherited stdio for
        interactive commands, or capturing output.
        """

    @abstractmethod
    def set_config_value(self, key: str, value: Optional[str]) -> None:
        """Set ``key`` in the repository config, or unset it for None."""

    @abstractmethod
    def list_files(self) -> List[Path]:
        """Absolute paths of every file tracked in the work tree."""

    @abstractmethod
    def reset(self) -> None:
        """Discard staged changes."""

    @abstractmethod
    def restore(self) -> None:
        """Repopulate the work tree from the index."""

    @abstractmethod
    def ensure_fetch_refspec(self) -> None:
        """Make sure ``origin`` fetches into remote-tracking branches."""

    def set_excludes_file(self, path: Optional[Path]) -> None:
        self.set_config_value(
            EXCLUDES_FILE_CONFIG_KEY, str(path) if path is not None else None
        )

    def set_attributes_file(self, path: Optional[Path]) -> None:
        self.set_config_value(
            ATTRIBUTES_FILE_CONFIG_KEY,
            str(path) if path is not None else None,
        )

    def hide_untracked_files(self) -> None:
        """Keep `git status` quiet about the rest of the work tree."""
        self.set_config_value(SHOW_UNTRACKED_FILES_CONFIG_KEY, "no")

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(repo={self.repo_path}, "
            f"work_tree={self.work_tree_path})"
        )
