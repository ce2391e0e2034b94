"""The repo registry: every repo valet knows about, by name.

Standalone repos are persisted in the standalone repos DB; overlay repos
are whatever bare repositories live in the overlay repos directory. The
registry is loaded once per process, mutated by at most one command, and
flushed back to disk only if it changed.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from .conflict import ExistingRepo, find_conflicts
from .dirs import Directories
from .entries import (
    AppInfo,
    OverlayEntry,
    RepoEntry,
    RepoKind,
    StandaloneEntry,
)
from .errors import (
    ConflictError,
    NameConflictError,
    NotFoundError,
    ValetError,
    ValidationError,
    WrongRepoKindError,
)
from .git import GitBackend
from .names import RepoName
from .paths import canonicalize_path
from .store import load_standalone_repos, save_standalone_repos

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Init:
    """Create a new, empty repository."""

    def apply(self, git: GitBackend, path: Path, kind: RepoKind) -> None:
        git.init(path, kind.git_kind)


@dataclass(frozen=True)
class Clone:
    """Clone ``source``; overlays skip populating $HOME with ``no_checkout``."""

    source: str
    no_checkout: bool = False

    def apply(self, git: GitBackend, path: Path, kind: RepoKind) -> None:
        git.clone(path, self.source, kind.git_kind)


@dataclass(frozen=True)
class Register:
    """Adopt a repository that already exists."""

    def apply(self, git: GitBackend, path: Path, kind: RepoKind) -> None:
        git.check_exists(path, kind.git_kind)
        logger.debug(f"Validated that a {kind.value} repo exists at {path}")


class RepoRegistry:
    """Mapping of repo names to entries, plus a dirty flag.

    Iteration is in name order.
    """

    def __init__(self, repos: Optional[Dict[RepoName, RepoEntry]] = None):
        self._repos: Dict[RepoName, RepoEntry] = dict(repos or {})
        self._dirty = False

    @classmethod
    def load(cls, dirs: Directories) -> "RepoRegistry":
        """Load standalone repos from disk, then scan for overlay repos.

        Unusable items in the overlay repos directory are skipped with a
        warning.

        Raises:
            PersistenceError: If the standalone repos DB is malformed.
            NameConflictError: If an overlay repo has the same name as a
                standalone repo.
        """
        repos: Dict[RepoName, RepoEntry] = dict(
            load_standalone_repos(dirs.standalone_db_path())
        )

        overlay_root = dirs.overlay_root_dir()
        logger.debug(f"Overlay repos path: {overlay_root}")
        for name in _scan_overlay_root(overlay_root):
            overlay = OverlayEntry()
            existing = repos.get(name)
            if existing is not None:
                raise NameConflictError(
                    name, existing.short_desc(), overlay.short_desc()
                )
            logger.debug(f"Found overlay repo {name!r}")
            repos[name] = overlay

        return cls(repos)

    @property
    def dirty(self) -> bool:
        return self._dirty

    def __len__(self) -> int:
        return len(self._repos)

    def __contains__(self, name: object) -> bool:
        return name in self._repos

    def __iter__(self) -> Iterator[RepoName]:
        return iter(sorted(self._repos))

    def items(self) -> List[Tuple[RepoName, RepoEntry]]:
        return [(name, self._repos[name]) for name in self]

    def names(self) -> List[RepoName]:
        return list(self)

    def get_by_name(self, name: str) -> Optional[RepoEntry]:
        """Exact lookup; no normalization of ``name``."""
        return self._repos.get(name)

    def require(self, name: str) -> RepoEntry:
        entry = self.get_by_name(name)
        if entry is None:
            raise NotFoundError(
                f"{name!r} is not a repo name in the current configuration"
            )
        return entry

    def get_by_path(
        self, dirs: Directories, path: Path
    ) -> Tuple[RepoName, RepoEntry]:
        """Find the repo rooted at ``path``; the first match wins."""
        path = _canonical_target(path)

        for name, entry in self.items():
            if entry.repo_path(dirs, name) == path:
                return name, entry
        raise NotFoundError(
            f"{str(path)!r} is not a path associated with any repo in the "
            "current configuration"
        )

    def existing_repos(self, dirs: Directories) -> Iterator[ExistingRepo]:
        for name, entry in self.items():
            yield ExistingRepo(
                name=name,
                path=entry.repo_path(dirs, name),
                kind=entry.kind,
                desc=entry.short_desc(),
            )

    def check_conflicts(
        self, dirs: Directories, name: RepoName, entry: RepoEntry
    ) -> None:
        """Raise ``ConflictError`` listing every entry ``entry`` collides with."""
        path = entry.repo_path(dirs, name)
        conflicts = find_conflicts(name, path, self.existing_repos(dirs))
        if conflicts:
            raise ConflictError(conflicts)

    def register_new(
        self,
        dirs: Directories,
        git: GitBackend,
        name: str,
        entry: RepoEntry,
        action,
    ) -> Tuple[RepoName, RepoEntry]:
        """Check for conflicts, run ``action``, then insert ``entry``.

        Nothing about the registry changes unless ``action`` succeeds.

        Args:
            action: An :class:`Init`, :class:`Clone` or :class:`Register`.

        Raises:
            ValidationError: If ``name`` is not a valid repo name.
            ConflictError: If the name or path is already taken.
            BackendError: If ``action`` fails.
        """
        name = RepoName(name)
        self.check_conflicts(dirs, name, entry)

        path = entry.repo_path(dirs, name)
        action.apply(git, path, entry.kind)

        return self._insert(name, entry)

    def _insert(
        self, name: RepoName, entry: RepoEntry
    ) -> Tuple[RepoName, RepoEntry]:
        assert name not in self._repos, f"{name!r} inserted twice"
        self._repos[name] = entry
        self._dirty = True
        return name, entry

    def new_standalone(
        self,
        dirs: Directories,
        git: GitBackend,
        name: str,
        path: Path,
        app_info: Optional[AppInfo] = None,
        action=Init(),
    ) -> Tuple[RepoName, RepoEntry]:
        """Add a standalone repo at ``path``.

        For :class:`Init` and :class:`Clone` the target directory is
        created first (its parent must exist), and removed again if it was
        created here and the repo could not be added.
        """
        RepoName.validate(name)
        path = Path(path).expanduser()

        if isinstance(action, Register):
            entry = StandaloneEntry(_canonical_target(path), app_info)
            return self.register_new(dirs, git, name, entry, action)

        created = _create_target_dir(path)
        try:
            entry = StandaloneEntry(_canonical_target(path), app_info)
            return self.register_new(dirs, git, name, entry, action)
        except ValetError:
            if created:
                _remove_if_empty(path)
            raise

    def new_overlay(
        self,
        dirs: Directories,
        git: GitBackend,
        name: str,
        action=Init(),
        excludes_dir: str = ".gitignore.d",
        attributes_dir: str = ".gitattributes.d",
    ) -> Tuple[RepoName, RepoEntry]:
        """Add an overlay repo: a bare repo whose work tree is $HOME.

        After a clone, staged changes are reset and, unless the clone asks
        for ``no_checkout``, tracked files are restored into $HOME. The new
        repo then gets its own excludes and attributes files under $HOME.
        Failures after the repo has been registered are only warnings.
        """
        name, entry = self.register_new(
            dirs, git, name, OverlayEntry(), action
        )

        try:
            repo = entry.open(git, dirs, name)
        except ValetError as e:
            logger.warning(f"failed to open new overlay repo {name!r}: {e}")
            return name, entry

        if isinstance(action, Clone):
            try:
                repo.reset()
                if not action.no_checkout:
                    repo.restore()
            except ValetError as e:
                logger.warning(f"failed to populate work tree: {e}")
            try:
                repo.ensure_fetch_refspec()
            except ValetError as e:
                logger.warning(f"failed to configure fetch refspec: {e}")

        home = dirs.home_dir()
        tweaks = [
            (
                "excludes file",
                repo.set_excludes_file,
                home / excludes_dir / name,
            ),
            (
                "attributes file",
                repo.set_attributes_file,
                home / attributes_dir / name,
            ),
        ]
        for what, setter, value in tweaks:
            try:
                setter(value)
            except ValetError as e:
                logger.warning(f"failed to set Git {what}: {e}")
        try:
            repo.hide_untracked_files()
        except ValetError as e:
            logger.warning(f"failed to hide untracked files: {e}")

        return name, entry

    def remove(self, name: str) -> RepoEntry:
        """Remove and return the entry for ``name``.

        Only the registry changes; files on disk are left alone.
        """
        if name not in self._repos:
            raise NotFoundError(
                f"no repo with the name {name!r} is configured"
            )
        entry = self._repos.pop(name)
        self._dirty = True
        return entry

    def deregister(self, name: str, kind: RepoKind) -> RepoEntry:
        """Like :meth:`remove`, but only for a repo of ``kind``."""
        entry = self.require(name)
        if entry.kind is not kind:
            raise WrongRepoKindError(
                f"repo {name!r} is not a {kind.value} repo; it is a "
                f"{entry.short_desc()}"
            )
        return self.remove(name)

    def flush(self, dirs: Directories) -> bool:
        """Persist standalone entries if anything changed.

        Returns:
            True if the database was written.
        """
        if not self._dirty:
            return False

        standalone = {
            name: entry
            for name, entry in self._repos.items()
            if isinstance(entry, StandaloneEntry)
        }
        save_standalone_repos(dirs.standalone_db_path(), standalone)
        self._dirty = False
        return True

    def __repr__(self) -> str:
        return f"RepoRegistry(repos={len(self)}, dirty={self._dirty})"


def _scan_overlay_root(overlay_root: Path) -> List[RepoName]:
    try:
        items = sorted(os.scandir(overlay_root), key=lambda item: item.name)
    except OSError as e:
        logger.warning(
            f"failed to read overlay repo dirs from {overlay_root}: {e}"
        )
        return []

    names = []
    for item in items:
        try:
            name = RepoName(item.name)
        except ValidationError as e:
            logger.warning(
                f"skipping overlay repo dir item {item.name!r}, which is "
                f"not a valid repo name: {e}"
            )
            continue
        try:
            is_dir = item.is_dir()
        except OSError as e:
            logger.warning(
                f"failed to read overlay repo dir item {item.name!r}: {e}"
            )
            continue
        if not is_dir:
            logger.warning(
                f"skipping overlay repo dir item {item.name!r}, which does "
                "not appear to be a directory"
            )
            continue
        names.append(name)
    return names


def _canonical_target(path: Path) -> Path:
    try:
        return canonicalize_path(path)
    except (FileNotFoundError, NotADirectoryError) as e:
        raise NotFoundError(f"{path} does not exist") from e
    except OSError as e:
        raise ValetError(f"failed to canonicalize path {path}: {e}") from e


def _create_target_dir(path: Path) -> bool:
    """Create ``path`` unless it exists; True if it was created here."""
    parent = path.parent
    if str(parent) not in ("", ".") and not parent.is_dir():
        raise NotFoundError(f"parent of {path} is not a directory")
    try:
        path.mkdir()
    except FileExistsError:
        if not path.is_dir():
            raise ValetError(f"{path} exists and is not a directory")
        return False
    except OSError as e:
        raise ValetError(
            f"failed to create target directory {path}: {e}"
        ) from e
    return True


def _remove_if_empty(path: Path) -> None:
    try:
        path.rmdir()
        logger.debug(f"Removed directory {path} created for failed repo")
    except OSError as e:
        logger.warning(f"leaving {path} in place: {e}")
