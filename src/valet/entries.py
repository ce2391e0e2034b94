"""Repo entries: what the registry knows about each named repo."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from .dirs import Directories
from .git import GitBackend, GitRepo, GitRepoKind, OpenRepoOptions
from .names import RepoName


class RepoKind(Enum):
    STANDALONE = "standalone"
    OVERLAY = "overlay"

    @property
    def git_kind(self) -> GitRepoKind:
        if self is RepoKind.OVERLAY:
            return GitRepoKind.BARE
        return GitRepoKind.NORMAL


@dataclass(frozen=True)
class AppInfo:
    """Identifies the application a standalone repo holds configuration for."""

    qualifier: str
    organization: str
    application: str

    def to_dict(self) -> dict:
        return {
            "qualifier": self.qualifier,
            "organization": self.organization,
            "application": self.application,
        }


@dataclass(frozen=True)
class StandaloneEntry:
    """An ordinary working copy at an explicit, canonical path."""

    path: Path
    app_info: Optional[AppInfo] = None

    kind = RepoKind.STANDALONE

    def repo_path(self, dirs: Directories, name: RepoName) -> Path:
        return self.path

    def work_tree_path(self, dirs: Directories) -> Path:
        return self.path

    def short_desc(self) -> str:
        return f"standalone repo at {self.path}"

    def open_options(self, dirs: Directories, name: RepoName) -> OpenRepoOptions:
        return OpenRepoOptions.normal(self.path)

    def open(self, git: GitBackend, dirs: Directories, name: RepoName) -> GitRepo:
        return git.open_repo(self.open_options(dirs, name))


@dataclass(frozen=True)
class OverlayEntry:
    """A bare repository in valet's data directory, checked out over $HOME.

    Its paths are always derived from the repo name and ``dirs``.
    """

    kind = RepoKind.OVERLAY

    def repo_path(self, dirs: Directories, name: RepoName) -> Path:
        return dirs.overlay_root_dir() / name

    def work_tree_path(self, dirs: Directories) -> Path:
        return dirs.home_dir()

    def short_desc(self) -> str:
        return "overlay repo"

    def open_options(self, dirs: Directories, name: RepoName) -> OpenRepoOptions:
        return OpenRepoOptions.bare(
            self.repo_path(dirs, name), self.work_tree_path(dirs)
        )

    def open(self, git: GitBackend, dirs: Directories, name: RepoName) -> GitRepo:
        return git.open_repo(self.open_options(dirs, name))


RepoEntry = Union[StandaloneEntry, OverlayEntry]
