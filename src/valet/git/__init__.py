"""Version-control backend for valet."""

from .base import GitBackend, GitRepo, GitRepoKind, OpenRepoOptions
from .shell import GitCli, GitCliRepo

__all__ = [
    "GitBackend",
    "GitCli",
    "GitCliRepo",
    "GitRepo",
    "GitRepoKind",
    "OpenRepoOptions",
]
