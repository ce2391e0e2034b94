"""valet - Keep track of the Git repos that hold your configuration."""

from .cli import main
from .config import Config
from .dirs import Directories
from .entries import OverlayEntry, RepoKind, StandaloneEntry
from .errors import ValetError
from .names import RepoName
from .registry import RepoRegistry
from .runner import Runner
from .utils import get_version

__all__ = [
    "Config",
    "Directories",
    "OverlayEntry",
    "RepoKind",
    "RepoName",
    "RepoRegistry",
    "Runner",
    "StandaloneEntry",
    "ValetError",
    "get_version",
    "main",
]
