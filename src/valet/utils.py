"""Utility functions for valet."""

import importlib.metadata
import logging
import re
import sys
from typing import Optional

LOG_FORMAT = "%(levelname)s: %(message)s"
VERBOSE_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# git@host:path, the scp-like syntax git accepts for SSH
_SCP_LIKE_URL = re.compile(r"^[\w.-]+@[\w.-]+:.+$")
_URL_SCHEMES = ("https://", "http://", "ssh://", "git://", "file://")


def setup_logging(verbose: bool = False):
    """Configure the root logger for command-line use."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=VERBOSE_LOG_FORMAT if verbose else LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def get_version() -> str:
    """Get the installed version of valet."""
    try:
        return importlib.metadata.version("valet")
    except importlib.metadata.PackageNotFoundError:
        return "(development)"


def validate_git_url(url: Optional[str]) -> bool:
    """Check that ``url`` looks like something ``git clone`` accepts."""
    if not url:
        return False
    if url.startswith(_URL_SCHEMES):
        return True
    if url.startswith(("/", "~", "./", "../")):
        return True
    return bool(_SCP_LIKE_URL.match(url))


def repo_base_name(source: str) -> str:
    """The name ``git clone`` would pick for a clone of ``source``.

    Examples:
        https://github.com/user/dotfiles.git -> dotfiles
        git@github.com:user/nvim-config -> nvim-config
    """
    base = source.rstrip("/")
    if base.endswith("/.git"):
        base = base[: -len("/.git")]
    base = re.split(r"[/:]", base)[-1]
    if base.endswith(".git"):
        base = base[: -len(".git")]
    return base
