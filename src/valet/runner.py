"""User-level commands built on the repo registry.

A :class:`Runner` lives for one invocation of valet: it loads the
registry, performs one command, and is flushed by the caller if the
command succeeded.
"""

import logging
import subprocess
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .cleanup import delete_directory, delete_repo_files
from .config import Config
from .dirs import Directories
from .entries import RepoEntry, RepoKind
from .errors import (
    NotFoundError,
    PartialFailure,
    SpawnFailure,
    ValetError,
    ValidationError,
)
from .git import GitBackend, GitCli
from .names import RepoName
from .paths import absolute_path
from .registry import Clone, Init, Register, RepoRegistry
from .utils import repo_base_name, validate_git_url

logger = logging.getLogger(__name__)

# Reported when a command run against a repo was killed by a signal
SIGNAL_EXIT_STATUS = 201


class Runner:
    def __init__(
        self,
        dirs: Directories,
        git: GitBackend,
        repos: RepoRegistry,
        config: Optional[Config] = None,
    ):
        self.dirs = dirs
        self.git = git
        self.repos = repos
        self.config = config or Config()

    @classmethod
    def load(
        cls,
        config: Optional[Config] = None,
        dirs: Optional[Directories] = None,
        git: Optional[GitBackend] = None,
    ) -> "Runner":
        config = config or Config()
        if dirs is None:
            dirs = Directories(data_dir=config.data_dir)
        if git is None:
            git = GitCli(config.git_executable)
        return cls(dirs, git, RepoRegistry.load(dirs), config)

    def _log_registered(self, name: RepoName, entry: RepoEntry):
        logger.info(f"Registered {name!r} as {entry.short_desc()}")

    def standalone_init(
        self, path: Optional[Path] = None, name: Optional[str] = None
    ) -> Tuple[RepoName, RepoEntry]:
        path = _path_or_cwd(path)
        name = name or base_name(path)
        result = self.repos.new_standalone(
            self.dirs, self.git, name, path, action=Init()
        )
        self._log_registered(*result)
        return result

    def standalone_clone(
        self,
        source: str,
        path: Optional[Path] = None,
        name: Optional[str] = None,
    ) -> Tuple[RepoName, RepoEntry]:
        _check_source(source)
        if path is None:
            path = Path.cwd() / repo_base_name(source)
        path = _path_or_cwd(path)
        name = name or base_name(path)
        result = self.repos.new_standalone(
            self.dirs, self.git, name, path, action=Clone(source)
        )
        self._log_registered(*result)
        return result

    def standalone_register(
        self, path: Optional[Path] = None, name: Optional[str] = None
    ) -> Tuple[RepoName, RepoEntry]:
        path = _path_or_cwd(path)
        name = name or base_name(path)
        result = self.repos.new_standalone(
            self.dirs, self.git, name, path, action=Register()
        )
        self._log_registered(*result)
        return result

    def standalone_deregister(
        self, repo: Optional[str] = None, by_name: bool = False
    ) -> Tuple[RepoName, RepoEntry]:
        """Forget a standalone repo, leaving its files alone.

        ``repo`` is a repo name if ``by_name`` is set, otherwise a path
        (defaulting to the current directory).
        """
        if by_name:
            if not repo:
                raise ValidationError("`--name` was specified without a value")
            name = RepoName(repo)
        else:
            name, _ = self.repos.get_by_path(self.dirs, _path_or_cwd(repo))

        entry = self.repos.deregister(name, RepoKind.STANDALONE)
        logger.info(
            f"Deregistered {entry.short_desc()}; your files have been left "
            "intact"
        )
        return name, entry

    def overlay_init(self, name: str) -> Tuple[RepoName, RepoEntry]:
        result = self.repos.new_overlay(
            self.dirs, self.git, name, action=Init(), **self._overlay_options()
        )
        self._log_registered(*result)
        return result

    def overlay_clone(
        self,
        source: str,
        name: Optional[str] = None,
        no_checkout: bool = False,
    ) -> Tuple[RepoName, RepoEntry]:
        _check_source(source)
        name = name or repo_base_name(source)
        result = self.repos.new_overlay(
            self.dirs,
            self.git,
            name,
            action=Clone(source, no_checkout=no_checkout),
            **self._overlay_options(),
        )
        self._log_registered(*result)
        return result

    def _overlay_options(self) -> Dict[str, str]:
        return {
            "excludes_dir": self.config.overlay_excludes_dir,
            "attributes_dir": self.config.overlay_attributes_dir,
        }

    def overlay_remove_bare_repo(self, name: str) -> RepoEntry:
        """Forget an overlay repo and delete its bare repository.

        Files checked out in $HOME are left intact.
        """
        entry = self.repos.deregister(name, RepoKind.OVERLAY)
        delete_directory(entry.repo_path(self.dirs, RepoName(name)))
        logger.info(
            f"Removed bare Git repo for {name!r}; your work tree files have "
            "been left intact"
        )
        return entry

    def remove(self, name: str) -> RepoEntry:
        """Forget a repo and delete all of its files."""
        entry = self.repos.remove(name)
        delete_repo_files(self.git, self.dirs, RepoName(name), entry)
        logger.info(f"Removed {name!r} ({entry.short_desc()})")
        return entry

    def run(
        self, name: str, args: Sequence[str], cd_root: bool = False
    ) -> int:
        """Run ``args`` with the environment bound to repo ``name``.

        Returns:
            The command's exit status, or ``SIGNAL_EXIT_STATUS`` if it was
            killed by a signal.
        """
        if not args:
            raise ValidationError("no command given")

        entry = self.repos.get_by_name(name)
        if entry is None:
            raise NotFoundError(
                f"no repo configured with the name {name!r}; do you need "
                "to `valet standalone register` or `valet overlay init`?"
            )

        work_tree = entry.work_tree_path(self.dirs)
        cwd = work_tree if cd_root else None
        repo = entry.open(self.git, self.dirs, RepoName(name))

        def execute(cmd: List[str], env: Dict[str, str]) -> int:
            logger.debug(f"Running command {cmd}")
            try:
                return subprocess.run(cmd, env=env, cwd=cwd).returncode
            except OSError as e:
                raise SpawnFailure(
                    f"run {cmd[0]!r}", work_tree, "unable to spawn command"
                ) from e

        code = repo.run_cmd(args, execute)
        if code < 0:
            logger.warning(f"Command was terminated by signal {-code}")
            return SIGNAL_EXIT_STATUS
        if code:
            logger.warning(f"Command returned exit code {code}")
        else:
            logger.debug("Command returned exit code 0")
        return code

    def for_each(self, args: Sequence[str], cd_root: bool = True) -> None:
        """Run ``args`` against every repo, one after another.

        A failing repo does not stop the rest.

        Raises:
            PartialFailure: If the command failed for any repo.
        """
        snapshot = [
            (name, entry.short_desc()) for name, entry in self.repos.items()
        ]
        failed = []
        for name, desc in snapshot:
            logger.info(f"Running command against {name!r} ({desc})")
            try:
                code = self.run(name, args, cd_root=cd_root)
            except ValetError as e:
                logger.error(f"failed to run command for repo {name!r}: {e}")
                failed.append(name)
                continue
            if code != 0:
                failed.append(name)

        if failed:
            raise PartialFailure(failed)

    def list(
        self, kinds: Optional[Iterable[RepoKind]] = None
    ) -> List[Tuple[RepoName, RepoEntry]]:
        """Repos in name order, optionally only those of ``kinds``."""
        wanted = set(kinds) if kinds else set(RepoKind)
        return [
            (name, entry)
            for name, entry in self.repos.items()
            if entry.kind in wanted
        ]

    def describe_path(self, name: RepoName, entry: RepoEntry) -> Path:
        return entry.repo_path(self.dirs, name)

    def flush(self) -> bool:
        logger.debug("Flushing data")
        return self.repos.flush(self.dirs)


def base_name(path: Path) -> RepoName:
    """Default repo name for ``path``: its last component."""
    if not path.name:
        raise ValidationError(f"no base name found for path {str(path)!r}")
    try:
        return RepoName(path.name)
    except ValidationError as e:
        raise ValidationError(
            f"base name for {str(path)!r} is not a valid repo name: {e}"
        ) from e


def _path_or_cwd(path) -> Path:
    """Absolute, lexically normalized ``path``; the cwd if None."""
    if path is None:
        return Path.cwd()
    return absolute_path(path)


def _check_source(source: str) -> None:
    if not source:
        raise ValidationError("no repo source given")
    if not validate_git_url(source):
        logger.warning(
            f"{source!r} does not look like a Git URL; trying it anyway"
        )
