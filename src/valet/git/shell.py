"""Git backend that shells out to the ``git`` executable."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..errors import (
    BackendError,
    EncodingFailure,
    KindMismatchError,
    RepoNotFoundError,
    SpawnFailure,
    ToolFailure,
)
from ..paths import path_exists, working_directory
from .base import (
    Continuation,
    GitBackend,
    GitRepo,
    GitRepoKind,
    OpenRepoOptions,
    T,
)

logger = logging.getLogger(__name__)

GIT_DIR_ENV = "GIT_DIR"
GIT_WORK_TREE_ENV = "GIT_WORK_TREE"

# git exits with this status for "fatal" errors such as a missing repository
FATAL_EXIT_STATUS = 128
NOT_A_REPO_MESSAGE = "not a git repository"

# `git config --unset` exits with this status if the key was not set
CONFIG_KEY_NOT_SET_STATUS = 5

FETCH_REFSPEC = "+refs/heads/*:refs/remotes/origin/*"


def _unbound_env() -> Dict[str, str]:
    """Process environment without any inherited repository binding."""
    env = os.environ.copy()
    env.pop(GIT_DIR_ENV, None)
    env.pop(GIT_WORK_TREE_ENV, None)
    return env


def _decode(output: bytes, operation: str, path: Path, channel: str) -> str:
    try:
        return output.decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingFailure(
            operation, path, f"failed to parse git's {channel} as UTF-8"
        ) from e


def _spawn(
    args: List[str],
    operation: str,
    path: Path,
    env: Dict[str, str],
    capture: bool = True,
    cwd: Optional[Path] = None,
) -> subprocess.CompletedProcess:
    logger.debug(f"Running {args}")
    try:
        return subprocess.run(
            args,
            capture_output=capture,
            env=env,
            cwd=str(cwd) if cwd is not None else None,
            check=False,
        )
    except OSError as e:
        raise SpawnFailure(operation, path, "unable to spawn command") from e


def _check(
    result: subprocess.CompletedProcess, operation: str, path: Path
) -> subprocess.CompletedProcess:
    if result.returncode != 0:
        stderr = result.stderr or b""
        raise ToolFailure(
            operation,
            path,
            result.returncode,
            stderr.decode("utf-8", errors="replace"),
        )
    return result


class GitCli(GitBackend):
    """Runs the system git executable for every operation."""

    def __init__(self, executable: str = "git"):
        self.executable = executable

    def exists(
        self, path: Path, expected_kind: GitRepoKind
    ) -> Optional[KindMismatchError]:
        path = Path(path)
        operation = "check that a Git repo exists"

        try:
            found = path_exists(path)
        except OSError as e:
            raise BackendError(operation, path, str(e)) from e
        if not found:
            return RepoNotFoundError(path, expected_kind)

        env = _unbound_env()
        # Keep the "not a git repository" message stable
        env["LC_ALL"] = "C"
        result = _spawn(
            [
                self.executable,
                "-C",
                str(path),
                "rev-parse",
                "--is-bare-repository",
            ],
            operation,
            path,
            env,
        )
        stderr = _decode(result.stderr, operation, path, "stderr")

        if (
            result.returncode == FATAL_EXIT_STATUS
            and NOT_A_REPO_MESSAGE in stderr
        ):
            return RepoNotFoundError(path, expected_kind)
        _check(result, operation, path)

        answer = _decode(result.stdout, operation, path, "stdout").strip()
        if answer == "true":
            actual = GitRepoKind.BARE
        elif answer == "false":
            actual = GitRepoKind.NORMAL
        else:
            raise BackendError(
                operation,
                path,
                f"failed to parse `rev-parse` response {answer!r} "
                "as a boolean literal",
            )

        if actual is expected_kind:
            return None
        return KindMismatchError(path, expected_kind, actual)

    def init(self, path: Path, kind: GitRepoKind) -> None:
        path = Path(path)
        args = [self.executable, "init"]
        if kind is GitRepoKind.BARE:
            args.append("--bare")
        args.append(str(path))

        operation = "init Git repo"
        result = _spawn(args, operation, path, _unbound_env())
        _check(result, operation, path)
        logger.info(f"Initialized {kind.value} repo at {path}")

    def clone(self, path: Path, source: str, kind: GitRepoKind) -> None:
        path = Path(path)
        args = [self.executable, "clone"]
        if kind is GitRepoKind.BARE:
            args.append("--bare")
        args += ["--", source, str(path)]

        logger.info(f"Cloning {kind.value} repo from {source} to {path}")
        operation = f"clone Git repo from {source!r}"
        # Inherit stdio so progress and credential prompts reach the user
        result = _spawn(args, operation, path, _unbound_env(), capture=False)
        _check(result, operation, path)

    def open_repo(self, options: OpenRepoOptions) -> "GitCliRepo":
        mismatch = self.exists(options.probe_path, options.kind)
        if mismatch is not None:
            raise mismatch
        return GitCliRepo(self, options.repo_path, options.work_tree_path)

    def __repr__(self) -> str:
        return f"GitCli(executable={self.executable!r})"


class GitCliRepo(GitRepo):
    """Repo handle whose commands get ``GIT_DIR``/``GIT_WORK_TREE`` set."""

    def __init__(self, git: GitCli, repo_path: Path, work_tree_path: Path):
        super().__init__(repo_path, work_tree_path)
        self.git = git

    def bound_env(self) -> Dict[str, str]:
        env = os.environ.copy()
        env[GIT_DIR_ENV] = str(self.repo_path)
        env[GIT_WORK_TREE_ENV] = str(self.work_tree_path)
        return env

    def run_cmd(self, args: Sequence[str], continuation: Continuation) -> T:
        return continuation(list(args), self.bound_env())

    def run(
        self,
        *args: str,
        operation: str,
        cwd: Optional[Path] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        """Run a git subcommand against this repo, capturing output.

        Runs from the work tree unless ``cwd`` says otherwise, so relative
        pathspecs resolve the same way regardless of where valet was
        started.
        """
        if cwd is None:
            cwd = self.work_tree_path
        result = self.run_cmd(
            [self.git.executable, *args],
            lambda cmd, env: _spawn(
                cmd, operation, self.repo_path, env, cwd=cwd
            ),
        )
        if check:
            _check(result, operation, self.repo_path)
        return result

    def set_config_value(self, key: str, value: Optional[str]) -> None:
        if value is not None:
            self.run("config", key, value, operation=f"set `{key}` config")
            return

        operation = f"unset `{key}` config"
        result = self.run(
            "config", "--unset-all", key, operation=operation, check=False
        )
        if result.returncode != CONFIG_KEY_NOT_SET_STATUS:
            _check(result, operation, self.repo_path)

    def list_files(self) -> List[Path]:
        operation = "list files"
        with working_directory(self.work_tree_path) as cwd:
            # cwd=None: inherit the working directory we just switched to
            result = self.run_cmd(
                [self.git.executable, "ls-files", "-z"],
                lambda cmd, env: _spawn(cmd, operation, self.repo_path, env),
            )
            _check(result, operation, self.repo_path)
            output = _decode(result.stdout, operation, self.repo_path, "stdout")
            files = [
                _canonical_parent(Path(os.path.abspath(line)))
                for line in output.split("\0")
                if line
            ]
        logger.debug(f"Listed {len(files)} file(s) tracked in {cwd}")
        return files

    def reset(self) -> None:
        self.run("reset", "--quiet", operation="discard staged changes")

    def restore(self) -> None:
        self.run(
            "restore", "--worktree", "--", ":/", operation="restore work tree"
        )

    def ensure_fetch_refspec(self) -> None:
        """Ensure fetch refspec is configured for remote tracking.

        Bare clones lack the fetch refspec, which prevents remote-tracking
        branches from being created.
        """
        result = self.run(
            "config",
            "--get-all",
            "remote.origin.fetch",
            operation="read fetch refspec",
            check=False,
        )
        stdout = result.stdout.decode("utf-8", errors="replace")
        if FETCH_REFSPEC not in stdout.split():
            logger.info("Configuring fetch refspec for remote tracking")
            self.run(
                "config",
                "--add",
                "remote.origin.fetch",
                FETCH_REFSPEC,
                operation="configure fetch refspec",
            )


def _canonical_parent(path: Path) -> Path:
    # Resolve the directory only: a tracked symlink must stay the link
    return path.parent.resolve() / path.name
