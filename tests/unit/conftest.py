"""Shared fixtures for unit tests: an in-memory git backend."""

from pathlib import Path

import pytest

from valet.dirs import Directories
from valet.errors import KindMismatchError, RepoNotFoundError, ToolFailure
from valet.git import GitBackend, GitRepo


class FakeRepo(GitRepo):
    def __init__(self, backend, repo_path, work_tree_path):
        super().__init__(repo_path, work_tree_path)
        self.backend = backend

    @property
    def config(self):
        return self.backend.configs.setdefault(str(self.repo_path), {})

    def run_cmd(self, args, continuation):
        env = {
            "GIT_DIR": str(self.repo_path),
            "GIT_WORK_TREE": str(self.work_tree_path),
        }
        return continuation(list(args), env)

    def set_config_value(self, key, value):
        if key in self.backend.failing_config_keys:
            raise ToolFailure(f"set `{key}` config", self.repo_path, 1)
        if value is None:
            self.config.pop(key, None)
        else:
            self.config[key] = value

    def list_files(self):
        if self.backend.list_failure is not None:
            raise self.backend.list_failure
        return list(self.backend.tracked.get(str(self.repo_path), []))

    def reset(self):
        self.backend.calls.append(("reset", self.repo_path))

    def restore(self):
        self.backend.calls.append(("restore", self.repo_path))

    def ensure_fetch_refspec(self):
        self.backend.calls.append(("ensure_fetch_refspec", self.repo_path))


class FakeGit(GitBackend):
    """Records repos by probe path instead of running git.

    Set ``failure`` to make init and clone raise it, and ``list_failure``
    to make listing tracked files raise it.
    """

    def __init__(self):
        self.repos = {}
        self.calls = []
        self.configs = {}
        self.tracked = {}
        self.failure = None
        self.list_failure = None
        self.failing_config_keys = set()

    def add_repo(self, path, kind):
        Path(path).mkdir(parents=True, exist_ok=True)
        self.repos[str(Path(path))] = kind

    def exists(self, path, expected_kind):
        actual = self.repos.get(str(Path(path)))
        if actual is None:
            return RepoNotFoundError(Path(path), expected_kind)
        if actual is not expected_kind:
            return KindMismatchError(Path(path), expected_kind, actual)
        return None

    def init(self, path, kind):
        self.calls.append(("init", Path(path), kind))
        if self.failure is not None:
            raise self.failure
        self.add_repo(path, kind)

    def clone(self, path, source, kind):
        self.calls.append(("clone", Path(path), source, kind))
        if self.failure is not None:
            raise self.failure
        self.add_repo(path, kind)

    def open_repo(self, options):
        self.check_exists(options.probe_path, options.kind)
        return FakeRepo(self, options.repo_path, options.work_tree_path)


@pytest.fixture
def fake_git():
    return FakeGit()


@pytest.fixture
def home(tmp_path):
    home = tmp_path / "home"
    home.mkdir()
    return home.resolve()


@pytest.fixture
def dirs(tmp_path, home):
    return Directories(home=home, data_dir=tmp_path / "data")
