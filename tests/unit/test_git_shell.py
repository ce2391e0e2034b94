"""Tests for the git command-line backend."""

import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from valet.errors import (
    BackendError,
    EncodingFailure,
    KindMismatchError,
    RepoNotFoundError,
    SpawnFailure,
    ToolFailure,
    WorkingDirectoryError,
)
from valet.git import GitCli, GitCliRepo, GitRepoKind, OpenRepoOptions
from valet.git.shell import FETCH_REFSPEC


def _result(returncode=0, stdout=b"", stderr=b""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


class TestExists:
    """Tests for probing repository kind."""

    def test_missing_path(self, tmp_path):
        """A missing path is 'not found' without running git."""
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mismatch = GitCli().exists(tmp_path / "x", GitRepoKind.NORMAL)

        assert isinstance(mismatch, RepoNotFoundError)
        assert mismatch.actual is None
        mock_run.assert_not_called()

    def test_expected_kind(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(stdout=b"true\n")
            assert GitCli().exists(tmp_path, GitRepoKind.BARE) is None

        args = mock_run.call_args[0][0]
        assert args == [
            "git",
            "-C",
            str(tmp_path),
            "rev-parse",
            "--is-bare-repository",
        ]

    def test_wrong_kind(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(stdout=b"false\n")
            mismatch = GitCli().exists(tmp_path, GitRepoKind.BARE)

        assert isinstance(mismatch, KindMismatchError)
        assert mismatch.expected is GitRepoKind.BARE
        assert mismatch.actual is GitRepoKind.NORMAL

    def test_not_a_repository(self, tmp_path):
        """git's 'not a git repository' failure means nothing was found."""
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(
                128,
                stderr=b"fatal: not a git repository (or any of the parent "
                b"directories): .git\n",
            )
            mismatch = GitCli().exists(tmp_path, GitRepoKind.NORMAL)

        assert isinstance(mismatch, RepoNotFoundError)

    def test_other_failure(self, tmp_path):
        """Any other failure is an error, not an answer."""
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(
                128, stderr=b"fatal: detected dubious ownership\n"
            )
            with pytest.raises(ToolFailure) as exc_info:
                GitCli().exists(tmp_path, GitRepoKind.NORMAL)

        assert exc_info.value.returncode == 128
        assert "dubious ownership" in str(exc_info.value)

    def test_unparseable_answer(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(stdout=b"maybe\n")
            with pytest.raises(BackendError, match="boolean"):
                GitCli().exists(tmp_path, GitRepoKind.NORMAL)

    def test_non_utf8_output(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(stdout=b"\xff\xfe")
            with pytest.raises(EncodingFailure):
                GitCli().exists(tmp_path, GitRepoKind.NORMAL)

    def test_ignores_inherited_binding(self, tmp_path):
        """GIT_DIR from the caller's environment must not leak in."""
        env = {"GIT_DIR": "/elsewhere", "GIT_WORK_TREE": "/elsewhere"}
        with patch.dict(os.environ, env):
            with patch("valet.git.shell.subprocess.run") as mock_run:
                mock_run.return_value = _result(stdout=b"false\n")
                GitCli().exists(tmp_path, GitRepoKind.NORMAL)

        run_env = mock_run.call_args[1]["env"]
        assert "GIT_DIR" not in run_env
        assert "GIT_WORK_TREE" not in run_env
        assert run_env["LC_ALL"] == "C"

    def test_spawn_failure(self, tmp_path):
        with patch(
            "valet.git.shell.subprocess.run",
            side_effect=FileNotFoundError("git"),
        ):
            with pytest.raises(SpawnFailure) as exc_info:
                GitCli("no-such-git").exists(tmp_path, GitRepoKind.NORMAL)

        assert isinstance(exc_info.value.__cause__, FileNotFoundError)

    def test_unreadable_path(self, tmp_path):
        """An error probing the path is a backend error, not an answer."""
        with patch(
            "valet.git.shell.path_exists",
            side_effect=PermissionError("permission denied"),
        ):
            with patch("valet.git.shell.subprocess.run") as mock_run:
                with pytest.raises(BackendError) as exc_info:
                    GitCli().exists(tmp_path, GitRepoKind.NORMAL)

        assert exc_info.value.path == tmp_path
        assert isinstance(exc_info.value.__cause__, PermissionError)
        mock_run.assert_not_called()


class TestInitAndClone:
    """Tests for creating repositories."""

    def test_init_bare(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result()
            GitCli().init(tmp_path / "r", GitRepoKind.BARE)

        args = mock_run.call_args[0][0]
        assert args == ["git", "init", "--bare", str(tmp_path / "r")]

    def test_init_normal(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result()
            GitCli().init(tmp_path, GitRepoKind.NORMAL)

        assert "--bare" not in mock_run.call_args[0][0]

    def test_init_failure(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(1, stderr=b"fatal: nope\n")
            with pytest.raises(ToolFailure, match="nope"):
                GitCli().init(tmp_path, GitRepoKind.NORMAL)

    def test_clone_inherits_stdio(self, tmp_path):
        """Clone progress and prompts go straight to the user."""
        source = "https://example.com/dotfiles.git"
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(stderr=None)
            GitCli().clone(tmp_path / "d", source, GitRepoKind.BARE)

        args = mock_run.call_args[0][0]
        assert args == [
            "git", "clone", "--bare", "--", source, str(tmp_path / "d")
        ]
        assert mock_run.call_args[1]["capture_output"] is False

    def test_clone_killed_by_signal(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(-9, stderr=None)
            with pytest.raises(ToolFailure, match="signal 9"):
                GitCli().clone(tmp_path, "src", GitRepoKind.NORMAL)

    def test_custom_executable(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result()
            GitCli("/opt/git/bin/git").init(tmp_path, GitRepoKind.NORMAL)

        assert mock_run.call_args[0][0][0] == "/opt/git/bin/git"


class TestOpenRepo:
    """Tests for opening repo handles."""

    def test_open_bare(self, tmp_path):
        options = OpenRepoOptions.bare(tmp_path / "repo", tmp_path)
        (tmp_path / "repo").mkdir()

        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(stdout=b"true\n")
            repo = GitCli().open_repo(options)

        assert isinstance(repo, GitCliRepo)
        assert repo.repo_path == tmp_path / "repo"
        assert repo.work_tree_path == tmp_path
        assert str(tmp_path / "repo") in mock_run.call_args[0][0]

    def test_open_normal_probes_work_tree(self, tmp_path):
        options = OpenRepoOptions.normal(tmp_path)
        assert options.repo_path == tmp_path / ".git"
        assert options.probe_path == tmp_path

    def test_open_mismatch(self, tmp_path):
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(stdout=b"true\n")
            with pytest.raises(KindMismatchError):
                GitCli().open_repo(OpenRepoOptions.normal(tmp_path))


class TestGitCliRepo:
    """Tests for commands run through a repo handle."""

    def _repo(self, tmp_path):
        work_tree = tmp_path / "home"
        work_tree.mkdir()
        return GitCliRepo(GitCli(), tmp_path / "repo", work_tree)

    def test_run_cmd_binds_environment(self, tmp_path):
        repo = self._repo(tmp_path)

        args, env = repo.run_cmd(["git", "status"], lambda a, e: (a, e))

        assert args == ["git", "status"]
        assert env["GIT_DIR"] == str(tmp_path / "repo")
        assert env["GIT_WORK_TREE"] == str(tmp_path / "home")

    def test_set_config_value(self, tmp_path):
        repo = self._repo(tmp_path)
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result()
            repo.set_excludes_file(Path("/home/me/.gitignore.d/home"))

        args = mock_run.call_args[0][0]
        assert args == [
            "git", "config", "core.excludesFile", "/home/me/.gitignore.d/home"
        ]
        assert mock_run.call_args[1]["env"]["GIT_DIR"] == str(
            tmp_path / "repo"
        )
        assert mock_run.call_args[1]["cwd"] == str(tmp_path / "home")

    def test_unset_missing_key_is_fine(self, tmp_path):
        """Unsetting a key that was never set is not an error."""
        repo = self._repo(tmp_path)
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(5)
            repo.set_attributes_file(None)

        args = mock_run.call_args[0][0]
        assert args == ["git", "config", "--unset-all", "core.attributesFile"]

    def test_unset_failure(self, tmp_path):
        repo = self._repo(tmp_path)
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(3, stderr=b"bad config file")
            with pytest.raises(ToolFailure):
                repo.set_config_value("core.excludesFile", None)

    def test_hide_untracked_files(self, tmp_path):
        repo = self._repo(tmp_path)
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result()
            repo.hide_untracked_files()

        args = mock_run.call_args[0][0]
        assert args[-2:] == ["status.showUntrackedFiles", "no"]

    def test_list_files(self, tmp_path):
        """Tracked files come back as absolute paths in the work tree."""
        repo = self._repo(tmp_path)
        before = os.getcwd()
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(stdout=b".bashrc\0.config/a b\0")
            files = repo.list_files()

        home = (tmp_path / "home").resolve()
        assert files == [home / ".bashrc", home / ".config" / "a b"]
        assert os.getcwd() == before
        args = mock_run.call_args[0][0]
        assert args == ["git", "ls-files", "-z"]

    def test_list_files_restores_cwd_on_failure(self, tmp_path):
        repo = self._repo(tmp_path)
        before = os.getcwd()
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(128, stderr=b"fatal: oops")
            with pytest.raises(ToolFailure):
                repo.list_files()

        assert os.getcwd() == before

    def test_list_files_missing_work_tree(self, tmp_path):
        repo = GitCliRepo(GitCli(), tmp_path / "repo", tmp_path / "missing")
        with pytest.raises(WorkingDirectoryError):
            repo.list_files()

    def test_reset_and_restore(self, tmp_path):
        repo = self._repo(tmp_path)
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result()
            repo.reset()
            repo.restore()

        calls = [c[0][0] for c in mock_run.call_args_list]
        assert calls == [
            ["git", "reset", "--quiet"],
            ["git", "restore", "--worktree", "--", ":/"],
        ]

    def test_ensure_fetch_refspec_adds_missing(self, tmp_path):
        """Bare clones get a fetch refspec for remote-tracking branches."""
        repo = self._repo(tmp_path)
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.side_effect = [_result(1), _result()]
            repo.ensure_fetch_refspec()

        last = mock_run.call_args_list[-1][0][0]
        assert last == [
            "git", "config", "--add", "remote.origin.fetch", FETCH_REFSPEC
        ]

    def test_ensure_fetch_refspec_present(self, tmp_path):
        repo = self._repo(tmp_path)
        with patch("valet.git.shell.subprocess.run") as mock_run:
            mock_run.return_value = _result(
                stdout=FETCH_REFSPEC.encode() + b"\n"
            )
            repo.ensure_fetch_refspec()

        mock_run.assert_called_once()
