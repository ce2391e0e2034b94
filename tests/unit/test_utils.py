"""Tests for utility functions."""

import importlib.metadata
from unittest.mock import patch

from valet.utils import (
    get_version,
    repo_base_name,
    setup_logging,
    validate_git_url,
)


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_verbose_mode_runs_without_error(self):
        """Verbose mode runs without error."""
        # basicConfig only works once, so we just verify no exception
        setup_logging(verbose=True)

    def test_non_verbose_mode_runs_without_error(self):
        setup_logging(verbose=False)


class TestGetVersion:
    """Tests for get_version function."""

    def test_returns_a_string(self):
        version = get_version()
        assert isinstance(version, str)
        assert len(version) > 0

    def test_returns_development_when_not_installed(self):
        """Returns '(development)' when package not found."""
        with patch("valet.utils.importlib.metadata.version") as mock:
            mock.side_effect = importlib.metadata.PackageNotFoundError()
            assert get_version() == "(development)"


class TestValidateGitUrl:
    """Tests for validate_git_url function."""

    def test_empty_url_returns_false(self):
        assert validate_git_url("") is False
        assert validate_git_url(None) is False

    def test_local_paths_are_valid(self):
        assert validate_git_url("/path/to/repo") is True
        assert validate_git_url("~/src/dotfiles") is True
        assert validate_git_url("../dotfiles") is True

    def test_urls_are_valid(self):
        assert validate_git_url("https://github.com/user/repo.git") is True
        assert validate_git_url("file:///path/to/repo") is True
        assert validate_git_url("ssh://git@github.com/user/repo.git") is True

    def test_scp_like_ssh_is_valid(self):
        assert validate_git_url("git@github.com:user/repo.git") is True

    def test_invalid_url_returns_false(self):
        assert validate_git_url("not-a-url") is False
        assert validate_git_url("ftp://example.com/repo") is False
        assert validate_git_url("random string") is False


class TestRepoBaseName:
    """Tests for deriving a name from a clone source."""

    def test_https(self):
        assert repo_base_name("https://github.com/user/dotfiles.git") == (
            "dotfiles"
        )

    def test_without_suffix(self):
        assert repo_base_name("https://gitlab.com/user/nvim-config") == (
            "nvim-config"
        )

    def test_scp_like(self):
        assert repo_base_name("git@github.com:dotfiles.git") == "dotfiles"

    def test_trailing_slash_and_dot_git_dir(self):
        assert repo_base_name("/srv/repos/notes/") == "notes"
        assert repo_base_name("/srv/repos/notes/.git") == "notes"
