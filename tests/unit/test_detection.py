"""Tests for backend detection."""

import subprocess
from unittest.mock import Mock, patch

import pytest

from gitxab.auth import detect_backend, detect_from_remote, get_git_remote_url
from gitxab.config import ProvidersConfig
from gitxab.core.exceptions import ConfigurationError
from gitxab.core.models import BackendType


class TestDetectFromRemote:
    """Test remote URL heuristics."""

    @pytest.mark.parametrize("remote,expected", [
        ("https://github.com/octocat/hello.git", BackendType.GITHUB),
        ("git@github.com:octocat/hello.git", BackendType.GITHUB),
        ("https://gitlab.com/group/project.git", BackendType.GITLAB),
        ("git@gitlab.example.org:group/project.git", BackendType.GITLAB),
        ("https://bitbucket.org/team/repo.git", None),
        (None, None),
        ("", None),
    ])
    def test_known_hosts(self, remote, expected):
        assert detect_from_remote(remote) == expected

    def test_configured_self_hosted_instance(self):
        providers = ProvidersConfig()
        providers.gitlab.base_url = "https://code.example.com"
        remote = "ssh://git@code.example.com/team/repo.git"
        assert detect_from_remote(remote, providers) == BackendType.GITLAB
        assert detect_from_remote("git@code.example.com:team/repo.git", providers) == BackendType.GITLAB


class TestDetectBackend:
    """Test the detection order."""

    def test_explicit_wins(self):
        backend = detect_backend(
            explicit="GitLab",
            configured_default="github",
            remote_url="https://github.com/a/b",
            environ={"GITHUB_TOKEN": "x"},
        )
        assert backend == BackendType.GITLAB

    def test_configured_default_before_remote(self):
        backend = detect_backend(configured_default="gitlab", remote_url="https://github.com/a/b", environ={})
        assert backend == BackendType.GITLAB

    def test_remote_before_environment(self):
        backend = detect_backend(remote_url="https://gitlab.com/a/b", environ={"GITHUB_TOKEN": "x"})
        assert backend == BackendType.GITLAB

    def test_environment_github_first(self):
        backend = detect_backend(environ={"GITHUB_TOKEN": "x", "GITLAB_TOKEN": "y"})
        assert backend == BackendType.GITHUB
        assert detect_backend(environ={"GITLAB_TOKEN": "y"}) == BackendType.GITLAB

    def test_fallback(self):
        assert detect_backend(environ={}, fallback="gitlab") == BackendType.GITLAB

    def test_nothing_detected(self):
        with pytest.raises(ConfigurationError):
            detect_backend(environ={})

    def test_invalid_backend_name(self):
        with pytest.raises(ConfigurationError) as exc_info:
            detect_backend(explicit="bitbucket")
        assert "bitbucket" in exc_info.value.message


class TestGetGitRemoteUrl:
    """Test reading the origin remote."""

    @patch("gitxab.auth.detection.subprocess.run")
    def test_returns_url(self, mock_run):
        mock_run.return_value = Mock(stdout="git@github.com:a/b.git\n")
        assert get_git_remote_url("/repo") == "git@github.com:a/b.git"
        args, kwargs = mock_run.call_args
        assert args[0] == ["git", "remote", "get-url", "origin"]
        assert kwargs["cwd"] == "/repo"

    def test_missing_remote(self, mocker):
        mock_run = mocker.patch("gitxab.auth.detection.subprocess.run")
        mock_run.side_effect = subprocess.CalledProcessError(2, "git")
        assert get_git_remote_url() is None

    def test_git_not_installed(self, mocker):
        mocker.patch("gitxab.auth.detection.subprocess.run", side_effect=FileNotFoundError("git"))
        assert get_git_remote_url() is None
