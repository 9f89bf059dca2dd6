"""End-to-end tests: factory, adapter, transport and cache over a fake HTTP layer."""

import threading
from unittest.mock import patch

import pytest
import requests

from gitxab.adapters import AdapterFactory
from gitxab.cache import ResponseCache
from gitxab.core.exceptions import (
    BackendAPIError,
    NotFoundError,
    RequestCancelledError,
    UnsupportedIdentifierError,
)
from gitxab.core.models import BackendType, IssueState
from tests.utils import (
    GITHUB_TEST_TOKEN,
    GITLAB_TEST_TOKEN,
    github_repo,
    github_user,
    gitlab_issue,
    make_response,
)


@pytest.mark.integration
class TestGitHubEndToEnd:
    """Drive a GitHub adapter built by the factory."""

    @pytest.fixture
    def adapter(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN", GITHUB_TEST_TOKEN)
        return AdapterFactory.create_adapter("github")

    def test_factory_defaults(self, adapter):
        assert adapter.BACKEND == BackendType.GITHUB
        assert adapter.config.base_url == "https://api.github.com"
        assert adapter.transport.session.headers["Authorization"] == f"Bearer {GITHUB_TEST_TOKEN}"

    def test_etag_revalidation(self, adapter):
        responses = [
            make_response(200, github_repo("octocat/hello-world"), headers={"ETag": '"v1"'}),
            make_response(304),
        ]
        with patch.object(requests.Session, "request", side_effect=responses) as request:
            first = adapter.get_repository("octocat/hello-world")
            second = adapter.transport.get("/repos/octocat/hello-world")

        assert first.full_name == "octocat/hello-world"
        assert second.from_cache is True
        assert second.body["full_name"] == "octocat/hello-world"
        assert request.call_args_list[1].kwargs["headers"]["If-None-Match"] == '"v1"'

    def test_not_found(self, adapter):
        with patch.object(requests.Session, "request",
                          return_value=make_response(404, {"message": "Not Found"})):
            with pytest.raises(BackendAPIError) as exc_info:
                adapter.get_repository("octocat/missing")

        assert isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.status_code == 404

    def test_rate_limit_recorded(self, adapter):
        headers = {
            "X-RateLimit-Limit": "5000",
            "X-RateLimit-Remaining": "4321",
            "X-RateLimit-Reset": "1704067200",
        }
        with patch.object(requests.Session, "request",
                          return_value=make_response(200, github_user(), headers=headers)):
            user = adapter.get_authenticated_user()

        assert user.username == "octocat"
        rate = adapter.get_rate_limit()
        assert rate.limit == 5000
        assert rate.remaining == 4321

    def test_cancelled_before_sending(self, adapter):
        event = threading.Event()
        event.set()
        with patch.object(requests.Session, "request") as request:
            with pytest.raises(RequestCancelledError):
                adapter.with_cancel_event(event).get_authenticated_user()
        request.assert_not_called()


@pytest.mark.integration
class TestGitLabEndToEnd:
    """Drive a GitLab adapter built by the factory."""

    @pytest.fixture
    def adapter(self, monkeypatch):
        monkeypatch.setenv("GITLAB_TOKEN", GITLAB_TEST_TOKEN)
        return AdapterFactory.create_adapter("gitlab")

    def test_factory_defaults(self, adapter):
        assert adapter.config.base_url == "https://gitlab.com/api/v4"
        assert adapter.transport.session.headers["PRIVATE-TOKEN"] == GITLAB_TEST_TOKEN

    def test_open_issues_filtered(self, adapter):
        body = [gitlab_issue(iid=1, state="opened"), gitlab_issue(iid=2, state="closed")]
        with patch.object(requests.Session, "request", return_value=make_response(200, body)) as request:
            issues = adapter.list_issues(12345, state="open")

        assert len(issues) == 1
        assert issues[0].number == 1
        assert issues[0].state == IssueState.OPEN
        method, url = request.call_args.args[:2]
        assert method == "GET"
        assert url.startswith("https://gitlab.com/api/v4/projects/12345/issues?")
        assert "state=opened" in url

    def test_path_identifier_rejected(self, adapter):
        with patch.object(requests.Session, "request") as request:
            with pytest.raises(UnsupportedIdentifierError):
                adapter.get_repository("group/project")
        request.assert_not_called()


@pytest.mark.integration
class TestPersistentCache:
    """Cache entries survive across adapters through the cache file."""

    def test_second_adapter_revalidates(self, tmp_path, monkeypatch):
        cache_file = tmp_path / "cache.json"
        monkeypatch.setenv("GITHUB_TOKEN", GITHUB_TEST_TOKEN)
        monkeypatch.setenv("GITXAB_CACHE_FILE", str(cache_file))

        first = AdapterFactory.create_adapter("github")
        with patch.object(requests.Session, "request",
                          return_value=make_response(200, github_user(), headers={"ETag": '"u1"'})):
            first.get_authenticated_user()

        assert cache_file.exists()
        assert len(ResponseCache(str(cache_file))) == 1

        second = AdapterFactory.create_adapter("github")
        with patch.object(requests.Session, "request", return_value=make_response(304)) as request:
            user = second.get_authenticated_user()

        assert user.username == "octocat"
        assert request.call_args.kwargs["headers"]["If-None-Match"] == '"u1"'
