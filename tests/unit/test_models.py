"""Tests for core data models."""

import dataclasses

import pytest

from gitxab.core import UnsupportedIdentifierError
from gitxab.core.models import (
    BackendType,
    Branch,
    FileDiff,
    Issue,
    IssueState,
    NumericId,
    PathId,
    PullRequest,
    PullRequestDiff,
    PullRequestState,
    Repository,
    UpdateIssueParams,
    UpdatePullRequestParams,
    User,
    coerce_repository_id,
    split_full_name,
)


@pytest.fixture
def author():
    return User(id=1, username="octocat")


class TestRepositoryIds:
    """Test identifier types and coercion."""

    def test_numeric_id(self):
        repo_id = NumericId(12345)
        assert repo_id.value == 12345
        assert str(repo_id) == "12345"

    @pytest.mark.parametrize("bad", ["12", 1.5, True, None])
    def test_numeric_id_rejects_non_integers(self, bad):
        with pytest.raises(UnsupportedIdentifierError):
            NumericId(bad)

    def test_path_id_parts(self):
        repo_id = PathId("group/sub/project")
        assert repo_id.owner == "group/sub"
        assert repo_id.name == "project"
        assert str(repo_id) == "group/sub/project"

    def test_path_id_requires_separator(self):
        with pytest.raises(UnsupportedIdentifierError):
            PathId("project")

    def test_ids_are_hashable_and_comparable(self):
        assert NumericId(1) == NumericId(1)
        assert {PathId("a/b"), PathId("a/b")} == {PathId("a/b")}

    def test_coerce(self):
        assert coerce_repository_id(42) == NumericId(42)
        assert coerce_repository_id("42") == NumericId(42)
        assert coerce_repository_id("octocat/hello") == PathId("octocat/hello")
        assert coerce_repository_id(PathId("a/b")) == PathId("a/b")

    @pytest.mark.parametrize("bad", ["hello", "", True, 3.0, None])
    def test_coerce_rejects(self, bad):
        with pytest.raises(UnsupportedIdentifierError):
            coerce_repository_id(bad)

    def test_split_full_name(self):
        assert split_full_name("owner/repo") == ("owner", "repo")
        with pytest.raises(ValueError):
            split_full_name("no-separator")


class TestUser:
    """Test User model."""

    def test_name_defaults_to_username(self, author):
        assert author.name == "octocat"

    def test_explicit_name_kept(self):
        assert User(id=2, username="jdoe", name="Jane Doe").name == "Jane Doe"

    def test_frozen(self, author):
        with pytest.raises(dataclasses.FrozenInstanceError):
            author.username = "other"


class TestRepository:
    """Test Repository model."""

    def test_backend_string_coerced(self):
        repo = Repository(
            id=PathId("octocat/hello"),
            name="hello",
            full_name="octocat/hello",
            description=None,
            url="https://github.com/octocat/hello",
            default_branch="main",
            backend="github",
            owner="octocat",
        )
        assert repo.backend == BackendType.GITHUB

    def test_invalid_full_name(self):
        with pytest.raises(ValueError):
            Repository(
                id=NumericId(1),
                name="x",
                full_name="x",
                description=None,
                url="https://gitlab.com/x",
                default_branch="main",
                backend=BackendType.GITLAB,
                owner="",
            )

    def test_to_dict(self):
        repo = Repository(
            id=NumericId(7),
            name="project",
            full_name="group/project",
            description="desc",
            url="https://gitlab.com/group/project",
            default_branch="main",
            backend=BackendType.GITLAB,
            owner="group",
        )
        data = repo.to_dict()
        assert data["id"] == "7"
        assert data["backend"] == "gitlab"
        assert data["full_name"] == "group/project"


class TestIssue:
    """Test Issue model."""

    def test_labels_sorted_and_unique(self, author):
        issue = Issue(
            id=1, number=1, title="Bug", body=None, state=IssueState.OPEN,
            author=author, labels=["ui", "bug", "ui"],
        )
        assert issue.labels == ("bug", "ui")

    def test_state_from_string(self, author):
        issue = Issue(id=1, number=1, title="Bug", body=None, state="CLOSED", author=author)
        assert issue.state == IssueState.CLOSED

    def test_to_dict_nests_author(self, author):
        issue = Issue(id=1, number=3, title="Bug", body="x", state=IssueState.OPEN, author=author)
        data = issue.to_dict()
        assert data["state"] == "open"
        assert data["author"]["username"] == "octocat"
        assert data["assignees"] == []

    def test_collections_cannot_be_mutated(self, author):
        issue = Issue(
            id=1, number=1, title="Bug", body=None, state=IssueState.OPEN,
            author=author, labels=["bug"], assignees=[author],
        )
        assert isinstance(issue.labels, tuple)
        assert isinstance(issue.assignees, tuple)
        with pytest.raises(AttributeError):
            issue.labels.append("ui")
        assert issue.to_dict()["labels"] == ["bug"]


class TestPullRequest:
    """Test PullRequest model."""

    def _pr(self, author, **kwargs):
        values = dict(
            id=1, number=5, title="Feature", body=None, state=PullRequestState.OPEN,
            author=author, source_branch="feature", target_branch="main",
        )
        values.update(kwargs)
        return PullRequest(**values)

    def test_open(self, author):
        pr = self._pr(author)
        assert not pr.is_merged
        assert pr.draft is False

    def test_merged_requires_merged_at(self, author):
        with pytest.raises(ValueError):
            self._pr(author, state=PullRequestState.MERGED)

    def test_merged(self, author):
        pr = self._pr(author, state="merged", merged_at="2024-01-01T00:00:00Z")
        assert pr.is_merged
        assert pr.to_dict()["state"] == "merged"


class TestDiffs:
    """Test FileDiff and PullRequestDiff."""

    def test_new_file_has_no_old_path(self):
        diff = FileDiff(old_path="a.py", new_path="a.py", is_new=True, additions=3)
        assert diff.old_path is None
        assert diff.total_changes == 3

    def test_totals(self):
        diff = PullRequestDiff(files=[
            FileDiff(old_path="a.py", new_path="a.py", additions=3, deletions=1),
            FileDiff(old_path="b.py", new_path="c.py", additions=2, deletions=5, is_renamed=True),
        ])
        assert diff.total_additions == 5
        assert diff.total_deletions == 6
        data = diff.to_dict()
        assert len(data["files"]) == 2
        assert data["total_additions"] == 5

    def test_empty_diff(self):
        diff = PullRequestDiff()
        assert diff.total_additions == 0
        assert diff.total_deletions == 0


class TestParams:
    """Test request parameter objects."""

    def test_update_issue_state_coerced(self):
        assert UpdateIssueParams(state="closed").state == IssueState.CLOSED

    def test_update_pull_request_state_coerced(self):
        assert UpdatePullRequestParams(state="merged").state == PullRequestState.MERGED

    def test_branch_defaults(self):
        branch = Branch(name="main")
        assert branch.protected is False
        assert branch.default is False
        assert branch.commit_sha is None
