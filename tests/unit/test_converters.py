"""Tests for GitHub and GitLab payload converters."""

import pytest

from gitxab.converters import (
    count_diff_lines,
    github_to_unified_branch,
    github_to_unified_comment,
    github_to_unified_file_diff,
    github_to_unified_issue,
    github_to_unified_pull_request,
    github_to_unified_pull_request_diff,
    github_to_unified_repository,
    github_to_unified_user,
    gitlab_to_unified_branch,
    gitlab_to_unified_comment,
    gitlab_to_unified_file_diff,
    gitlab_to_unified_issue,
    gitlab_to_unified_pull_request,
    gitlab_to_unified_pull_request_diff,
    gitlab_to_unified_repository,
    normalize_issue_state,
    normalize_state,
)
from gitxab.converters.gitlab import is_draft_title
from gitxab.core.exceptions import ConversionError
from gitxab.core.models import (
    BackendType,
    IssueState,
    NumericId,
    PathId,
    PullRequestState,
)
from tests.utils import (
    github_issue,
    github_pull,
    github_repo,
    github_user,
    gitlab_issue,
    gitlab_merge_request,
    gitlab_project,
    gitlab_user,
)


class TestStateNormalization:
    """Test the shared state vocabulary."""

    @pytest.mark.parametrize("raw,expected", [
        ("opened", PullRequestState.OPEN),
        ("open", PullRequestState.OPEN),
        ("OPEN", PullRequestState.OPEN),
        ("closed", PullRequestState.CLOSED),
        ("merged", PullRequestState.MERGED),
        ("locked", PullRequestState.OPEN),
        ("", PullRequestState.OPEN),
        (None, PullRequestState.OPEN),
        (3, PullRequestState.OPEN),
    ])
    def test_normalize_state(self, raw, expected):
        assert normalize_state(raw) == expected

    def test_issue_states_never_merged(self):
        assert normalize_issue_state("opened") == IssueState.OPEN
        assert normalize_issue_state("closed") == IssueState.CLOSED
        assert normalize_issue_state("merged") == IssueState.CLOSED

    def test_count_diff_lines_skips_headers(self):
        diff = "--- a/x.py\n+++ b/x.py\n@@ -1,2 +1,2 @@\n-old\n+new\n+extra\n context"
        assert count_diff_lines(diff) == (2, 1)
        assert count_diff_lines("") == (0, 0)
        assert count_diff_lines(None) == (0, 0)


class TestGitHubConverters:
    """Test GitHub payload conversion."""

    def test_user(self):
        user = github_to_unified_user(github_user("octocat", 5))
        assert user.id == 5
        assert user.username == "octocat"
        assert user.name == "octocat"

    def test_repository(self):
        repo = github_to_unified_repository(github_repo("octocat/hello-world"))
        assert repo.id == PathId("octocat/hello-world")
        assert repo.backend == BackendType.GITHUB
        assert repo.owner == "octocat"
        assert repo.visibility == "public"
        assert repo.stars == 80

    def test_repository_private_without_visibility(self):
        repo = github_to_unified_repository(github_repo(private=True, default_branch=None))
        assert repo.visibility == "private"
        assert repo.default_branch == "main"

    def test_repository_missing_field(self):
        payload = github_repo()
        del payload["full_name"]
        with pytest.raises(ConversionError) as exc_info:
            github_to_unified_repository(payload)
        assert exc_info.value.backend == "github"
        assert exc_info.value.entity_type == "repository"

    def test_issue(self):
        issue = github_to_unified_issue(github_issue(
            7, labels=[{"name": "ui"}, "bug", {"name": "bug"}],
            assignees=[github_user("hubot", 2)],
        ))
        assert issue.number == 7
        assert issue.state == IssueState.OPEN
        assert issue.labels == ("bug", "ui")
        assert [a.username for a in issue.assignees] == ["hubot"]

    def test_issue_without_labels_or_assignees(self):
        payload = github_issue()
        del payload["labels"]
        del payload["assignees"]
        issue = github_to_unified_issue(payload)
        assert issue.labels == ()
        assert issue.assignees == ()

    def test_issue_null_labels_and_assignees(self):
        issue = github_to_unified_issue(github_issue(labels=None, assignees=None))
        assert issue.labels == ()
        assert issue.assignees == ()

    def test_pull_request_null_defaults(self):
        pr = github_to_unified_pull_request(github_pull(labels=None, assignees=None, draft=None))
        assert pr.labels == ()
        assert pr.assignees == ()
        assert pr.draft is False

    def test_null_required_field_still_fails(self):
        with pytest.raises(ConversionError):
            github_to_unified_issue(github_issue(title=None))

    def test_open_pull_request(self):
        pr = github_to_unified_pull_request(github_pull(42, draft=True))
        assert pr.state == PullRequestState.OPEN
        assert pr.source_branch == "feature"
        assert pr.target_branch == "main"
        assert pr.draft is True

    def test_closed_pull_request(self):
        pr = github_to_unified_pull_request(github_pull(state="closed", closed_at="2024-01-04T00:00:00Z"))
        assert pr.state == PullRequestState.CLOSED
        assert pr.merged_at is None

    def test_merged_pull_request(self):
        pr = github_to_unified_pull_request(github_pull(
            state="closed", merged=True, merged_at="2024-01-05T00:00:00Z"
        ))
        assert pr.state == PullRequestState.MERGED
        assert pr.merged_at == "2024-01-05T00:00:00Z"

    def test_merged_without_merged_at_uses_updated_at(self):
        pr = github_to_unified_pull_request(github_pull(state="closed", merged=True))
        assert pr.is_merged
        assert pr.merged_at == "2024-01-03T00:00:00Z"

    def test_comment(self):
        comment = github_to_unified_comment({
            "id": 9, "body": None, "user": github_user(),
            "created_at": "2024-01-01T00:00:00Z",
        })
        assert comment.id == 9
        assert comment.body == ""
        assert comment.author.username == "octocat"

    def test_branch(self):
        raw = {"name": "main", "protected": True, "commit": {"sha": "abc"}}
        branch = github_to_unified_branch(raw, default_branch="main")
        assert branch.default is True
        assert branch.protected is True
        assert branch.commit_sha == "abc"
        assert github_to_unified_branch(raw).default is False

    def test_file_diff_statuses(self):
        added = github_to_unified_file_diff({"filename": "new.py", "status": "added", "additions": 4})
        assert added.is_new and added.old_path is None

        removed = github_to_unified_file_diff({"filename": "old.py", "status": "removed", "deletions": 2})
        assert removed.is_deleted and removed.old_path == "old.py"

        renamed = github_to_unified_file_diff({
            "filename": "b.py", "status": "renamed", "previous_filename": "a.py",
        })
        assert renamed.is_renamed
        assert renamed.old_path == "a.py"
        assert renamed.new_path == "b.py"

    def test_pull_request_diff(self):
        diff = github_to_unified_pull_request_diff([
            {"filename": "a.py", "additions": 3, "deletions": 1, "patch": "@@ -1 +1 @@"},
            {"filename": "b.py", "additions": 2, "deletions": 0},
        ])
        assert len(diff.files) == 2
        assert diff.total_additions == 5
        assert diff.total_deletions == 1

    def test_pull_request_diff_requires_list(self):
        with pytest.raises(ConversionError):
            github_to_unified_pull_request_diff({"files": []})


class TestGitLabConverters:
    """Test GitLab payload conversion."""

    def test_repository(self):
        repo = gitlab_to_unified_repository(gitlab_project(12345, "group/sub/project"))
        assert repo.id == NumericId(12345)
        assert repo.backend == BackendType.GITLAB
        assert repo.owner == "group/sub"
        assert repo.name == "project"
        assert repo.updated_at == "2024-02-01T00:00:00Z"

    def test_issue_states(self):
        assert gitlab_to_unified_issue(gitlab_issue(state="opened")).state == IssueState.OPEN
        assert gitlab_to_unified_issue(gitlab_issue(state="closed")).state == IssueState.CLOSED

    def test_issue_fields(self):
        issue = gitlab_to_unified_issue(gitlab_issue(4, labels=["b", "a"]))
        assert issue.number == 4
        assert issue.body == "Something is broken"
        assert issue.labels == ("a", "b")
        assert issue.author.name == "Alice"

    def test_issue_without_labels_or_assignees(self):
        payload = gitlab_issue()
        del payload["labels"]
        del payload["assignees"]
        issue = gitlab_to_unified_issue(payload)
        assert issue.labels == ()
        assert issue.assignees == ()

    def test_merge_request_null_defaults(self):
        pr = gitlab_to_unified_pull_request(gitlab_merge_request(
            labels=None, assignees=None, draft=None, work_in_progress=None
        ))
        assert pr.labels == ()
        assert pr.assignees == ()
        assert pr.draft is False

    def test_project_null_counts(self):
        repo = gitlab_to_unified_repository(gitlab_project(star_count=None, archived=None))
        assert repo.stars == 0
        assert repo.archived is False

    def test_issue_missing_author(self):
        payload = gitlab_issue()
        del payload["author"]
        with pytest.raises(ConversionError):
            gitlab_to_unified_issue(payload)

    def test_merge_request(self):
        pr = gitlab_to_unified_pull_request(gitlab_merge_request(3))
        assert pr.number == 3
        assert pr.state == PullRequestState.OPEN
        assert pr.draft is False

    def test_merged_merge_request(self):
        pr = gitlab_to_unified_pull_request(gitlab_merge_request(
            state="merged", merged_at="2024-01-06T00:00:00Z"
        ))
        assert pr.is_merged
        assert pr.merged_at == "2024-01-06T00:00:00Z"

    def test_merged_merge_request_falls_back_to_updated_at(self):
        pr = gitlab_to_unified_pull_request(gitlab_merge_request(state="merged"))
        assert pr.merged_at == "2024-01-03T00:00:00Z"

    @pytest.mark.parametrize("overrides", [
        {"draft": True},
        {"work_in_progress": True},
        {"title": "Draft: new parser"},
        {"title": "WIP: new parser"},
    ])
    def test_draft_detection(self, overrides):
        assert gitlab_to_unified_pull_request(gitlab_merge_request(**overrides)).draft is True

    def test_is_draft_title(self):
        assert is_draft_title("[Draft] thing")
        assert not is_draft_title("Drafting a plan")

    def test_note(self):
        comment = gitlab_to_unified_comment({"id": 1, "body": "LGTM", "author": gitlab_user()})
        assert comment.body == "LGTM"
        assert comment.url is None

    def test_branch_default(self):
        raw = {"name": "develop", "default": True, "commit": {"id": "fff"}}
        assert gitlab_to_unified_branch(raw).default is True
        assert gitlab_to_unified_branch(raw, default_branch="main").default is False
        assert gitlab_to_unified_branch(raw).commit_sha == "fff"

    def test_file_diff_counts_lines(self):
        file_diff = gitlab_to_unified_file_diff({
            "old_path": "a.py", "new_path": "a.py",
            "diff": "@@ -1,2 +1,3 @@\n-x\n+y\n+z\n",
        })
        assert file_diff.additions == 2
        assert file_diff.deletions == 1

    def test_new_file_diff(self):
        file_diff = gitlab_to_unified_file_diff({
            "old_path": "n.py", "new_path": "n.py", "diff": "+a\n", "new_file": True,
        })
        assert file_diff.is_new
        assert file_diff.old_path is None

    def test_pull_request_diff(self):
        diff = gitlab_to_unified_pull_request_diff({"changes": [
            {"old_path": "a", "new_path": "a", "diff": "+1\n+2\n"},
            {"old_path": "b", "new_path": "c", "diff": "-1\n", "renamed_file": True},
        ]})
        assert diff.total_additions == 2
        assert diff.total_deletions == 1
        assert diff.files[1].is_renamed
