"""
Converters from GitHub payloads to the unified model.
"""
from typing import Any, Dict, List, Optional

from gitxab.core.exceptions import ConversionError
from gitxab.core.models import (
    BackendType,
    Branch,
    Comment,
    FileDiff,
    Issue,
    PathId,
    PullRequest,
    PullRequestDiff,
    PullRequestState,
    Repository,
    User,
)
from gitxab.schemas.github import (
    GitHubBranch,
    GitHubComment,
    GitHubFile,
    GitHubIssue,
    GitHubLabel,
    GitHubPullRequest,
    GitHubRepository,
    GitHubUser,
)
from .common import decode, normalize_issue_state, normalize_state

BACKEND = BackendType.GITHUB.value


def _labels(raw_labels) -> List[str]:
    return [
        label.name if isinstance(label, GitHubLabel) else label
        for label in raw_labels
    ]


def github_to_unified_user(raw: Any) -> User:
    """Convert a GitHub user payload."""
    gh_user = decode(GitHubUser, raw, BACKEND, "user")
    return User(
        id=gh_user.id,
        username=gh_user.login,
        name=gh_user.name,
        avatar_url=gh_user.avatar_url,
    )


def github_to_unified_repository(raw: Any) -> Repository:
    """
    Convert a GitHub repository payload.

    The repository id is the full name, which is what GitHub's
    /repos/{owner}/{repo} endpoints take back.
    """
    gh_repo = decode(GitHubRepository, raw, BACKEND, "repository")

    visibility = gh_repo.visibility
    if visibility is None:
        visibility = "private" if gh_repo.private else "public"

    try:
        return Repository(
            id=PathId(gh_repo.full_name),
            name=gh_repo.name,
            full_name=gh_repo.full_name,
            description=gh_repo.description,
            url=gh_repo.html_url,
            default_branch=gh_repo.default_branch or "main",
            backend=BackendType.GITHUB,
            owner=gh_repo.owner.login,
            visibility=visibility,
            archived=gh_repo.archived,
            stars=gh_repo.stargazers_count,
            forks=gh_repo.forks_count,
            created_at=gh_repo.created_at,
            updated_at=gh_repo.updated_at,
        )
    except Exception as e:
        raise ConversionError(BACKEND, "repository", e) from e


def github_to_unified_issue(raw: Any) -> Issue:
    """Convert a GitHub issue payload."""
    gh_issue = decode(GitHubIssue, raw, BACKEND, "issue")
    return Issue(
        id=gh_issue.id,
        number=gh_issue.number,
        title=gh_issue.title,
        body=gh_issue.body,
        state=normalize_issue_state(gh_issue.state),
        author=github_to_unified_user(gh_issue.user),
        assignees=[github_to_unified_user(a) for a in gh_issue.assignees],
        labels=_labels(gh_issue.labels),
        created_at=gh_issue.created_at,
        updated_at=gh_issue.updated_at,
        closed_at=gh_issue.closed_at,
        url=gh_issue.html_url,
    )


def github_to_unified_pull_request(raw: Any) -> PullRequest:
    """
    Convert a GitHub pull request payload.

    GitHub reports merged pull requests as "closed"; `merged` or
    `merged_at` tells them apart.
    """
    gh_pr = decode(GitHubPullRequest, raw, BACKEND, "pull_request")

    merged_at = gh_pr.merged_at
    if gh_pr.merged or merged_at:
        state = PullRequestState.MERGED
        merged_at = merged_at or gh_pr.updated_at or gh_pr.closed_at
        if not merged_at:
            raise ConversionError(
                BACKEND, "pull_request",
                ValueError(f"merged pull request #{gh_pr.number} has no timestamps")
            )
    else:
        state = normalize_state(gh_pr.state)

    return PullRequest(
        id=gh_pr.id,
        number=gh_pr.number,
        title=gh_pr.title,
        body=gh_pr.body,
        state=state,
        author=github_to_unified_user(gh_pr.user),
        source_branch=gh_pr.head.ref,
        target_branch=gh_pr.base.ref,
        assignees=[github_to_unified_user(a) for a in gh_pr.assignees],
        labels=_labels(gh_pr.labels),
        draft=gh_pr.draft,
        created_at=gh_pr.created_at,
        updated_at=gh_pr.updated_at,
        closed_at=gh_pr.closed_at,
        merged_at=merged_at,
        url=gh_pr.html_url,
    )


def github_to_unified_comment(raw: Any) -> Comment:
    """Convert a GitHub issue comment payload."""
    gh_comment = decode(GitHubComment, raw, BACKEND, "comment")
    return Comment(
        id=gh_comment.id,
        body=gh_comment.body or "",
        author=github_to_unified_user(gh_comment.user),
        created_at=gh_comment.created_at,
        updated_at=gh_comment.updated_at,
        url=gh_comment.html_url,
    )


def github_to_unified_branch(raw: Any, default_branch: Optional[str] = None) -> Branch:
    """Convert a GitHub branch payload; `default_branch` marks the default."""
    gh_branch = decode(GitHubBranch, raw, BACKEND, "branch")
    return Branch(
        name=gh_branch.name,
        protected=gh_branch.protected,
        default=gh_branch.name == default_branch,
        commit_sha=gh_branch.commit.sha if gh_branch.commit else None,
    )


def github_to_unified_file_diff(raw: Any) -> FileDiff:
    """Convert one entry of a pull request's file list."""
    gh_file = decode(GitHubFile, raw, BACKEND, "file_diff")
    status = gh_file.status.lower()
    is_new = status == "added"
    is_renamed = status == "renamed"

    if is_new:
        old_path = None
    elif is_renamed and gh_file.previous_filename:
        old_path = gh_file.previous_filename
    else:
        old_path = gh_file.filename

    return FileDiff(
        old_path=old_path,
        new_path=gh_file.filename,
        diff=gh_file.patch or "",
        additions=gh_file.additions,
        deletions=gh_file.deletions,
        is_new=is_new,
        is_deleted=status == "removed",
        is_renamed=is_renamed,
    )


def github_to_unified_pull_request_diff(raw: List[Dict[str, Any]]) -> PullRequestDiff:
    """Convert the /pulls/:number/files list."""
    if not isinstance(raw, list):
        raise ConversionError(
            BACKEND, "pull_request_diff",
            TypeError(f"expected a list of files, got {type(raw).__name__}")
        )
    return PullRequestDiff(files=[github_to_unified_file_diff(f) for f in raw])
