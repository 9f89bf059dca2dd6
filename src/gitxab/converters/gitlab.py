"""
Converters from GitLab payloads to the unified model.
"""
from typing import Any, Optional

from gitxab.core.exceptions import ConversionError
from gitxab.core.models import (
    BackendType,
    Branch,
    Comment,
    FileDiff,
    Issue,
    NumericId,
    PullRequest,
    PullRequestDiff,
    PullRequestState,
    Repository,
    User,
    split_full_name,
)
from gitxab.schemas.gitlab import (
    GitLabBranch,
    GitLabDiff,
    GitLabIssue,
    GitLabMergeRequest,
    GitLabMergeRequestChanges,
    GitLabNote,
    GitLabProject,
    GitLabUser,
)
from .common import count_diff_lines, decode, normalize_issue_state, normalize_state

BACKEND = BackendType.GITLAB.value

DRAFT_PREFIXES = ("Draft:", "[Draft]", "(Draft)", "WIP:", "[WIP]")


def gitlab_to_unified_user(raw: Any) -> User:
    """Convert a GitLab user payload."""
    gl_user = decode(GitLabUser, raw, BACKEND, "user")
    return User(
        id=gl_user.id,
        username=gl_user.username,
        name=gl_user.name,
        avatar_url=gl_user.avatar_url,
    )


def gitlab_to_unified_repository(raw: Any) -> Repository:
    """
    Convert a GitLab project payload.

    The repository id is the numeric project id, which is what GitLab's
    /projects/:id endpoints take back.
    """
    gl_project = decode(GitLabProject, raw, BACKEND, "repository")

    try:
        owner = split_full_name(gl_project.path_with_namespace)[0]
        return Repository(
            id=NumericId(gl_project.id),
            name=gl_project.name,
            full_name=gl_project.path_with_namespace,
            description=gl_project.description,
            url=gl_project.web_url,
            default_branch=gl_project.default_branch or "main",
            backend=BackendType.GITLAB,
            owner=owner,
            visibility=gl_project.visibility,
            archived=gl_project.archived,
            stars=gl_project.star_count,
            forks=gl_project.forks_count,
            created_at=gl_project.created_at,
            updated_at=gl_project.last_activity_at,
        )
    except Exception as e:
        raise ConversionError(BACKEND, "repository", e) from e


def gitlab_to_unified_issue(raw: Any) -> Issue:
    """Convert a GitLab issue payload."""
    gl_issue = decode(GitLabIssue, raw, BACKEND, "issue")
    return Issue(
        id=gl_issue.id,
        number=gl_issue.iid,
        title=gl_issue.title,
        body=gl_issue.description,
        state=normalize_issue_state(gl_issue.state),
        author=gitlab_to_unified_user(gl_issue.author),
        assignees=[gitlab_to_unified_user(a) for a in gl_issue.assignees],
        labels=gl_issue.labels,
        created_at=gl_issue.created_at,
        updated_at=gl_issue.updated_at,
        closed_at=gl_issue.closed_at,
        url=gl_issue.web_url,
    )


def is_draft_title(title: str) -> bool:
    return title.lstrip().startswith(DRAFT_PREFIXES)


def gitlab_to_unified_pull_request(raw: Any) -> PullRequest:
    """Convert a GitLab merge request payload."""
    gl_mr = decode(GitLabMergeRequest, raw, BACKEND, "pull_request")

    state = normalize_state(gl_mr.state)
    merged_at = gl_mr.merged_at
    if state == PullRequestState.MERGED:
        merged_at = merged_at or gl_mr.updated_at or gl_mr.closed_at
        if not merged_at:
            raise ConversionError(
                BACKEND, "pull_request",
                ValueError(f"merged merge request !{gl_mr.iid} has no timestamps")
            )

    return PullRequest(
        id=gl_mr.id,
        number=gl_mr.iid,
        title=gl_mr.title,
        body=gl_mr.description,
        state=state,
        author=gitlab_to_unified_user(gl_mr.author),
        source_branch=gl_mr.source_branch,
        target_branch=gl_mr.target_branch,
        assignees=[gitlab_to_unified_user(a) for a in gl_mr.assignees],
        labels=gl_mr.labels,
        draft=gl_mr.draft or gl_mr.work_in_progress or is_draft_title(gl_mr.title),
        created_at=gl_mr.created_at,
        updated_at=gl_mr.updated_at,
        closed_at=gl_mr.closed_at,
        merged_at=merged_at,
        url=gl_mr.web_url,
    )


def gitlab_to_unified_comment(raw: Any) -> Comment:
    """Convert a GitLab note payload."""
    gl_note = decode(GitLabNote, raw, BACKEND, "comment")
    return Comment(
        id=gl_note.id,
        body=gl_note.body or "",
        author=gitlab_to_unified_user(gl_note.author),
        created_at=gl_note.created_at,
        updated_at=gl_note.updated_at,
    )


def gitlab_to_unified_branch(raw: Any, default_branch: Optional[str] = None) -> Branch:
    """
    Convert a GitLab branch payload.

    When the project's default branch is known it decides `default`;
    otherwise GitLab's own flag is used.
    """
    gl_branch = decode(GitLabBranch, raw, BACKEND, "branch")
    if default_branch is not None:
        is_default = gl_branch.name == default_branch
    else:
        is_default = gl_branch.default
    return Branch(
        name=gl_branch.name,
        protected=gl_branch.protected,
        default=is_default,
        commit_sha=gl_branch.commit.id if gl_branch.commit else None,
    )


def gitlab_to_unified_file_diff(raw: Any) -> FileDiff:
    """Convert one entry of a merge request's changes."""
    gl_diff = decode(GitLabDiff, raw, BACKEND, "file_diff")
    diff_text = gl_diff.diff or ""
    additions, deletions = count_diff_lines(diff_text)
    return FileDiff(
        old_path=None if gl_diff.new_file else (gl_diff.old_path or gl_diff.new_path),
        new_path=gl_diff.new_path,
        diff=diff_text,
        additions=additions,
        deletions=deletions,
        is_new=gl_diff.new_file,
        is_deleted=gl_diff.deleted_file,
        is_renamed=gl_diff.renamed_file,
    )


def gitlab_to_unified_pull_request_diff(raw: Any) -> PullRequestDiff:
    """Convert the /merge_requests/:iid/changes payload."""
    changes = decode(GitLabMergeRequestChanges, raw, BACKEND, "pull_request_diff")
    return PullRequestDiff(
        files=[gitlab_to_unified_file_diff(change) for change in changes.changes]
    )
