"""Pure converters from backend payloads to the unified model."""

from .common import normalize_state, normalize_issue_state, count_diff_lines
from .github import (
    github_to_unified_user,
    github_to_unified_repository,
    github_to_unified_issue,
    github_to_unified_pull_request,
    github_to_unified_comment,
    github_to_unified_branch,
    github_to_unified_file_diff,
    github_to_unified_pull_request_diff,
)
from .gitlab import (
    gitlab_to_unified_user,
    gitlab_to_unified_repository,
    gitlab_to_unified_issue,
    gitlab_to_unified_pull_request,
    gitlab_to_unified_comment,
    gitlab_to_unified_branch,
    gitlab_to_unified_file_diff,
    gitlab_to_unified_pull_request_diff,
)

__all__ = [
    "normalize_state",
    "normalize_issue_state",
    "count_diff_lines",
    "github_to_unified_user",
    "github_to_unified_repository",
    "github_to_unified_issue",
    "github_to_unified_pull_request",
    "github_to_unified_comment",
    "github_to_unified_branch",
    "github_to_unified_file_diff",
    "github_to_unified_pull_request_diff",
    "gitlab_to_unified_user",
    "gitlab_to_unified_repository",
    "gitlab_to_unified_issue",
    "gitlab_to_unified_pull_request",
    "gitlab_to_unified_comment",
    "gitlab_to_unified_branch",
    "gitlab_to_unified_file_diff",
    "gitlab_to_unified_pull_request_diff",
]
