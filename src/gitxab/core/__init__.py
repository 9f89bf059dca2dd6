"""Core models and exceptions for the GitXab client."""

from .models import (
    BackendType,
    IssueState,
    PullRequestState,
    CommentTarget,
    NumericId,
    PathId,
    RepositoryId,
    split_full_name,
    coerce_repository_id,
    User,
    Repository,
    Issue,
    PullRequest,
    Comment,
    Branch,
    FileDiff,
    PullRequestDiff,
    RateLimitInfo,
    CreateRepositoryParams,
    UpdateRepositoryParams,
    CreateIssueParams,
    UpdateIssueParams,
    CreatePullRequestParams,
    UpdatePullRequestParams,
)

from .exceptions import (
    GitXabError,
    ConfigurationError,
    NoCredentialError,
    UnsupportedIdentifierError,
    UnsupportedOperationError,
    BackendAPIError,
    UnauthorizedError,
    NotFoundError,
    AccessPermissionError,
    ValidationError,
    RateLimitError,
    TransientNetworkError,
    ConversionError,
    RequestCancelledError,
)

__all__ = [
    # Enums
    "BackendType",
    "IssueState",
    "PullRequestState",
    "CommentTarget",
    # Identifiers
    "NumericId",
    "PathId",
    "RepositoryId",
    "split_full_name",
    "coerce_repository_id",
    # Models
    "User",
    "Repository",
    "Issue",
    "PullRequest",
    "Comment",
    "Branch",
    "FileDiff",
    "PullRequestDiff",
    "RateLimitInfo",
    "CreateRepositoryParams",
    "UpdateRepositoryParams",
    "CreateIssueParams",
    "UpdateIssueParams",
    "CreatePullRequestParams",
    "UpdatePullRequestParams",
    # Exceptions
    "GitXabError",
    "ConfigurationError",
    "NoCredentialError",
    "UnsupportedIdentifierError",
    "UnsupportedOperationError",
    "BackendAPIError",
    "UnauthorizedError",
    "NotFoundError",
    "AccessPermissionError",
    "ValidationError",
    "RateLimitError",
    "TransientNetworkError",
    "ConversionError",
    "RequestCancelledError",
]
