"""GitHub REST API payload schemas."""

from typing import Any, Dict, List, Optional, Union

from pydantic import Field

from .common import PayloadModel


class GitHubModel(PayloadModel):
    """Base for GitHub payloads; unknown fields are ignored."""


class GitHubUser(GitHubModel):
    """GitHub user model."""

    id: int
    login: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class GitHubLabel(GitHubModel):
    """GitHub label model."""

    name: str


class GitHubRepository(GitHubModel):
    """GitHub repository model."""

    id: int
    name: str
    full_name: str
    description: Optional[str] = None
    html_url: str
    default_branch: Optional[str] = None
    owner: GitHubUser
    private: bool = False
    visibility: Optional[str] = None
    archived: bool = False
    stargazers_count: int = 0
    forks_count: int = 0
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class GitHubIssue(GitHubModel):
    """GitHub issue model. Pull requests show up here with `pull_request` set."""

    id: int
    number: int
    title: str
    body: Optional[str] = None
    state: str
    user: GitHubUser
    assignees: List[GitHubUser] = Field(default_factory=list)
    labels: List[Union[GitHubLabel, str]] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    closed_at: Optional[str] = None
    html_url: Optional[str] = None
    pull_request: Optional[Dict[str, Any]] = None


class GitHubRef(GitHubModel):
    """Head or base of a pull request."""

    ref: str
    sha: Optional[str] = None


class GitHubPullRequest(GitHubModel):
    """GitHub pull request model."""

    id: int
    number: int
    title: str
    body: Optional[str] = None
    state: str
    user: GitHubUser
    head: GitHubRef
    base: GitHubRef
    assignees: List[GitHubUser] = Field(default_factory=list)
    labels: List[Union[GitHubLabel, str]] = Field(default_factory=list)
    draft: bool = False
    merged: Optional[bool] = None
    merged_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    closed_at: Optional[str] = None
    html_url: Optional[str] = None


class GitHubComment(GitHubModel):
    """GitHub issue comment model."""

    id: int
    body: Optional[str] = None
    user: GitHubUser
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    html_url: Optional[str] = None


class GitHubCommitRef(GitHubModel):
    sha: str


class GitHubBranch(GitHubModel):
    """GitHub branch model."""

    name: str
    protected: bool = False
    commit: Optional[GitHubCommitRef] = None


class GitHubFile(GitHubModel):
    """One entry of /pulls/:number/files."""

    filename: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    patch: Optional[str] = None
    previous_filename: Optional[str] = None
