"""GitLab REST API (v4) payload schemas."""

from typing import List, Optional

from pydantic import Field

from .common import PayloadModel


class GitLabModel(PayloadModel):
    """Base for GitLab payloads; unknown fields are ignored."""


class GitLabUser(GitLabModel):
    """GitLab user model."""

    id: int
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class GitLabNamespace(GitLabModel):
    path: Optional[str] = None
    full_path: Optional[str] = None


class GitLabProject(GitLabModel):
    """GitLab project model."""

    id: int
    name: str
    path_with_namespace: str
    description: Optional[str] = None
    web_url: str
    default_branch: Optional[str] = None
    namespace: Optional[GitLabNamespace] = None
    visibility: Optional[str] = None
    archived: bool = False
    star_count: int = 0
    forks_count: int = 0
    created_at: Optional[str] = None
    last_activity_at: Optional[str] = None


class GitLabIssue(GitLabModel):
    """GitLab issue model. `iid` is the project-local number."""

    id: int
    iid: int
    title: str
    description: Optional[str] = None
    state: str
    author: GitLabUser
    assignees: List[GitLabUser] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    closed_at: Optional[str] = None
    web_url: Optional[str] = None


class GitLabMergeRequest(GitLabModel):
    """GitLab merge request model."""

    id: int
    iid: int
    title: str
    description: Optional[str] = None
    state: str
    author: GitLabUser
    source_branch: str
    target_branch: str
    assignees: List[GitLabUser] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    draft: bool = False
    work_in_progress: bool = False
    merged_at: Optional[str] = None
    closed_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    web_url: Optional[str] = None


class GitLabNote(GitLabModel):
    """GitLab note (comment) model."""

    id: int
    body: Optional[str] = None
    author: GitLabUser
    system: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class GitLabCommitRef(GitLabModel):
    id: str


class GitLabBranch(GitLabModel):
    """GitLab branch model."""

    name: str
    protected: bool = False
    default: bool = False
    commit: Optional[GitLabCommitRef] = None


class GitLabDiff(GitLabModel):
    """One file entry of a merge request's changes."""

    old_path: Optional[str] = None
    new_path: str
    diff: Optional[str] = None
    new_file: bool = False
    deleted_file: bool = False
    renamed_file: bool = False


class GitLabMergeRequestChanges(GitLabModel):
    """Response of /merge_requests/:iid/changes."""

    changes: List[GitLabDiff] = Field(default_factory=list)
