"""
Unified data model shared by every backend adapter.

All entities are immutable value objects. Adapters build them fresh from
each response; nothing here holds a connection or caches state.
"""
from dataclasses import dataclass, field, fields
from typing import List, Optional, Dict, Any, Tuple, Union
from enum import Enum

from .exceptions import UnsupportedIdentifierError


class BackendType(Enum):
    """Supported code-hosting backends."""
    GITHUB = "github"
    GITLAB = "gitlab"


class IssueState(Enum):
    """Unified issue states."""
    OPEN = "open"
    CLOSED = "closed"


class PullRequestState(Enum):
    """Unified pull/merge request states."""
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"


class CommentTarget(Enum):
    """What a comment thread hangs off."""
    ISSUE = "issue"
    PULL_REQUEST = "pull_request"


@dataclass(frozen=True)
class NumericId:
    """Repository identifier in numeric form (GitLab project id)."""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise UnsupportedIdentifierError("numeric", self.value)

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class PathId:
    """Repository identifier in "owner/name" form (GitHub full name)."""
    path: str

    def __post_init__(self):
        if not isinstance(self.path, str) or "/" not in self.path.strip("/"):
            raise UnsupportedIdentifierError("path", self.path)

    @property
    def owner(self) -> str:
        return split_full_name(self.path)[0]

    @property
    def name(self) -> str:
        return split_full_name(self.path)[1]

    def __str__(self) -> str:
        return self.path


RepositoryId = Union[NumericId, PathId]


def split_full_name(full_name: str) -> Tuple[str, str]:
    """
    Split "owner/name" on the last separator.

    GitLab namespaces nest ("group/sub/project"), so everything before the
    last "/" is the owner.

    Args:
        full_name: Repository full name

    Returns:
        Tuple of (owner, name)

    Raises:
        ValueError: If the name has no separator
    """
    owner, sep, name = full_name.rpartition("/")
    if not sep or not owner or not name:
        raise ValueError(
            f"Invalid repository name: {full_name}. "
            "Expected format: 'owner/repo'"
        )
    return owner, name


def coerce_repository_id(raw: Any) -> RepositoryId:
    """
    Turn user input into a repository identifier.

    Accepts an existing identifier, an int, a digit-only string or an
    "owner/name" string.

    Raises:
        UnsupportedIdentifierError: For anything else
    """
    if isinstance(raw, (NumericId, PathId)):
        return raw
    if isinstance(raw, bool):
        raise UnsupportedIdentifierError("any", raw)
    if isinstance(raw, int):
        return NumericId(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if text.isdigit():
            return NumericId(int(text))
        if "/" in text.strip("/"):
            return PathId(text.strip("/"))
    raise UnsupportedIdentifierError("any", raw)


def _plain(value: Any) -> Any:
    """Render a model field as JSON-ready data."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (NumericId, PathId)):
        return str(value)
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _DictMixin:
    """Shared to_dict() for the entity dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class User(_DictMixin):
    """
    A backend account.

    Attributes:
        id: Backend user id
        username: Login name
        name: Display name (falls back to username)
        avatar_url: Avatar image URL
    """
    id: int
    username: str
    name: Optional[str] = None
    avatar_url: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", self.username)


@dataclass(frozen=True)
class Repository(_DictMixin):
    """
    A hosted repository.

    Attributes:
        id: Identifier accepted back by the same adapter's get_repository
        name: Short name
        full_name: "owner/name"
        description: Free text description
        url: Web URL
        default_branch: Name of the default branch
        backend: Backend the repository lives on
        owner: Owner (user, organisation or group path)
        visibility: public, private or internal
        archived: Whether the repository is archived
        stars: Star count
        forks: Fork count
        created_at: ISO-8601 creation time
        updated_at: ISO-8601 last update time
    """
    id: RepositoryId
    name: str
    full_name: str
    description: Optional[str]
    url: str
    default_branch: str
    backend: BackendType
    owner: str
    visibility: Optional[str] = None
    archived: Optional[bool] = None
    stars: Optional[int] = None
    forks: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.backend, str):
            object.__setattr__(self, "backend", BackendType(self.backend.lower()))
        split_full_name(self.full_name)


@dataclass(frozen=True)
class Issue(_DictMixin):
    """
    An issue. `number` is unique within its repository only.

    Labels are kept sorted and de-duplicated since their order carries no
    meaning; assignees keep backend order. Both are stored as tuples.
    """
    id: int
    number: int
    title: str
    body: Optional[str]
    state: IssueState
    author: User
    assignees: Tuple[User, ...] = ()
    labels: Tuple[str, ...] = ()
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    closed_at: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.state, str):
            object.__setattr__(self, "state", IssueState(self.state.lower()))
        object.__setattr__(self, "labels", tuple(sorted(set(self.labels))))
        object.__setattr__(self, "assignees", tuple(self.assignees))


@dataclass(frozen=True)
class PullRequest(_DictMixin):
    """
    A pull request (GitHub) or merge request (GitLab).

    A merged request always carries merged_at.
    """
    id: int
    number: int
    title: str
    body: Optional[str]
    state: PullRequestState
    author: User
    source_branch: str
    target_branch: str
    assignees: Tuple[User, ...] = ()
    labels: Tuple[str, ...] = ()
    draft: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    closed_at: Optional[str] = None
    merged_at: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.state, str):
            object.__setattr__(self, "state", PullRequestState(self.state.lower()))
        object.__setattr__(self, "labels", tuple(sorted(set(self.labels))))
        object.__setattr__(self, "assignees", tuple(self.assignees))

        if self.state == PullRequestState.MERGED and not self.merged_at:
            raise ValueError(f"Merged pull request #{self.number} has no merged_at")

    @property
    def is_merged(self) -> bool:
        return self.state == PullRequestState.MERGED


@dataclass(frozen=True)
class Comment(_DictMixin):
    """A comment on an issue or pull request."""
    id: int
    body: str
    author: User
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class Branch(_DictMixin):
    """A branch. Exactly one branch per repository has default=True."""
    name: str
    protected: bool = False
    default: bool = False
    commit_sha: Optional[str] = None


@dataclass(frozen=True)
class FileDiff(_DictMixin):
    """
    Changes to one file in a pull request.

    Attributes:
        old_path: Path before the change (None for added files)
        new_path: Path after the change
        diff: Unified diff text
        additions: Lines added
        deletions: Lines deleted
        is_new: File was added
        is_deleted: File was removed
        is_renamed: File was moved
    """
    old_path: Optional[str]
    new_path: str
    diff: str = ""
    additions: int = 0
    deletions: int = 0
    is_new: bool = False
    is_deleted: bool = False
    is_renamed: bool = False

    def __post_init__(self):
        if self.is_new and self.old_path is not None:
            object.__setattr__(self, "old_path", None)

    @property
    def total_changes(self) -> int:
        """Total number of lines changed."""
        return self.additions + self.deletions


@dataclass(frozen=True)
class PullRequestDiff:
    """All file changes of a pull request, with summed totals."""
    files: Tuple[FileDiff, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "files", tuple(self.files))

    @property
    def total_additions(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def total_deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'files': [f.to_dict() for f in self.files],
            'total_additions': self.total_additions,
            'total_deletions': self.total_deletions,
        }


@dataclass(frozen=True)
class RateLimitInfo(_DictMixin):
    """Rate limit counters from the last response headers."""
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_at: Optional[int] = None  # Unix timestamp
    used: Optional[int] = None
    resource: Optional[str] = None


@dataclass
class CreateRepositoryParams:
    """Parameters for creating a repository."""
    name: str
    description: Optional[str] = None
    private: bool = False
    auto_init: bool = False


@dataclass
class UpdateRepositoryParams:
    """Parameters for updating a repository. None leaves a field as is."""
    name: Optional[str] = None
    description: Optional[str] = None
    private: Optional[bool] = None
    default_branch: Optional[str] = None
    archived: Optional[bool] = None


@dataclass
class CreateIssueParams:
    """Parameters for opening an issue."""
    title: str
    body: Optional[str] = None
    assignees: List[str] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)


@dataclass
class UpdateIssueParams:
    """Parameters for updating an issue. None leaves a field as is."""
    title: Optional[str] = None
    body: Optional[str] = None
    state: Optional[IssueState] = None
    assignees: Optional[List[str]] = None
    labels: Optional[List[str]] = None

    def __post_init__(self):
        if isinstance(self.state, str):
            self.state = IssueState(self.state.lower())


@dataclass
class CreatePullRequestParams:
    """Parameters for opening a pull request."""
    title: str
    source_branch: str
    target_branch: str
    body: Optional[str] = None
    draft: bool = False


@dataclass
class UpdatePullRequestParams:
    """Parameters for updating a pull request. None leaves a field as is."""
    title: Optional[str] = None
    body: Optional[str] = None
    state: Optional[PullRequestState] = None
    target_branch: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.state, str):
            self.state = PullRequestState(self.state.lower())
