"""
Base adapter interface for code-hosting backends.
"""
import copy
import threading
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from gitxab.auth.credentials import request_headers
from gitxab.cache import ResponseCache
from gitxab.core.exceptions import (
    AccessPermissionError,
    BackendAPIError,
    NotFoundError,
    UnauthorizedError,
    UnsupportedIdentifierError,
    ValidationError,
)
from gitxab.core.models import (
    BackendType,
    Branch,
    Comment,
    CommentTarget,
    CreateIssueParams,
    CreatePullRequestParams,
    CreateRepositoryParams,
    Issue,
    PullRequest,
    PullRequestDiff,
    RateLimitInfo,
    Repository,
    RepositoryId,
    UpdateIssueParams,
    UpdatePullRequestParams,
    UpdateRepositoryParams,
    User,
    coerce_repository_id,
)
from gitxab.transport import RetryPolicy, Transport
from gitxab.utils import get_logger

logger = get_logger(__name__)

ISSUE_STATES = ("open", "closed", "all")
PULL_REQUEST_STATES = ("open", "closed", "merged", "all")


@dataclass
class AdapterConfig:
    """Configuration for adapter instances."""
    backend: BackendType
    base_url: str
    token: str
    timeout: int = 30
    max_retries: int = 3
    backoff_base: float = 1.0
    max_backoff: float = 60.0
    page_size: int = 30
    verify_ssl: bool = True
    custom_headers: Optional[Dict[str, str]] = None


class BaseAdapter(ABC):
    """
    Base adapter interface for code-hosting backends.

    Every backend adapter inherits from this class and implements all
    abstract methods. All network access goes through `self.transport`.
    Methods are synchronous and safe to call from several threads.
    """

    BACKEND: BackendType = None
    ID_TYPE: type = None
    # Statuses the backend also uses to signal an exhausted quota.
    QUOTA_STATUSES = frozenset()

    def __init__(self, config: AdapterConfig, transport: Optional[Transport] = None):
        """
        Initialize the adapter.

        Args:
            config: Adapter configuration
            transport: Transport to use (built from config if not given)
        """
        self.config = config
        self.transport = transport or self._build_transport(config)
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")
        self.logger.debug(f"Initializing {self.__class__.__name__} for {config.base_url}")

    @classmethod
    def _build_transport(
        cls,
        config: AdapterConfig,
        cache: Optional[ResponseCache] = None,
        session: Optional[requests.Session] = None
    ) -> Transport:
        """Transport with this backend's headers and retry policy."""
        return Transport(
            base_url=config.base_url,
            headers=request_headers(config.token, config.backend, config.custom_headers),
            cache=cache,
            policy=RetryPolicy(
                max_retries=config.max_retries,
                base_delay=config.backoff_base,
                max_delay=config.max_backoff,
                quota_statuses=cls.QUOTA_STATUSES,
            ),
            timeout=config.timeout,
            verify_ssl=config.verify_ssl,
            session=session,
        )

    # Users

    @abstractmethod
    def get_authenticated_user(self) -> User:
        """
        Get the user the token belongs to.

        Raises:
            UnauthorizedError: If the token is rejected
        """
        pass

    def validate_connection(self) -> bool:
        """
        Validate that the adapter can reach the backend with its token.

        Returns:
            True if the token is accepted, False if it is rejected

        Raises:
            BackendAPIError: For other API errors
        """
        try:
            user = self.get_authenticated_user()
        except UnauthorizedError as e:
            self.logger.error(f"{self.BACKEND.value} rejected the token: {e}")
            return False
        self.logger.info(f"Successfully authenticated as: {user.username}")
        return True

    # Repositories

    @abstractmethod
    def list_repositories(self, query: Optional[str] = None, page: int = 1) -> List[Repository]:
        """
        List repositories the user can access, one page at a time.

        Args:
            query: Optional search text
            page: 1-based page number

        Returns:
            List of Repository objects
        """
        pass

    @abstractmethod
    def get_repository(self, repo_id: RepositoryId) -> Repository:
        """
        Get repository information.

        Raises:
            UnsupportedIdentifierError: If the id has the wrong shape
            NotFoundError: If repository doesn't exist
            BackendAPIError: For API errors
        """
        pass

    @abstractmethod
    def create_repository(self, params: CreateRepositoryParams) -> Repository:
        """Create a repository owned by the authenticated user."""
        pass

    @abstractmethod
    def update_repository(self, repo_id: RepositoryId, params: UpdateRepositoryParams) -> Repository:
        """Update repository settings."""
        pass

    # Issues

    @abstractmethod
    def list_issues(self, repo_id: RepositoryId, state: str = "open", page: int = 1) -> List[Issue]:
        """
        List issues in a repository.

        Args:
            repo_id: Repository identifier
            state: open, closed or all
            page: 1-based page number

        Returns:
            Issues whose unified state matches `state`

        Raises:
            ValueError: If state is not recognised
        """
        pass

    @abstractmethod
    def get_issue(self, repo_id: RepositoryId, number: int) -> Issue:
        """Get one issue by its repository-local number."""
        pass

    @abstractmethod
    def create_issue(self, repo_id: RepositoryId, params: CreateIssueParams) -> Issue:
        """Open an issue."""
        pass

    @abstractmethod
    def update_issue(self, repo_id: RepositoryId, number: int, params: UpdateIssueParams) -> Issue:
        """Edit an issue, including closing or reopening it."""
        pass

    # Pull requests

    @abstractmethod
    def list_pull_requests(
        self,
        repo_id: RepositoryId,
        state: str = "open",
        page: int = 1
    ) -> List[PullRequest]:
        """
        List pull requests in a repository.

        Args:
            repo_id: Repository identifier
            state: open, closed, merged or all
            page: 1-based page number

        Returns:
            Pull requests whose unified state matches `state`
        """
        pass

    @abstractmethod
    def get_pull_request(self, repo_id: RepositoryId, number: int) -> PullRequest:
        """
        Fetch pull request details.

        Raises:
            NotFoundError: If PR doesn't exist
            AccessPermissionError: If access is denied
            BackendAPIError: For other API errors
        """
        pass

    @abstractmethod
    def create_pull_request(self, repo_id: RepositoryId, params: CreatePullRequestParams) -> PullRequest:
        """Open a pull request."""
        pass

    @abstractmethod
    def update_pull_request(
        self,
        repo_id: RepositoryId,
        number: int,
        params: UpdatePullRequestParams
    ) -> PullRequest:
        """
        Edit a pull request.

        Raises:
            UnsupportedOperationError: If asked to merge
        """
        pass

    # Comments

    @abstractmethod
    def list_comments(
        self,
        repo_id: RepositoryId,
        number: int,
        target: CommentTarget = CommentTarget.ISSUE,
        page: int = 1
    ) -> List[Comment]:
        """List comments on an issue or pull request."""
        pass

    @abstractmethod
    def get_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        comment_id: int,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """Get one comment."""
        pass

    @abstractmethod
    def create_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        body: str,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """Post a comment on an issue or pull request."""
        pass

    @abstractmethod
    def update_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        comment_id: int,
        body: str,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """
        Update an existing comment.

        Raises:
            NotFoundError: If comment doesn't exist
            AccessPermissionError: If lacking permissions
        """
        pass

    # Branches and diffs

    @abstractmethod
    def _fetch_branches(self, repo_id: RepositoryId) -> List[Dict[str, Any]]:
        """Raw branch payloads for one page."""
        pass

    @abstractmethod
    def _convert_branch(self, raw: Dict[str, Any], default_branch: str) -> Branch:
        pass

    def list_branches(self, repo_id: RepositoryId) -> List[Branch]:
        """
        List branches, marking the repository's default branch.

        The branch list and the repository metadata are fetched
        concurrently and joined before returning.

        Returns:
            List of Branch objects
        """
        repo_id = self._check_repository_id(repo_id)
        with ThreadPoolExecutor(max_workers=2) as executor:
            branches_future = executor.submit(self._fetch_branches, repo_id)
            repository_future = executor.submit(self.get_repository, repo_id)
            raw_branches = branches_future.result()
            repository = repository_future.result()

        branches = [
            self._convert_branch(raw, repository.default_branch)
            for raw in raw_branches
        ]
        self.logger.debug(
            f"Found {len(branches)} branches in {repository.full_name} "
            f"(default: {repository.default_branch})"
        )
        return branches

    @abstractmethod
    def get_pull_request_diff(self, repo_id: RepositoryId, number: int) -> PullRequestDiff:
        """
        Get the changed files of a pull request.

        Returns:
            PullRequestDiff with per-file diffs and totals
        """
        pass

    # Transport-level helpers

    def get_rate_limit(self) -> Optional[RateLimitInfo]:
        """
        Rate-limit counters from the most recent response.

        Returns:
            RateLimitInfo, or None before any response carried them
        """
        return self.transport.rate_limit

    def with_cancel_event(self, event: threading.Event) -> "BaseAdapter":
        """
        An adapter whose calls stop once `event` is set.

        Pending retries are skipped and RequestCancelledError is raised.
        """
        clone = copy.copy(self)
        clone.transport = self.transport.with_cancel_event(event)
        return clone

    @property
    def per_page(self) -> int:
        return self.config.page_size

    def _check_repository_id(self, repo_id: Any) -> RepositoryId:
        """
        Coerce and check an identifier for this backend.

        Raises:
            UnsupportedIdentifierError: If the id belongs to another backend
        """
        try:
            coerced = coerce_repository_id(repo_id)
        except UnsupportedIdentifierError:
            raise UnsupportedIdentifierError(self.BACKEND.value, repo_id)
        if not isinstance(coerced, self.ID_TYPE):
            raise UnsupportedIdentifierError(
                self.BACKEND.value,
                repo_id,
                details=f"{self.BACKEND.value} expects a {self.ID_TYPE.__name__}"
            )
        return coerced

    @staticmethod
    def _check_state(state: str, allowed) -> str:
        normalized = (state or "").strip().lower()
        if normalized not in allowed:
            raise ValueError(f"Invalid state: {state}. Expected one of: {', '.join(allowed)}")
        return normalized

    @staticmethod
    def _error_message(payload: Any) -> Optional[str]:
        """Backend-specific error text from an error payload."""
        return None

    def _map_error(self, error: BackendAPIError, what: str) -> BackendAPIError:
        """
        Refine a transport error using the response payload.

        Args:
            error: Error raised by the transport
            what: Description of the resource, for the message

        Returns:
            The exception to raise
        """
        if type(error) is not BackendAPIError:
            return error

        detail = self._error_message(error.payload) or error.body or ""
        status = error.status_code
        if status == 404:
            return NotFoundError(f"{what} not found", body=error.body, url=error.url)
        if status == 403:
            return AccessPermissionError(
                _with_detail(f"Access denied to {what}", detail),
                body=error.body,
                url=error.url
            )
        if status in (400, 422):
            return ValidationError(
                _with_detail(f"Invalid request for {what}", detail),
                status_code=status,
                body=error.body,
                url=error.url,
                payload=error.payload
            )
        return BackendAPIError(
            _with_detail(f"Request for {what} failed", detail),
            status_code=status,
            body=error.body,
            url=error.url,
            payload=error.payload
        )

    def __repr__(self) -> str:
        """String representation of adapter."""
        return (
            f"{self.__class__.__name__}("
            f"backend={self.config.backend.value}, "
            f"base_url={self.config.base_url})"
        )


def _with_detail(message: str, detail: str) -> str:
    return f"{message}: {detail}" if detail else message
