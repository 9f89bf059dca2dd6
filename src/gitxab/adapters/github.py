"""
GitHub adapter for the unified repository, issue and pull request API.
"""
from typing import Any, Dict, List, Optional

from gitxab.converters.github import (
    github_to_unified_branch,
    github_to_unified_comment,
    github_to_unified_issue,
    github_to_unified_pull_request,
    github_to_unified_pull_request_diff,
    github_to_unified_repository,
    github_to_unified_user,
)
from gitxab.core.exceptions import (
    BackendAPIError,
    NotFoundError,
    UnsupportedOperationError,
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
    PathId,
    PullRequest,
    PullRequestDiff,
    PullRequestState,
    Repository,
    RepositoryId,
    UpdateIssueParams,
    UpdatePullRequestParams,
    UpdateRepositoryParams,
    User,
)
from gitxab.transport import HttpResponse
from gitxab.utils import get_logger
from .base import BaseAdapter, ISSUE_STATES, PULL_REQUEST_STATES

logger = get_logger(__name__)


def _without_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


class GitHubAdapter(BaseAdapter):
    """
    GitHub-specific adapter implementation.

    Talks to the GitHub REST API (v3) through the shared transport.
    Repositories are addressed by PathId ("owner/name").
    """

    BACKEND = BackendType.GITHUB
    ID_TYPE = PathId
    QUOTA_STATUSES = frozenset({403})

    def _repo_path(self, repo_id: RepositoryId) -> str:
        repo_id = self._check_repository_id(repo_id)
        return f"/repos/{repo_id.owner}/{repo_id.name}"

    @staticmethod
    def _error_message(payload: Any) -> Optional[str]:
        """Join GitHub's `message` and `errors[]` into one string."""
        if not isinstance(payload, dict):
            return None
        parts = []
        if payload.get("message"):
            parts.append(str(payload["message"]))
        for error in payload.get("errors") or []:
            if isinstance(error, dict):
                text = error.get("message") or " ".join(
                    str(error[key]) for key in ("resource", "field", "code") if error.get(key)
                )
            else:
                text = str(error)
            if text:
                parts.append(text)
        return "; ".join(parts) or None

    def _call(self, method: str, path: str, what: str, **kwargs) -> HttpResponse:
        try:
            return self.transport.request(method, path, **kwargs)
        except BackendAPIError as e:
            raise self._map_error(e, what) from e

    def _page_params(self, page: int, **extra) -> Dict[str, Any]:
        params = {"per_page": self.per_page, "page": page}
        params.update(extra)
        return params

    def get_authenticated_user(self) -> User:
        """Get the user the token belongs to."""
        response = self._call("GET", "/user", "authenticated user")
        return github_to_unified_user(response.body)

    def list_repositories(self, query: Optional[str] = None, page: int = 1) -> List[Repository]:
        """
        List repositories of the authenticated user, or search all of GitHub.

        Args:
            query: Search text; uses /search/repositories when given
            page: 1-based page number

        Returns:
            List of Repository objects
        """
        if query:
            logger.info(f"Searching GitHub repositories for '{query}'")
            response = self._call(
                "GET", "/search/repositories", "repository search",
                params=self._page_params(page, q=query),
            )
            items = (response.body or {}).get("items", [])
        else:
            logger.info("Listing repositories of the authenticated user")
            response = self._call(
                "GET", "/user/repos", "repositories",
                params=self._page_params(page, sort="updated"),
            )
            items = response.body or []

        return [github_to_unified_repository(item) for item in items]

    def get_repository(self, repo_id: RepositoryId) -> Repository:
        """
        Get repository information.

        Args:
            repo_id: PathId of the repository

        Returns:
            Repository object with details
        """
        path = self._repo_path(repo_id)
        logger.debug(f"Fetching repository {repo_id}")
        response = self._call("GET", path, f"Repository {repo_id}")
        return github_to_unified_repository(response.body)

    def create_repository(self, params: CreateRepositoryParams) -> Repository:
        """Create a repository owned by the authenticated user."""
        logger.info(f"Creating repository {params.name}")
        response = self._call(
            "POST", "/user/repos", f"Repository {params.name}",
            json=_without_none({
                "name": params.name,
                "description": params.description,
                "private": params.private,
                "auto_init": params.auto_init,
            }),
        )
        return github_to_unified_repository(response.body)

    def update_repository(self, repo_id: RepositoryId, params: UpdateRepositoryParams) -> Repository:
        """Update repository settings; None fields are left unchanged."""
        path = self._repo_path(repo_id)
        logger.info(f"Updating repository {repo_id}")
        response = self._call(
            "PATCH", path, f"Repository {repo_id}",
            json=_without_none({
                "name": params.name,
                "description": params.description,
                "private": params.private,
                "default_branch": params.default_branch,
                "archived": params.archived,
            }),
        )
        return github_to_unified_repository(response.body)

    def list_issues(self, repo_id: RepositoryId, state: str = "open", page: int = 1) -> List[Issue]:
        """
        List issues in a repository.

        GitHub's issue list also contains pull requests; those are dropped.
        """
        state = self._check_state(state, ISSUE_STATES)
        path = self._repo_path(repo_id)
        logger.info(f"Listing {state} issues in {repo_id}")

        response = self._call(
            "GET", f"{path}/issues", f"Issues of {repo_id}",
            params=self._page_params(page, state=state),
        )
        issues = [
            github_to_unified_issue(raw)
            for raw in response.body or []
            if not raw.get("pull_request")
        ]
        if state != "all":
            issues = [issue for issue in issues if issue.state.value == state]

        logger.debug(f"Found {len(issues)} issues in {repo_id}")
        return issues

    def get_issue(self, repo_id: RepositoryId, number: int) -> Issue:
        """
        Get one issue.

        Raises:
            NotFoundError: If the issue doesn't exist or is a pull request
        """
        path = self._repo_path(repo_id)
        response = self._call("GET", f"{path}/issues/{number}", f"Issue #{number} in {repo_id}")
        if isinstance(response.body, dict) and response.body.get("pull_request"):
            raise NotFoundError(
                f"Issue #{number} in {repo_id} is a pull request",
                url=response.url
            )
        return github_to_unified_issue(response.body)

    def create_issue(self, repo_id: RepositoryId, params: CreateIssueParams) -> Issue:
        """Open an issue."""
        path = self._repo_path(repo_id)
        logger.info(f"Creating issue '{params.title}' in {repo_id}")
        response = self._call(
            "POST", f"{path}/issues", f"Issue in {repo_id}",
            json=_without_none({
                "title": params.title,
                "body": params.body,
                "assignees": params.assignees or None,
                "labels": params.labels or None,
            }),
        )
        return github_to_unified_issue(response.body)

    def update_issue(self, repo_id: RepositoryId, number: int, params: UpdateIssueParams) -> Issue:
        """Edit an issue, including closing or reopening it."""
        path = self._repo_path(repo_id)
        logger.info(f"Updating issue #{number} in {repo_id}")
        response = self._call(
            "PATCH", f"{path}/issues/{number}", f"Issue #{number} in {repo_id}",
            json=_without_none({
                "title": params.title,
                "body": params.body,
                "state": params.state.value if params.state else None,
                "assignees": params.assignees,
                "labels": params.labels,
            }),
        )
        return github_to_unified_issue(response.body)

    def list_pull_requests(
        self,
        repo_id: RepositoryId,
        state: str = "open",
        page: int = 1
    ) -> List[PullRequest]:
        """
        List pull requests in a repository.

        GitHub has no "merged" filter; merged and closed pull requests are
        both fetched as closed and told apart after conversion.
        """
        state = self._check_state(state, PULL_REQUEST_STATES)
        path = self._repo_path(repo_id)
        api_state = "closed" if state == "merged" else state
        logger.info(f"Listing {state} pull requests in {repo_id}")

        response = self._call(
            "GET", f"{path}/pulls", f"Pull requests of {repo_id}",
            params=self._page_params(page, state=api_state),
        )
        pull_requests = [github_to_unified_pull_request(raw) for raw in response.body or []]
        if state != "all":
            pull_requests = [pr for pr in pull_requests if pr.state.value == state]

        logger.debug(f"Found {len(pull_requests)} pull requests in {repo_id}")
        return pull_requests

    def get_pull_request(self, repo_id: RepositoryId, number: int) -> PullRequest:
        """Fetch pull request details from GitHub."""
        path = self._repo_path(repo_id)
        logger.info(f"Fetching PR #{number} from {repo_id}")
        response = self._call(
            "GET", f"{path}/pulls/{number}", f"Pull request #{number} in {repo_id}"
        )
        pr = github_to_unified_pull_request(response.body)
        logger.info(f"Successfully fetched PR #{number}: '{pr.title}'")
        return pr

    def create_pull_request(self, repo_id: RepositoryId, params: CreatePullRequestParams) -> PullRequest:
        """Open a pull request from source_branch into target_branch."""
        path = self._repo_path(repo_id)
        logger.info(
            f"Creating PR '{params.title}' in {repo_id} "
            f"({params.source_branch} -> {params.target_branch})"
        )
        response = self._call(
            "POST", f"{path}/pulls", f"Pull request in {repo_id}",
            json=_without_none({
                "title": params.title,
                "head": params.source_branch,
                "base": params.target_branch,
                "body": params.body,
                "draft": params.draft,
            }),
        )
        return github_to_unified_pull_request(response.body)

    def update_pull_request(
        self,
        repo_id: RepositoryId,
        number: int,
        params: UpdatePullRequestParams
    ) -> PullRequest:
        """
        Edit a pull request.

        Raises:
            UnsupportedOperationError: If asked to set the state to merged
        """
        if params.state == PullRequestState.MERGED:
            raise UnsupportedOperationError(
                self.BACKEND.value, "merging a pull request through update_pull_request"
            )
        path = self._repo_path(repo_id)
        logger.info(f"Updating PR #{number} in {repo_id}")
        response = self._call(
            "PATCH", f"{path}/pulls/{number}", f"Pull request #{number} in {repo_id}",
            json=_without_none({
                "title": params.title,
                "body": params.body,
                "state": params.state.value if params.state else None,
                "base": params.target_branch,
            }),
        )
        return github_to_unified_pull_request(response.body)

    # GitHub keeps pull request conversations on the issue with the same
    # number, so `target` does not change the endpoint.

    def list_comments(
        self,
        repo_id: RepositoryId,
        number: int,
        target: CommentTarget = CommentTarget.ISSUE,
        page: int = 1
    ) -> List[Comment]:
        """List comments on an issue or pull request."""
        path = self._repo_path(repo_id)
        response = self._call(
            "GET", f"{path}/issues/{number}/comments", f"Comments on #{number} in {repo_id}",
            params=self._page_params(page),
        )
        return [github_to_unified_comment(raw) for raw in response.body or []]

    def get_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        comment_id: int,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """Get one comment by id."""
        path = self._repo_path(repo_id)
        response = self._call(
            "GET", f"{path}/issues/comments/{comment_id}", f"Comment {comment_id} in {repo_id}"
        )
        return github_to_unified_comment(response.body)

    def create_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        body: str,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """Post a comment on an issue or pull request."""
        path = self._repo_path(repo_id)
        logger.info(f"Posting comment on #{number} in {repo_id}")
        response = self._call(
            "POST", f"{path}/issues/{number}/comments", f"Comment on #{number} in {repo_id}",
            json={"body": body},
        )
        return github_to_unified_comment(response.body)

    def update_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        comment_id: int,
        body: str,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """Update an existing comment."""
        path = self._repo_path(repo_id)
        logger.info(f"Updating comment {comment_id} in {repo_id}")
        response = self._call(
            "PATCH", f"{path}/issues/comments/{comment_id}", f"Comment {comment_id} in {repo_id}",
            json={"body": body},
        )
        return github_to_unified_comment(response.body)

    def _fetch_branches(self, repo_id: RepositoryId) -> List[Dict[str, Any]]:
        path = self._repo_path(repo_id)
        response = self._call(
            "GET", f"{path}/branches", f"Branches of {repo_id}",
            params={"per_page": self.per_page},
        )
        return response.body or []

    def _convert_branch(self, raw: Dict[str, Any], default_branch: str) -> Branch:
        return github_to_unified_branch(raw, default_branch)

    def get_pull_request_diff(self, repo_id: RepositoryId, number: int) -> PullRequestDiff:
        """Get the changed files of a pull request."""
        path = self._repo_path(repo_id)
        logger.debug(f"Fetching files for PR #{number} in {repo_id}")
        response = self._call(
            "GET", f"{path}/pulls/{number}/files", f"Pull request #{number} in {repo_id}",
            params={"per_page": self.per_page},
        )
        diff = github_to_unified_pull_request_diff(response.body or [])
        logger.debug(f"Found {len(diff.files)} changed files in PR #{number}")
        return diff
