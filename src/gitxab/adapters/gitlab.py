"""
GitLab adapter for the unified repository, issue and merge request API.
"""
from typing import Any, Dict, List, Optional

from gitxab.converters.gitlab import (
    gitlab_to_unified_branch,
    gitlab_to_unified_comment,
    gitlab_to_unified_issue,
    gitlab_to_unified_pull_request,
    gitlab_to_unified_pull_request_diff,
    gitlab_to_unified_repository,
    gitlab_to_unified_user,
    is_draft_title,
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
    IssueState,
    Issue,
    NumericId,
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

# Unified state -> GitLab list filter
_STATE_FILTERS = {
    "open": "opened",
    "closed": "closed",
    "merged": "merged",
    "all": "all",
}

_STATE_EVENTS = {
    "open": "reopen",
    "closed": "close",
}

_NOTEABLE_PATHS = {
    CommentTarget.ISSUE: "issues",
    CommentTarget.PULL_REQUEST: "merge_requests",
}

DRAFT_PREFIX = "Draft: "


def _without_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def _join_labels(labels: Optional[List[str]]) -> Optional[str]:
    if labels is None:
        return None
    return ",".join(labels)


class GitLabAdapter(BaseAdapter):
    """
    GitLab-specific adapter implementation.

    Talks to the GitLab REST API (v4) through the shared transport.
    Projects are addressed by NumericId; merge requests are exposed as
    pull requests and numbered by their project-local iid.
    """

    BACKEND = BackendType.GITLAB
    ID_TYPE = NumericId

    def _project_path(self, repo_id: RepositoryId) -> str:
        repo_id = self._check_repository_id(repo_id)
        return f"/projects/{repo_id.value}"

    @staticmethod
    def _error_message(payload: Any) -> Optional[str]:
        """
        Flatten GitLab's `message` (string, list or field map) or `error`.
        """
        if not isinstance(payload, dict):
            return None
        message = payload.get("message", payload.get("error"))
        if message is None:
            return None
        if isinstance(message, dict):
            parts = []
            for field_name, problems in message.items():
                if isinstance(problems, list):
                    problems = ", ".join(str(p) for p in problems)
                parts.append(f"{field_name}: {problems}")
            return "; ".join(parts) or None
        if isinstance(message, list):
            return "; ".join(str(m) for m in message) or None
        return str(message)

    def _call(self, method: str, path: str, what: str, **kwargs) -> HttpResponse:
        try:
            return self.transport.request(method, path, **kwargs)
        except BackendAPIError as e:
            raise self._map_error(e, what) from e

    def _page_params(self, page: int, **extra) -> Dict[str, Any]:
        params = {"per_page": self.per_page, "page": page}
        params.update(extra)
        return params

    def _resolve_user_ids(self, usernames: List[str]) -> List[int]:
        """
        Look up GitLab user ids for usernames.

        Raises:
            NotFoundError: If a username does not exist
        """
        user_ids = []
        for username in usernames:
            response = self._call(
                "GET", "/users", f"User {username}", params={"username": username}
            )
            matches = response.body or []
            if not matches:
                raise NotFoundError(f"User {username} not found", url=response.url)
            user_ids.append(gitlab_to_unified_user(matches[0]).id)
        return user_ids

    def get_authenticated_user(self) -> User:
        """Get the user the token belongs to."""
        response = self._call("GET", "/user", "authenticated user")
        return gitlab_to_unified_user(response.body)

    def list_repositories(self, query: Optional[str] = None, page: int = 1) -> List[Repository]:
        """
        List projects the authenticated user is a member of.

        Args:
            query: Optional search text
            page: 1-based page number

        Returns:
            List of Repository objects
        """
        logger.info(f"Listing GitLab projects{f' matching {query!r}' if query else ''}")
        response = self._call(
            "GET", "/projects", "projects",
            params=self._page_params(
                page, membership=True, search=query or None, order_by="last_activity_at"
            ),
        )
        return [gitlab_to_unified_repository(item) for item in response.body or []]

    def get_repository(self, repo_id: RepositoryId) -> Repository:
        """
        Get project information.

        Args:
            repo_id: NumericId of the project

        Returns:
            Repository object with details
        """
        path = self._project_path(repo_id)
        logger.debug(f"Fetching project {repo_id}")
        response = self._call("GET", path, f"Project {repo_id}")
        return gitlab_to_unified_repository(response.body)

    def create_repository(self, params: CreateRepositoryParams) -> Repository:
        """Create a project in the authenticated user's namespace."""
        logger.info(f"Creating project {params.name}")
        response = self._call(
            "POST", "/projects", f"Project {params.name}",
            json=_without_none({
                "name": params.name,
                "description": params.description,
                "visibility": "private" if params.private else "public",
                "initialize_with_readme": params.auto_init,
            }),
        )
        return gitlab_to_unified_repository(response.body)

    def update_repository(self, repo_id: RepositoryId, params: UpdateRepositoryParams) -> Repository:
        """
        Update project settings; None fields are left unchanged.

        GitLab archives through its own endpoint, so `archived` costs an
        extra request.
        """
        path = self._project_path(repo_id)
        logger.info(f"Updating project {repo_id}")

        visibility = None
        if params.private is not None:
            visibility = "private" if params.private else "public"
        payload = _without_none({
            "name": params.name,
            "description": params.description,
            "visibility": visibility,
            "default_branch": params.default_branch,
        })

        response = None
        if payload or params.archived is None:
            response = self._call("PUT", path, f"Project {repo_id}", json=payload)
        if params.archived is not None:
            action = "archive" if params.archived else "unarchive"
            response = self._call("POST", f"{path}/{action}", f"Project {repo_id}")
        return gitlab_to_unified_repository(response.body)

    def list_issues(self, repo_id: RepositoryId, state: str = "open", page: int = 1) -> List[Issue]:
        """List issues in a project, filtered to the requested unified state."""
        state = self._check_state(state, ISSUE_STATES)
        path = self._project_path(repo_id)
        logger.info(f"Listing {state} issues in project {repo_id}")

        response = self._call(
            "GET", f"{path}/issues", f"Issues of project {repo_id}",
            params=self._page_params(page, state=_STATE_FILTERS[state]),
        )
        issues = [gitlab_to_unified_issue(raw) for raw in response.body or []]
        if state != "all":
            issues = [issue for issue in issues if issue.state.value == state]

        logger.debug(f"Found {len(issues)} issues in project {repo_id}")
        return issues

    def get_issue(self, repo_id: RepositoryId, number: int) -> Issue:
        """Get one issue by iid."""
        path = self._project_path(repo_id)
        response = self._call(
            "GET", f"{path}/issues/{number}", f"Issue #{number} in project {repo_id}"
        )
        return gitlab_to_unified_issue(response.body)

    def create_issue(self, repo_id: RepositoryId, params: CreateIssueParams) -> Issue:
        """Open an issue; assignee usernames are resolved to user ids."""
        path = self._project_path(repo_id)
        logger.info(f"Creating issue '{params.title}' in project {repo_id}")
        assignee_ids = self._resolve_user_ids(params.assignees) if params.assignees else None
        response = self._call(
            "POST", f"{path}/issues", f"Issue in project {repo_id}",
            json=_without_none({
                "title": params.title,
                "description": params.body,
                "labels": _join_labels(params.labels or None),
                "assignee_ids": assignee_ids,
            }),
        )
        return gitlab_to_unified_issue(response.body)

    def update_issue(self, repo_id: RepositoryId, number: int, params: UpdateIssueParams) -> Issue:
        """Edit an issue; a state change becomes a close/reopen state_event."""
        path = self._project_path(repo_id)
        logger.info(f"Updating issue #{number} in project {repo_id}")
        assignee_ids = None
        if params.assignees is not None:
            assignee_ids = self._resolve_user_ids(params.assignees)
        state_event = None
        if params.state is not None:
            state_event = _STATE_EVENTS[IssueState(params.state).value]
        response = self._call(
            "PUT", f"{path}/issues/{number}", f"Issue #{number} in project {repo_id}",
            json=_without_none({
                "title": params.title,
                "description": params.body,
                "state_event": state_event,
                "labels": _join_labels(params.labels),
                "assignee_ids": assignee_ids,
            }),
        )
        return gitlab_to_unified_issue(response.body)

    def list_pull_requests(
        self,
        repo_id: RepositoryId,
        state: str = "open",
        page: int = 1
    ) -> List[PullRequest]:
        """List merge requests, filtered to the requested unified state."""
        state = self._check_state(state, PULL_REQUEST_STATES)
        path = self._project_path(repo_id)
        logger.info(f"Listing {state} merge requests in project {repo_id}")

        response = self._call(
            "GET", f"{path}/merge_requests", f"Merge requests of project {repo_id}",
            params=self._page_params(page, state=_STATE_FILTERS[state]),
        )
        pull_requests = [gitlab_to_unified_pull_request(raw) for raw in response.body or []]
        if state != "all":
            pull_requests = [pr for pr in pull_requests if pr.state.value == state]

        logger.debug(f"Found {len(pull_requests)} merge requests in project {repo_id}")
        return pull_requests

    def get_pull_request(self, repo_id: RepositoryId, number: int) -> PullRequest:
        """Fetch merge request details by iid."""
        path = self._project_path(repo_id)
        logger.info(f"Fetching MR !{number} from project {repo_id}")
        response = self._call(
            "GET", f"{path}/merge_requests/{number}",
            f"Merge request !{number} in project {repo_id}"
        )
        return gitlab_to_unified_pull_request(response.body)

    def create_pull_request(self, repo_id: RepositoryId, params: CreatePullRequestParams) -> PullRequest:
        """
        Open a merge request.

        GitLab marks drafts by title, so draft=True adds a "Draft: " prefix.
        """
        path = self._project_path(repo_id)
        title = params.title
        if params.draft and not is_draft_title(title):
            title = f"{DRAFT_PREFIX}{title}"
        logger.info(
            f"Creating MR '{title}' in project {repo_id} "
            f"({params.source_branch} -> {params.target_branch})"
        )
        response = self._call(
            "POST", f"{path}/merge_requests", f"Merge request in project {repo_id}",
            json=_without_none({
                "title": title,
                "source_branch": params.source_branch,
                "target_branch": params.target_branch,
                "description": params.body,
            }),
        )
        return gitlab_to_unified_pull_request(response.body)

    def update_pull_request(
        self,
        repo_id: RepositoryId,
        number: int,
        params: UpdatePullRequestParams
    ) -> PullRequest:
        """
        Edit a merge request.

        Raises:
            UnsupportedOperationError: If asked to set the state to merged
        """
        if params.state == PullRequestState.MERGED:
            raise UnsupportedOperationError(
                self.BACKEND.value, "merging a merge request through update_pull_request"
            )
        path = self._project_path(repo_id)
        logger.info(f"Updating MR !{number} in project {repo_id}")
        response = self._call(
            "PUT", f"{path}/merge_requests/{number}",
            f"Merge request !{number} in project {repo_id}",
            json=_without_none({
                "title": params.title,
                "description": params.body,
                "state_event": _STATE_EVENTS[params.state.value] if params.state else None,
                "target_branch": params.target_branch,
            }),
        )
        return gitlab_to_unified_pull_request(response.body)

    def _notes_path(self, repo_id: RepositoryId, number: int, target: CommentTarget) -> str:
        return f"{self._project_path(repo_id)}/{_NOTEABLE_PATHS[CommentTarget(target)]}/{number}/notes"

    def list_comments(
        self,
        repo_id: RepositoryId,
        number: int,
        target: CommentTarget = CommentTarget.ISSUE,
        page: int = 1
    ) -> List[Comment]:
        """List user comments; system notes (state changes etc.) are dropped."""
        path = self._notes_path(repo_id, number, target)
        response = self._call(
            "GET", path, f"Notes on {number} in project {repo_id}",
            params=self._page_params(page, sort="asc"),
        )
        return [
            gitlab_to_unified_comment(raw)
            for raw in response.body or []
            if not raw.get("system")
        ]

    def get_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        comment_id: int,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """Get one note by id."""
        path = self._notes_path(repo_id, number, target)
        response = self._call(
            "GET", f"{path}/{comment_id}", f"Note {comment_id} in project {repo_id}"
        )
        return gitlab_to_unified_comment(response.body)

    def create_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        body: str,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """Post a note on an issue or merge request."""
        path = self._notes_path(repo_id, number, target)
        logger.info(f"Posting note on {number} in project {repo_id}")
        response = self._call(
            "POST", path, f"Note on {number} in project {repo_id}", json={"body": body}
        )
        return gitlab_to_unified_comment(response.body)

    def update_comment(
        self,
        repo_id: RepositoryId,
        number: int,
        comment_id: int,
        body: str,
        target: CommentTarget = CommentTarget.ISSUE
    ) -> Comment:
        """Update an existing note."""
        path = self._notes_path(repo_id, number, target)
        logger.info(f"Updating note {comment_id} in project {repo_id}")
        response = self._call(
            "PUT", f"{path}/{comment_id}", f"Note {comment_id} in project {repo_id}",
            json={"body": body},
        )
        return gitlab_to_unified_comment(response.body)

    def _fetch_branches(self, repo_id: RepositoryId) -> List[Dict[str, Any]]:
        path = self._project_path(repo_id)
        response = self._call(
            "GET", f"{path}/repository/branches", f"Branches of project {repo_id}",
            params={"per_page": self.per_page},
        )
        return response.body or []

    def _convert_branch(self, raw: Dict[str, Any], default_branch: str) -> Branch:
        return gitlab_to_unified_branch(raw, default_branch)

    def get_pull_request_diff(self, repo_id: RepositoryId, number: int) -> PullRequestDiff:
        """Get the changed files of a merge request."""
        path = self._project_path(repo_id)
        logger.debug(f"Fetching changes for MR !{number} in project {repo_id}")
        response = self._call(
            "GET", f"{path}/merge_requests/{number}/changes",
            f"Merge request !{number} in project {repo_id}"
        )
        diff = gitlab_to_unified_pull_request_diff(response.body)
        logger.debug(f"Found {len(diff.files)} changed files in MR !{number}")
        return diff
