"""
Utility functions for testing.
"""

import json
from typing import Any, Dict, Optional

import requests
from requests.structures import CaseInsensitiveDict

from gitxab.transport import HttpResponse

GITHUB_TEST_TOKEN = "ghp_" + "a" * 36
GITLAB_TEST_TOKEN = "glpat-" + "b" * 20


def make_response(
    status: int = 200,
    json_body: Any = None,
    headers: Optional[Dict[str, str]] = None,
    url: str = "https://api.example.com/"
) -> requests.Response:
    """
    Build a requests.Response without touching the network.

    Args:
        status: HTTP status code
        json_body: Body to serialize as JSON (None for an empty body)
        headers: Response headers

    Returns:
        requests.Response
    """
    response = requests.Response()
    response.status_code = status
    response._content = b"" if json_body is None else json.dumps(json_body).encode("utf-8")
    response.headers = CaseInsensitiveDict(headers or {})
    response.encoding = "utf-8"
    response.url = url
    return response


def http_response(body: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
    """Build the transport-level response adapters receive."""
    return HttpResponse(
        status_code=status,
        headers=CaseInsensitiveDict(headers or {}),
        body=body,
        url="https://api.example.com/",
    )


def github_user(login: str = "octocat", user_id: int = 1, **kwargs) -> Dict[str, Any]:
    data = {"id": user_id, "login": login, "avatar_url": f"https://avatars.example.com/{login}"}
    data.update(kwargs)
    return data


def github_repo(full_name: str = "octocat/hello-world", **kwargs) -> Dict[str, Any]:
    owner = full_name.rsplit("/", 1)[0]
    data = {
        "id": 1296269,
        "name": full_name.rsplit("/", 1)[1],
        "full_name": full_name,
        "description": "My first repository",
        "html_url": f"https://github.com/{full_name}",
        "default_branch": "main",
        "owner": github_user(owner),
        "private": False,
        "stargazers_count": 80,
        "forks_count": 9,
        "created_at": "2011-01-26T19:01:12Z",
        "updated_at": "2011-01-26T19:14:43Z",
    }
    data.update(kwargs)
    return data


def github_issue(number: int = 1, state: str = "open", **kwargs) -> Dict[str, Any]:
    data = {
        "id": 1000 + number,
        "number": number,
        "title": f"Issue {number}",
        "body": "Something is broken",
        "state": state,
        "user": github_user(),
        "assignees": [],
        "labels": [{"name": "bug"}],
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-02T00:00:00Z",
        "closed_at": None,
        "html_url": f"https://github.com/octocat/hello-world/issues/{number}",
    }
    data.update(kwargs)
    return data


def github_pull(number: int = 42, state: str = "open", **kwargs) -> Dict[str, Any]:
    data = {
        "id": 2000 + number,
        "number": number,
        "title": f"Pull request {number}",
        "body": "Adds a feature",
        "state": state,
        "user": github_user(),
        "head": {"ref": "feature", "sha": "abc123"},
        "base": {"ref": "main", "sha": "def456"},
        "assignees": [],
        "labels": [],
        "draft": False,
        "merged": False,
        "merged_at": None,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-03T00:00:00Z",
        "closed_at": None,
        "html_url": f"https://github.com/octocat/hello-world/pull/{number}",
    }
    data.update(kwargs)
    return data


def gitlab_user(username: str = "alice", user_id: int = 7, **kwargs) -> Dict[str, Any]:
    data = {"id": user_id, "username": username, "name": username.capitalize()}
    data.update(kwargs)
    return data


def gitlab_project(project_id: int = 12345, path: str = "group/project", **kwargs) -> Dict[str, Any]:
    data = {
        "id": project_id,
        "name": path.rsplit("/", 1)[1],
        "path_with_namespace": path,
        "description": "A GitLab project",
        "web_url": f"https://gitlab.com/{path}",
        "default_branch": "main",
        "visibility": "private",
        "archived": False,
        "star_count": 3,
        "forks_count": 1,
        "created_at": "2024-01-01T00:00:00Z",
        "last_activity_at": "2024-02-01T00:00:00Z",
    }
    data.update(kwargs)
    return data


def gitlab_issue(iid: int = 1, state: str = "opened", **kwargs) -> Dict[str, Any]:
    data = {
        "id": 500 + iid,
        "iid": iid,
        "title": f"Issue {iid}",
        "description": "Something is broken",
        "state": state,
        "author": gitlab_user(),
        "assignees": [],
        "labels": ["bug"],
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-02T00:00:00Z",
        "web_url": f"https://gitlab.com/group/project/-/issues/{iid}",
    }
    data.update(kwargs)
    return data


def gitlab_merge_request(iid: int = 3, state: str = "opened", **kwargs) -> Dict[str, Any]:
    data = {
        "id": 900 + iid,
        "iid": iid,
        "title": f"Merge request {iid}",
        "description": "Adds a feature",
        "state": state,
        "author": gitlab_user(),
        "source_branch": "feature",
        "target_branch": "main",
        "assignees": [],
        "labels": [],
        "draft": False,
        "work_in_progress": False,
        "merged_at": None,
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-03T00:00:00Z",
        "web_url": f"https://gitlab.com/group/project/-/merge_requests/{iid}",
    }
    data.update(kwargs)
    return data
