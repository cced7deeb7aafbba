"""GitHub API adapter."""

from datetime import datetime
from typing import Any, Dict, List

import requests

from codeagent.adapters.base import GitPlatformAdapter, GitPlatformError
from codeagent.models import PR, Comment, Issue, ReviewComment

PER_PAGE = 100

# Reaction endpoints by subject kind
_REACTION_PATHS = {
    "issue": "/repos/{repo}/issues/{id}/reactions",
    "issue_comment": "/repos/{repo}/issues/comments/{id}/reactions",
    "review_comment": "/repos/{repo}/pulls/comments/{id}/reactions",
}


def _parse_iso(s: str | None) -> datetime | None:
    if not s:
        return None
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _login(data: Dict[str, Any]) -> str:
    user = data.get("user") or {}
    return user.get("login") or "anonymous"


def _issue_from_api(data: Dict[str, Any]) -> Issue:
    return Issue(
        number=data["number"],
        title=data.get("title") or "",
        body=data.get("body") or "",
        author=_login(data),
    )


def _comment_from_api(data: Dict[str, Any]) -> Comment:
    return Comment(
        id=data["id"],
        body=data.get("body") or "",
        author=_login(data),
        created_at=_parse_iso(data.get("created_at")),
    )


def _pr_from_api(data: Dict[str, Any]) -> PR:
    head = data.get("head") or {}
    base = data.get("base") or {}
    return PR(
        number=data["number"],
        title=data.get("title") or "",
        body=data.get("body") or "",
        author=_login(data),
        head_branch=head.get("ref", ""),
        base_branch=base.get("ref", ""),
        html_url=data.get("html_url"),
    )


def _review_comment_from_api(data: Dict[str, Any]) -> ReviewComment:
    return ReviewComment(
        id=data["id"],
        body=data.get("body") or "",
        author=_login(data),
        path=data.get("path") or "",
        line=data.get("line"),
        in_reply_to_id=data.get("in_reply_to_id"),
        created_at=_parse_iso(data.get("created_at")),
    )


class GitHubAdapter(GitPlatformAdapter):
    """GitHub REST API implementation."""

    def __init__(self, token: str, api_url: str = "https://api.github.com") -> None:
        self._api_url = api_url.rstrip("/")
        self._session = requests.Session()
        self._session.headers["Authorization"] = f"token {token}"
        self._session.headers["Accept"] = "application/vnd.github.v3+json"

    def _url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        return f"{self._api_url}{path}" if path.startswith("/") else f"{self._api_url}/{path}"

    def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> requests.Response:
        try:
            resp = self._session.request(method, self._url(path), params=params, json=json, timeout=30)
        except requests.RequestException as e:
            raise GitPlatformError(f"network error: {e}", retryable=True) from e
        if resp.status_code >= 400:
            msg = resp.text or resp.reason or str(resp.status_code)
            try:
                msg = resp.json().get("message", msg)
            except (ValueError, AttributeError):
                pass
            raise GitPlatformError(f"{resp.status_code}: {msg}", retryable=resp.status_code >= 500)
        return resp

    def _paginate(self, path: str, params: Dict[str, Any] | None = None) -> List[Dict[str, Any]]:
        """GET every page of a list endpoint by following Link rel=next."""
        items: List[Dict[str, Any]] = []
        next_path: str | None = path
        next_params: Dict[str, Any] | None = {**(params or {}), "per_page": PER_PAGE}
        while next_path:
            resp = self._request("GET", next_path, params=next_params)
            items.extend(resp.json() or [])
            next_link = (resp.links or {}).get("next") or {}
            next_path = next_link.get("url")
            # The next URL already carries the query string
            next_params = None
        return items

    def get_issue(self, repo: str, issue_number: int) -> Issue:
        try:
            resp = self._request("GET", f"/repos/{repo}/issues/{issue_number}")
        except GitPlatformError as e:
            if str(e).startswith("404"):
                raise GitPlatformError(f"Not found: issue #{issue_number}") from e
            raise
        return _issue_from_api(resp.json())

    def get_pr(self, repo: str, pr_number: int) -> PR:
        resp = self._request("GET", f"/repos/{repo}/pulls/{pr_number}")
        return _pr_from_api(resp.json())

    def get_issue_comments(self, repo: str, issue_number: int) -> List[Comment]:
        data = self._paginate(f"/repos/{repo}/issues/{issue_number}/comments")
        return [_comment_from_api(d) for d in data]

    def list_pr_review_comments(self, repo: str, pr_number: int) -> List[ReviewComment]:
        data = self._paginate(f"/repos/{repo}/pulls/{pr_number}/comments")
        return [_review_comment_from_api(d) for d in data]

    def list_pr_files(self, repo: str, pr_number: int) -> List[str]:
        data = self._paginate(f"/repos/{repo}/pulls/{pr_number}/files")
        return [d["filename"] for d in data if d.get("filename")]

    def create_comment(self, repo: str, issue_number: int, body: str) -> Comment:
        resp = self._request("POST", f"/repos/{repo}/issues/{issue_number}/comments", json={"body": body})
        return _comment_from_api(resp.json())

    def reply_to_review_comment(
        self,
        repo: str,
        pr_number: int,
        comment_id: int,
        body: str,
    ) -> Comment:
        resp = self._request(
            "POST",
            f"/repos/{repo}/pulls/{pr_number}/comments/{comment_id}/replies",
            json={"body": body},
        )
        return _comment_from_api(resp.json())

    def add_reaction(self, repo: str, subject: str, subject_id: int, content: str = "eyes") -> None:
        template = _REACTION_PATHS.get(subject)
        if template is None:
            raise ValueError(f"unknown reaction subject: {subject}")
        self._request("POST", template.format(repo=repo, id=subject_id), json={"content": content})

    def create_pr(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PR:
        resp = self._request(
            "POST",
            f"/repos/{repo}/pulls",
            json={"title": title, "body": body, "head": head, "base": base, "maintainer_can_modify": True},
        )
        return _pr_from_api(resp.json())

    def get_collaborator_permission(self, repo: str, username: str) -> str:
        data = self._request("GET", f"/repos/{repo}/collaborators/{username}/permission").json()
        return data.get("permission", "none")
