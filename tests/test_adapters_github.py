"""Unit tests for GitHub adapter (mocked API)."""

from unittest.mock import Mock, patch

import pytest
import requests

from codeagent.adapters.base import GitPlatformError
from codeagent.adapters.github import GitHubAdapter
from codeagent.models import PR, Comment, Issue, ReviewComment


@pytest.fixture
def adapter() -> GitHubAdapter:
    return GitHubAdapter(token="test-token", api_url="https://api.github.com")


def _response(status: int = 200, data=None, links=None) -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.json.return_value = data
    resp.links = links or {}
    resp.text = ""
    resp.reason = ""
    return resp


def test_session_headers(adapter: GitHubAdapter) -> None:
    assert adapter._session.headers["Authorization"] == "token test-token"
    assert "github" in adapter._session.headers["Accept"]


def test_get_issue_success(adapter: GitHubAdapter) -> None:
    """get_issue returns Issue when API returns 200."""
    data = {
        "number": 1,
        "title": "Test issue",
        "body": "Body text",
        "state": "open",
        "labels": [{"name": "bug"}, {"name": "claude"}],
        "user": {"login": "octocat"},
    }
    with patch.object(adapter._session, "request", return_value=_response(data=data)) as req:
        issue = adapter.get_issue("owner/repo", 1)

    assert isinstance(issue, Issue)
    assert issue.title == "Test issue"
    assert issue.author == "octocat"
    assert issue.body == "Body text"
    assert req.call_args[0][0] == "GET"
    assert req.call_args[0][1] == "https://api.github.com/repos/owner/repo/issues/1"


def test_get_issue_404_raises_not_found(adapter: GitHubAdapter) -> None:
    resp = _response(status=404, data={"message": "Not Found"})
    with patch.object(adapter._session, "request", return_value=resp):
        with pytest.raises(GitPlatformError, match="Not found: issue #999") as exc_info:
            adapter.get_issue("owner/repo", 999)
    assert exc_info.value.retryable is False


def test_server_error_is_retryable(adapter: GitHubAdapter) -> None:
    resp = _response(status=502)
    resp.json.side_effect = ValueError("no json")
    resp.text = "Bad Gateway"
    with patch.object(adapter._session, "request", return_value=resp):
        with pytest.raises(GitPlatformError, match="502: Bad Gateway") as exc_info:
            adapter.get_pr("owner/repo", 2)
    assert exc_info.value.retryable is True


def test_network_error_is_retryable(adapter: GitHubAdapter) -> None:
    with patch.object(adapter._session, "request", side_effect=requests.ConnectionError("down")):
        with pytest.raises(GitPlatformError, match="network error") as exc_info:
            adapter.get_issue_comments("owner/repo", 2)
    assert exc_info.value.retryable is True


def test_get_pr_branches(adapter: GitHubAdapter) -> None:
    data = {
        "number": 2,
        "title": "Cache",
        "body": "desc",
        "user": {"login": "carol"},
        "head": {"ref": "feature/cache"},
        "base": {"ref": "main"},
        "html_url": "https://github.com/owner/repo/pull/2",
    }
    with patch.object(adapter._session, "request", return_value=_response(data=data)):
        pr = adapter.get_pr("owner/repo", 2)
    assert isinstance(pr, PR)
    assert pr.head_branch == "feature/cache"
    assert pr.base_branch == "main"
    assert pr.html_url.endswith("/pull/2")


def test_comments_follow_pagination(adapter: GitHubAdapter) -> None:
    """get_issue_comments follows Link rel=next until the last page."""
    page1 = _response(
        data=[{"id": 1, "body": "first", "user": {"login": "a"}, "created_at": "2024-01-15T10:00:00Z"}],
        links={"next": {"url": "https://api.github.com/repositories/1/issues/5/comments?page=2"}},
    )
    page2 = _response(data=[{"id": 2, "body": None, "user": None}])
    with patch.object(adapter._session, "request", side_effect=[page1, page2]) as req:
        comments = adapter.get_issue_comments("owner/repo", 5)

    assert [c.id for c in comments] == [1, 2]
    assert isinstance(comments[0], Comment)
    assert comments[0].created_at is not None
    assert comments[1].body == ""
    assert comments[1].author == "anonymous"
    first, second = req.call_args_list
    assert first.kwargs["params"] == {"per_page": 100}
    assert second[0][1].endswith("page=2")
    assert second.kwargs["params"] is None


def test_list_pr_review_comments(adapter: GitHubAdapter) -> None:
    data = [
        {"id": 20, "body": "root", "path": "a.py", "line": 4, "user": {"login": "x"}},
        {"id": 21, "body": "reply", "path": "a.py", "in_reply_to_id": 20, "user": {"login": "y"}},
    ]
    with patch.object(adapter._session, "request", return_value=_response(data=data)):
        comments = adapter.list_pr_review_comments("owner/repo", 2)
    assert all(isinstance(c, ReviewComment) for c in comments)
    assert comments[0].line == 4
    assert comments[1].in_reply_to_id == 20


def test_list_pr_files(adapter: GitHubAdapter) -> None:
    data = [{"filename": "src/a.py"}, {"filename": "README.md"}, {"sha": "x"}]
    with patch.object(adapter._session, "request", return_value=_response(data=data)) as req:
        files = adapter.list_pr_files("owner/repo", 2)
    assert files == ["src/a.py", "README.md"]
    assert req.call_args[0][1].endswith("/repos/owner/repo/pulls/2/files")


def test_create_comment(adapter: GitHubAdapter) -> None:
    resp = _response(status=201, data={"id": 9, "body": "hello", "user": {"login": "bot"}})
    with patch.object(adapter._session, "request", return_value=resp) as req:
        comment = adapter.create_comment("owner/repo", 5, "hello")
    assert comment.id == 9
    assert req.call_args[0][0] == "POST"
    assert req.call_args.kwargs["json"] == {"body": "hello"}


def test_reply_to_review_comment(adapter: GitHubAdapter) -> None:
    resp = _response(status=201, data={"id": 22, "body": "done"})
    with patch.object(adapter._session, "request", return_value=resp) as req:
        adapter.reply_to_review_comment("owner/repo", 2, 20, "done")
    assert req.call_args[0][1].endswith("/repos/owner/repo/pulls/2/comments/20/replies")


@pytest.mark.parametrize(
    "subject,path",
    [
        ("issue", "/repos/owner/repo/issues/5/reactions"),
        ("issue_comment", "/repos/owner/repo/issues/comments/5/reactions"),
        ("review_comment", "/repos/owner/repo/pulls/comments/5/reactions"),
    ],
)
def test_add_reaction(adapter: GitHubAdapter, subject: str, path: str) -> None:
    with patch.object(adapter._session, "request", return_value=_response(status=201, data={})) as req:
        adapter.add_reaction("owner/repo", subject, 5)
    assert req.call_args[0][1].endswith(path)
    assert req.call_args.kwargs["json"] == {"content": "eyes"}


def test_add_reaction_unknown_subject(adapter: GitHubAdapter) -> None:
    with pytest.raises(ValueError):
        adapter.add_reaction("owner/repo", "commit", 5)


def test_create_pr(adapter: GitHubAdapter) -> None:
    data = {"number": 10, "title": "Fix", "head": {"ref": "claude/5"}, "base": {"ref": "main"}}
    with patch.object(adapter._session, "request", return_value=_response(status=201, data=data)) as req:
        pr = adapter.create_pr("owner/repo", "Fix", "body", "claude/5", "main")
    assert pr.number == 10
    sent = req.call_args.kwargs["json"]
    assert sent["head"] == "claude/5"
    assert sent["base"] == "main"


def test_collaborator_permission(adapter: GitHubAdapter) -> None:
    with patch.object(adapter._session, "request", return_value=_response(data={"permission": "write"})):
        assert adapter.get_collaborator_permission("owner/repo", "alice") == "write"

