"""Classify a raw GitHub webhook payload into one of the supported events.

Predicates are evaluated in order and the first match wins. GitHub
reports a PR conversation comment as an issue carrying a pull_request
marker, and a line comment as a pull_request object with a comment that
has a path, so the order matters.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from codeagent.events.types import (
    ClassifiedEvent,
    IssueCommentCreated,
    IssueOpened,
    PullRequestCommentCreated,
    PullRequestReviewCommentCreated,
)

LOG = logging.getLogger("codeagent.events.classify")


def _obj(payload: Dict[str, Any], key: str) -> Dict[str, Any] | None:
    value = payload.get(key)
    return value if isinstance(value, dict) and value else None


def _login(obj: Dict[str, Any]) -> str:
    user = obj.get("user") or {}
    return user.get("login", "") if isinstance(user, dict) else ""


def _comment_fields(comment: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "comment_id": comment.get("id"),
        "comment_body": comment.get("body") or "",
        "comment_author": _login(comment),
    }


def classify_event(payload: Dict[str, Any], log: logging.Logger | None = None) -> ClassifiedEvent | None:
    """Return the classified event, or None when the payload is unsupported.

    A payload whose fields have unusable types (e.g. a non-numeric issue
    number) is treated as unsupported and logged.
    """
    logger = log or LOG
    if not isinstance(payload, dict):
        logger.warning("Event payload is not an object: %s", type(payload).__name__)
        return None

    action = payload.get("action")
    issue = _obj(payload, "issue")
    pull = _obj(payload, "pull_request")
    comment = _obj(payload, "comment")
    is_pr_shim = bool(issue and issue.get("pull_request"))

    try:
        if action == "opened" and issue and not is_pr_shim:
            return IssueOpened(
                issue_number=issue.get("number"),
                title=issue.get("title") or "",
                body=issue.get("body") or "",
                issue_author=_login(issue),
            )
        if action == "created" and issue and not is_pr_shim and comment:
            return IssueCommentCreated(
                issue_number=issue.get("number"),
                title=issue.get("title") or "",
                body=issue.get("body") or "",
                **_comment_fields(comment),
            )
        if action == "created" and issue and is_pr_shim and comment:
            return PullRequestCommentCreated(
                pr_number=issue.get("number"),
                title=issue.get("title") or "",
                body=issue.get("body") or "",
                **_comment_fields(comment),
            )
        if action == "created" and pull and comment and comment.get("path"):
            return PullRequestReviewCommentCreated(
                pr_number=pull.get("number"),
                title=pull.get("title") or "",
                body=pull.get("body") or "",
                path=comment.get("path"),
                line=comment.get("line"),
                in_reply_to_id=comment.get("in_reply_to_id"),
                **_comment_fields(comment),
            )
    except ValidationError as e:
        logger.warning("Malformed %s payload: %s", action, e)
        return None

    logger.info("Unsupported event (action=%s)", action)
    return None
