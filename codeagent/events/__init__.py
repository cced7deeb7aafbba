"""Webhook event schemas and classification.

Supported (everything else is unsupported and ignored):
- issues opened
- issue_comment created on an issue
- issue_comment created on a pull request
- pull_request_review_comment created (line or file comment)
"""

from codeagent.events.classify import classify_event
from codeagent.events.payload import (
    EventPayloadError,
    extract_labels,
    extract_repository,
    extract_text,
    load_event_payload,
)
from codeagent.events.types import (
    ClassifiedEvent,
    IssueCommentCreated,
    IssueOpened,
    PullRequestCommentCreated,
    PullRequestReviewCommentCreated,
    RepositoryInfo,
)

__all__ = [
    "ClassifiedEvent",
    "EventPayloadError",
    "IssueCommentCreated",
    "IssueOpened",
    "PullRequestCommentCreated",
    "PullRequestReviewCommentCreated",
    "RepositoryInfo",
    "classify_event",
    "extract_labels",
    "extract_repository",
    "extract_text",
    "load_event_payload",
]
