"""Event schemas for the four supported GitHub payload shapes.

Each variant carries only the fields later stages read. Models are
frozen: an event is classified once per run and then shared read-only.
"""

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str = ""
    body: str = ""


class _CommentEvent(_Event):
    comment_id: int
    comment_body: str = ""
    comment_author: str = ""

    @property
    def text(self) -> str:
        return self.comment_body

    @property
    def author(self) -> str:
        return self.comment_author


class IssueOpened(_Event):
    """Issue opened (issues webhook, action=opened)."""

    type: Literal["issue_opened"] = "issue_opened"
    issue_number: int
    issue_author: str = ""

    @property
    def number(self) -> int:
        return self.issue_number

    @property
    def text(self) -> str:
        return self.body

    @property
    def author(self) -> str:
        return self.issue_author


class IssueCommentCreated(_CommentEvent):
    """New comment on an issue (issue_comment webhook, action=created)."""

    type: Literal["issue_comment_created"] = "issue_comment_created"
    issue_number: int

    @property
    def number(self) -> int:
        return self.issue_number


class PullRequestCommentCreated(_CommentEvent):
    """New conversation comment on a PR (issue_comment on a PR,
    action=created)."""

    type: Literal["pull_request_comment_created"] = "pull_request_comment_created"
    pr_number: int

    @property
    def number(self) -> int:
        return self.pr_number


class PullRequestReviewCommentCreated(_CommentEvent):
    """Line or file review comment created (pull_request_review_comment
    webhook, action=created)."""

    type: Literal["pull_request_review_comment_created"] = "pull_request_review_comment_created"
    pr_number: int
    path: str
    line: int | None = None
    in_reply_to_id: int | None = None

    @property
    def number(self) -> int:
        return self.pr_number

    @property
    def thread_root_id(self) -> int:
        """Id of the first comment in this reply thread."""
        return self.in_reply_to_id if self.in_reply_to_id is not None else self.comment_id


ClassifiedEvent = Union[
    IssueOpened,
    IssueCommentCreated,
    PullRequestCommentCreated,
    PullRequestReviewCommentCreated,
]

PR_EVENTS = (PullRequestCommentCreated, PullRequestReviewCommentCreated)
ISSUE_EVENTS = (IssueOpened, IssueCommentCreated)


class RepositoryInfo(BaseModel):
    """Repository the event belongs to."""

    model_config = ConfigDict(frozen=True)

    full_name: str
    default_branch: str = "main"
    clone_url: str = ""
