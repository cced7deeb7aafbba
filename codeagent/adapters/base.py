"""Abstract base for Git platform adapters."""

from abc import ABC, abstractmethod
from typing import List

from codeagent.models import PR, Comment, Issue, ReviewComment


class GitPlatformError(Exception):
    """Raised when a Git platform API call fails.

    retryable is set for network failures and server errors, where the
    same request may succeed on a later attempt.
    """

    def __init__(self, message: str, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class GitPlatformAdapter(ABC):
    """Abstract interface for the hosting platform API used by a run."""

    @abstractmethod
    def get_issue(self, repo: str, issue_number: int) -> Issue:
        """Fetch issue by number."""
        ...

    @abstractmethod
    def get_pr(self, repo: str, pr_number: int) -> PR:
        """Fetch PR by number."""
        ...

    @abstractmethod
    def get_issue_comments(self, repo: str, issue_number: int) -> List[Comment]:
        """Fetch all conversation comments on an issue or PR, oldest first."""
        ...

    @abstractmethod
    def list_pr_review_comments(self, repo: str, pr_number: int) -> List[ReviewComment]:
        """Fetch all review comments on a PR, oldest first."""
        ...

    @abstractmethod
    def list_pr_files(self, repo: str, pr_number: int) -> List[str]:
        """Fetch paths of files changed in a PR."""
        ...

    @abstractmethod
    def create_comment(self, repo: str, issue_number: int, body: str) -> Comment:
        """Post a comment on an issue or PR conversation."""
        ...

    @abstractmethod
    def create_pr(
        self,
        repo: str,
        title: str,
        body: str,
        head: str,
        base: str,
    ) -> PR:
        """Create a pull request."""
        ...

    def reply_to_review_comment(
        self,
        repo: str,
        pr_number: int,
        comment_id: int,
        body: str,
    ) -> Comment:
        """Reply in a review comment thread. Override if needed."""
        raise NotImplementedError("reply_to_review_comment")

    def add_reaction(self, repo: str, subject: str, subject_id: int, content: str = "eyes") -> None:
        """React to an issue, issue comment or review comment. Override if
        needed."""
        return None

    def get_collaborator_permission(self, repo: str, username: str) -> str:
        """Return the user's permission level (admin, write, read, none).
        Override if needed."""
        return "none"
