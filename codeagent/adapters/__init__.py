"""Git platform adapters."""

from codeagent.adapters.base import GitPlatformAdapter, GitPlatformError
from codeagent.adapters.github import GitHubAdapter

__all__ = ["GitHubAdapter", "GitPlatformAdapter", "GitPlatformError"]
