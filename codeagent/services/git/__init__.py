"""Git operations: clone, branches, commits, push."""

from codeagent.services.git._run import GitRunnerError
from codeagent.services.git.branches import (
    branch_name_for_event,
    checkout_branch,
    create_branch,
)
from codeagent.services.git.clone import authenticated_url, clone_repository
from codeagent.services.git.commits import add_all_and_commit, has_changes
from codeagent.services.git.push import push_branch

__all__ = [
    "GitRunnerError",
    "add_all_and_commit",
    "authenticated_url",
    "branch_name_for_event",
    "checkout_branch",
    "clone_repository",
    "create_branch",
    "has_changes",
    "push_branch",
]
