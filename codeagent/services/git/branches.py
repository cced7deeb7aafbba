"""Branch naming and local branch operations."""

import logging
from pathlib import Path

from codeagent.events.types import ClassifiedEvent, IssueCommentCreated
from codeagent.models import AgentKind
from codeagent.services.git._run import GitRunnerError, _run_git


def branch_name_for_event(agent: AgentKind, event: ClassifiedEvent) -> str:
    """Branch for a new PR: {agent}/{issue} or, for a comment-triggered
    run, {agent}/{issue}-{comment_id}."""
    name = f"{agent.value}/{event.number}"
    if isinstance(event, IssueCommentCreated):
        name += f"-{event.comment_id}"
    return name


def create_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Create branch_name from HEAD and check it out."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    _run_git(["checkout", "-b", branch_name], cwd=cwd, log=log)
    if log:
        log.info("Created branch %s", branch_name)


def checkout_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Checkout the given branch (must exist locally or on remote)."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    try:
        _run_git(["checkout", branch_name], cwd=cwd, log=log)
    except GitRunnerError:
        _run_git(["fetch", "origin", branch_name], cwd=cwd, log=log)
        _run_git(["checkout", branch_name], cwd=cwd, log=log)
    if log:
        log.info("Checked out branch %s", branch_name)
