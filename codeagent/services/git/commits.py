"""Stage and commit changes with bot identity."""

import logging
from pathlib import Path

from codeagent.services.git._run import _run_git


def has_changes(repo_dir: Path | None = None, log: logging.Logger | None = None) -> bool:
    """True if the working tree has staged or unstaged changes."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    return bool(_run_git(["status", "--porcelain"], cwd=cwd, log=log).strip())


def add_all_and_commit(
    commit_message: str,
    bot_name: str,
    bot_email: str,
    repo_dir: Path | None = None,
    log: logging.Logger | None = None,
) -> bool:
    """Stage all changes (deletions included) and commit with bot identity.

    Returns False without committing when there is nothing to commit.
    Raises GitRunnerError on failure.
    """
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    _run_git(["add", "-A"], cwd=cwd, log=log)
    if not has_changes(cwd, log=log):
        if log:
            log.info("Nothing to commit, working tree clean")
        return False
    _run_git(
        [
            "-c",
            f"user.name={bot_name}",
            "-c",
            f"user.email={bot_email}",
            "commit",
            "-m",
            commit_message,
        ],
        cwd=cwd,
        log=log,
    )
    if log:
        log.info("Committed changes: %s", commit_message)
    return True
