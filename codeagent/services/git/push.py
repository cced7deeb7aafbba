"""Push to remote (origin)."""

import logging
from pathlib import Path

from codeagent.services.git._run import _run_git


def push_branch(
    branch_name: str,
    repo_dir: Path | None = None,
    force: bool = False,
    log: logging.Logger | None = None,
) -> None:
    """Push the given branch to origin."""
    cwd = Path(repo_dir) if repo_dir is not None else Path.cwd()
    args = ["push", "origin", branch_name]
    if force:
        args.append("--force")
    _run_git(args, cwd=cwd, log=log)
    if log:
        log.info("Pushed branch %s to origin", branch_name)
