"""Shallow clone of one branch into a clean workspace."""

import logging
import shutil
from pathlib import Path

from codeagent.services.git._run import _run_git


def authenticated_url(clone_url: str, token: str | None) -> str:
    """https clone URL with an x-access-token credential."""
    if not token or not clone_url.startswith("https://"):
        return clone_url
    return clone_url.replace("https://", f"https://x-access-token:{token}@", 1)


def clone_repository(
    clone_url: str,
    branch: str,
    workspace: Path | str,
    token: str | None = None,
    log: logging.Logger | None = None,
) -> Path:
    """Clone branch of clone_url (depth 1) into workspace.

    An existing workspace is removed first so the clone always starts
    from an empty directory.
    """
    target = Path(workspace)
    if target.exists():
        shutil.rmtree(target)
    target.mkdir(parents=True)
    if log:
        log.info("Cloning %s branch %s into %s", clone_url, branch, target)
    _run_git(
        ["clone", "--depth", "1", "--branch", branch, authenticated_url(clone_url, token), "."],
        cwd=target,
        log=log,
        secrets=[token] if token else (),
    )
    if log:
        log.info("Repository cloned")
    return target
