"""Internal helpers: run git commands, GitRunnerError."""

import logging
import subprocess
from pathlib import Path
from typing import Sequence

from codeagent.security import mask_sensitive_info

GIT_TIMEOUT_SECONDS = 300


class GitRunnerError(Exception):
    """Raised when a git command fails."""

    pass


def _run_git(
    args: list[str],
    cwd: Path,
    log: logging.Logger | None = None,
    secrets: Sequence[str] = (),
) -> str:
    """Run git command and return stdout; raise GitRunnerError on non-zero
    exit. Secrets are masked in logged and raised messages."""
    cmd = ["git"] + args
    try:
        result = subprocess.run(
            cmd,
            cwd=cwd,
            check=True,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
        )
    except subprocess.CalledProcessError as e:
        err = mask_sensitive_info((e.stderr or e.stdout or "").strip(), secrets)
        shown = mask_sensitive_info(" ".join(args), secrets)
        if log:
            log.warning("Git %s failed: %s", shown, err)
        raise GitRunnerError(f"git {shown}: {err}") from None
    except subprocess.TimeoutExpired:
        shown = mask_sensitive_info(" ".join(args), secrets)
        raise GitRunnerError(f"git {shown}: timed out after {GIT_TIMEOUT_SECONDS}s") from None
    except FileNotFoundError as e:
        raise GitRunnerError("git not found") from e
    return result.stdout or ""
