"""Secret masking and permission checks."""

import logging
from typing import Iterable

from codeagent.adapters.base import GitPlatformAdapter, GitPlatformError

LOG = logging.getLogger("codeagent.security")

MASK = "***"
WRITE_PERMISSIONS = ("admin", "write")


def mask_sensitive_info(text: str, secrets: Iterable[str | None]) -> str:
    """Replace every occurrence of each non-empty secret with ***.

    Longer secrets are replaced first so a secret that contains another
    (a base URL and its host) is masked whole.
    """
    masked = text
    for secret in sorted({s for s in secrets if s}, key=len, reverse=True):
        masked = masked.replace(secret, MASK)
    return masked


def has_write_permission(
    adapter: GitPlatformAdapter,
    repo: str,
    username: str,
    log: logging.Logger | None = None,
) -> bool:
    """True if username has admin or write access to repo.

    An unknown actor or a failed API call counts as no permission.
    """
    logger = log or LOG
    if not username:
        logger.warning("Actor not found, permission check failed")
        return False
    try:
        permission = adapter.get_collaborator_permission(repo, username)
    except GitPlatformError as e:
        logger.warning("Error checking permission of %s: %s", username, e)
        return False
    logger.info("User %s has %s permission on %s", username, permission, repo)
    return permission in WRITE_PERMISSIONS
