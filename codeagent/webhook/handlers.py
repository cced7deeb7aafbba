"""Handle GitHub webhook events.

Supported events:
- issues (action=opened)
- issue_comment (action=created), on issues and pull requests
- pull_request_review_comment (action=created)

The payload goes through the same classification and trigger resolution
as a workflow run; anything that does not trigger is ignored.
"""

import logging
from typing import Any, Dict

from codeagent.adapters.base import GitPlatformAdapter
from codeagent.config import AppConfig
from codeagent.runner import make_adapter, process_event, run_action

LOG = logging.getLogger("codeagent.webhook.handlers")

SUPPORTED_EVENTS = ("issues", "issue_comment", "pull_request_review_comment")


def handle_github_event(
    config: AppConfig,
    event: str,
    payload: Dict[str, Any],
    adapter: GitPlatformAdapter | None = None,
    log: logging.Logger | None = None,
) -> bool:
    """Run the agent for one webhook delivery. Returns True if it ran."""
    logger = log or LOG
    if event not in SUPPORTED_EVENTS:
        logger.debug("Ignoring webhook event %s", event)
        return False
    repo = (payload.get("repository") or {}).get("full_name") or ""
    if repo and repo != config.bot.repository:
        logger.debug("Skipping %s: repository %s is not the configured repo", event, repo)
        return False

    processed = process_event(config, payload, log=logger)
    if processed is None:
        return False
    return run_action(processed, adapter or make_adapter(processed.config), log=logger)
