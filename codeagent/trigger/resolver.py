"""Trigger resolution: command prefix first, then labels.

Resolution order for one event:

1. Config overrides from the issue/PR body are applied to a copy of the
   config (resolve_with_overrides only).
2. Explicit command: the event text starts with a configured prefix
   (e.g. "/claude"); the rest of the text is the instruction.
3. Labels: a label named after an agent selects it; a configured custom
   trigger label selects the default agent. The instruction is built
   from the issue or PR title and body.

No agent or an empty instruction means no run.
"""

import logging
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from codeagent.config import AGENT_NAMES, AppConfig, TriggerConfig, apply_overrides
from codeagent.events.payload import extract_labels, extract_text
from codeagent.events.types import ClassifiedEvent
from codeagent.models import AgentKind
from codeagent.trigger.overrides import extract_config_overrides

LOG = logging.getLogger("codeagent.trigger.resolver")

ISSUE_TEMPLATE = "Review and address this issue: {title}\n\n{body}"
PR_TEMPLATE = "Review this pull request: {title}\n\n{body}"
GENERIC_INSTRUCTION = "Please review the changes and provide feedback."


class TriggerDecision(BaseModel):
    """Agent to run and the instruction to give it."""

    model_config = ConfigDict(frozen=True)

    agent: AgentKind
    instruction: str = Field(min_length=1)


def command_prefix_for(agent: AgentKind, config: TriggerConfig) -> str | None:
    """First configured command prefix that selects agent."""
    for prefix, name in config.commands.items():
        if name == agent.value:
            return prefix
    return None


def _match_command(text: str, config: TriggerConfig) -> Tuple[AgentKind, str] | None:
    for prefix, name in config.commands.items():
        if text.startswith(prefix):
            return AgentKind(name), text[len(prefix):].strip()
    return None


def _match_label(labels: List[str], config: TriggerConfig) -> AgentKind | None:
    for label in labels:
        if label in AGENT_NAMES:
            return AgentKind(label)
        if label in config.labels:
            return AgentKind(config.default_agent)
    return None


def default_instruction(payload: Dict[str, Any]) -> str:
    """Instruction for a label-triggered run, from the issue or PR."""
    issue = payload.get("issue")
    if isinstance(issue, dict) and issue.get("title"):
        return ISSUE_TEMPLATE.format(title=issue["title"], body=issue.get("body") or "")
    pull = payload.get("pull_request")
    if isinstance(pull, dict) and pull.get("title"):
        return PR_TEMPLATE.format(title=pull["title"], body=pull.get("body") or "")
    return GENERIC_INSTRUCTION


def resolve_trigger(
    event: ClassifiedEvent,
    payload: Dict[str, Any],
    config: TriggerConfig,
    log: logging.Logger | None = None,
) -> TriggerDecision | None:
    """Return the trigger decision for event, or None when nothing should run."""
    logger = log or LOG
    text = extract_text(event)

    command = _match_command(text, config)
    if command is not None:
        agent, instruction = command
        logger.info("Command trigger for %s", agent.value)
    else:
        agent = _match_label(extract_labels(payload), config)
        if agent is None:
            logger.info("No trigger command or label found")
            return None
        instruction = default_instruction(payload).strip()
        logger.info("Label trigger for %s", agent.value)

    if not instruction:
        logger.info("Empty instruction for %s, skipping", agent.value)
        return None
    return TriggerDecision(agent=agent, instruction=instruction)


def _parent_body(payload: Dict[str, Any]) -> str | None:
    for key in ("issue", "pull_request"):
        obj = payload.get(key)
        if isinstance(obj, dict) and obj.get("body"):
            return obj["body"]
    return None


def resolve_with_overrides(
    event: ClassifiedEvent,
    payload: Dict[str, Any],
    config: AppConfig,
    log: logging.Logger | None = None,
) -> Tuple[AppConfig, TriggerDecision | None]:
    """Apply body overrides to a copy of config, then resolve the trigger.

    Returns the effective config for the rest of the run together with
    the decision.
    """
    logger = log or LOG
    overrides = extract_config_overrides(_parent_body(payload), log=logger)
    effective = apply_overrides(config, overrides, log=logger)
    return effective, resolve_trigger(event, payload, effective.trigger, log=logger)
