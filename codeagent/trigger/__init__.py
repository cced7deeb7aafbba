"""Decide whether an event triggers an agent run, which agent, and with
what instruction."""

from codeagent.trigger.overrides import extract_config_overrides
from codeagent.trigger.resolver import (
    TriggerDecision,
    command_prefix_for,
    default_instruction,
    resolve_trigger,
    resolve_with_overrides,
)

__all__ = [
    "TriggerDecision",
    "command_prefix_for",
    "default_instruction",
    "extract_config_overrides",
    "resolve_trigger",
    "resolve_with_overrides",
]
