"""Prompt assembly under a token budget."""

from codeagent.context.history import format_history_item
from codeagent.context.prompt import assemble_prompt, fetch_contents, generate_prompt
from codeagent.context.tokens import estimate_tokens, truncate_to_token_limit

__all__ = [
    "assemble_prompt",
    "estimate_tokens",
    "fetch_contents",
    "format_history_item",
    "generate_prompt",
    "truncate_to_token_limit",
]
