"""Format conversation history items for the prompt."""

from typing import Iterable

from codeagent.models import HistoryItem


def quote(text: str) -> str:
    """Prefix every line with a Markdown quote marker."""
    return "\n".join(f"> {line}" for line in text.split("\n"))


def format_history_item(
    item: HistoryItem,
    instruction: str,
    command_prefix: str | None,
    bot_login: str,
) -> str:
    """One history entry followed by a blank line, or "" to drop it.

    A command for the current agent is stripped of its prefix and dropped
    when it repeats the current instruction, so the triggering comment
    does not show up in its own history. Output of the bot itself is
    quoted.
    """
    body = item.body.strip()
    if not body:
        return ""
    if command_prefix and body.startswith(command_prefix):
        body = body[len(command_prefix):].strip()
        if not body or body == instruction:
            return ""
        return body + "\n\n"
    if item.author.strip() == bot_login:
        return quote(body) + "\n\n"
    return body + "\n\n"


def format_history(
    items: Iterable[HistoryItem],
    instruction: str,
    command_prefix: str | None,
    bot_login: str,
) -> str:
    return "".join(format_history_item(i, instruction, command_prefix, bot_login) for i in items)
