"""Build the agent prompt from the event, its conversation and the PR files.

Layout (empty sections are left out; with no sections the prompt is just
the instruction):

    [History]
    {history}

    [Context]
    {context}

    [Changed Files]
    {files}

    ---

    {instruction}

Item limits are applied first and always. Token truncation applies only
to the sections above the separator; the instruction is never cut.
"""

import logging
from typing import List

from codeagent.adapters.base import GitPlatformAdapter, GitPlatformError
from codeagent.config import ContextBudget
from codeagent.context.history import format_history
from codeagent.context.tokens import (
    TRUNCATION_MARKER,
    TokenEstimator,
    estimate_tokens,
    truncate_to_token_limit,
)
from codeagent.events.types import (
    PR_EVENTS,
    ClassifiedEvent,
    IssueCommentCreated,
    IssueOpened,
    PullRequestCommentCreated,
    PullRequestReviewCommentCreated,
)
from codeagent.models import ContentsData, HistoryItem

LOG = logging.getLogger("codeagent.context.prompt")

SEPARATOR = "---\n\n"
# Tokens reserved for the separator and section joins
SEPARATOR_TOKEN_ALLOWANCE = 10


def fetch_contents(
    adapter: GitPlatformAdapter,
    repo: str,
    event: ClassifiedEvent,
    log: logging.Logger | None = None,
) -> ContentsData:
    """Parent issue or PR plus its conversation, oldest first.

    For a review comment only the comments of its reply thread are
    returned. API failures propagate.
    """
    logger = log or LOG
    try:
        if isinstance(event, (IssueOpened, IssueCommentCreated)):
            logger.info("Fetching data for issue #%s", event.number)
            issue = adapter.get_issue(repo, event.number)
            parent = HistoryItem(body=issue.body, author=issue.author)
            title = issue.title
            comments = [HistoryItem(body=c.body, author=c.author) for c in adapter.get_issue_comments(repo, event.number)]
        elif isinstance(event, PullRequestCommentCreated):
            logger.info("Fetching data for pull request #%s", event.number)
            pr = adapter.get_pr(repo, event.number)
            parent = HistoryItem(body=pr.body, author=pr.author)
            title = pr.title
            comments = [HistoryItem(body=c.body, author=c.author) for c in adapter.get_issue_comments(repo, event.number)]
        else:
            logger.info("Fetching review thread %s on pull request #%s", event.thread_root_id, event.number)
            pr = adapter.get_pr(repo, event.number)
            parent = HistoryItem(body=pr.body, author=pr.author)
            title = pr.title
            root = event.thread_root_id
            review_comments = adapter.list_pr_review_comments(repo, event.number)
            comments = [
                HistoryItem(body=c.body, author=c.author)
                for c in review_comments
                if c.id == root or c.in_reply_to_id == root
            ]
    except GitPlatformError as e:
        logger.error("Failed to fetch context for #%s: %s", event.number, e)
        raise
    logger.info("Fetched %s history comments for #%s", len(comments), event.number)
    return ContentsData(content=parent, title=title, comments=comments)


def context_note(event: ClassifiedEvent) -> str:
    """File (and line) a review comment is anchored to; "" for other events."""
    if not isinstance(event, PullRequestReviewCommentCreated):
        return ""
    note = f"Comment on file: {event.path}"
    if event.line:
        note += f", line: {event.line}"
    return note


def _limit_history(comments: List[HistoryItem], max_items: int | None) -> List[HistoryItem]:
    if max_items is None or len(comments) <= max_items:
        return comments
    if max_items == 0:
        return []
    return comments[-max_items:]


def assemble_prompt(
    event: ClassifiedEvent,
    instruction: str,
    contents: ContentsData | None,
    changed_files: List[str],
    budget: ContextBudget,
    command_prefix: str | None,
    bot_login: str,
    estimator: TokenEstimator = estimate_tokens,
    log: logging.Logger | None = None,
) -> str:
    """Format and budget the prompt. Performs no I/O."""
    logger = log or LOG

    history = ""
    if contents is not None:
        comments = _limit_history(contents.comments, budget.max_history_items)
        if len(comments) < len(contents.comments):
            logger.info("Limited history to the %s most recent comments", len(comments))
        history = format_history([contents.content, *comments], instruction, command_prefix, bot_login)

    files = changed_files
    if budget.max_changed_files_listed is not None and len(files) > budget.max_changed_files_listed:
        files = files[: budget.max_changed_files_listed]
        logger.info("Limited changed files to %s", len(files))

    sections = ""
    if history:
        sections += f"[History]\n{history}\n\n"
    note = context_note(event)
    if note:
        sections += f"[Context]\n{note}\n\n"
    if files:
        sections += "[Changed Files]\n" + "\n".join(files) + "\n\n"

    if not sections:
        return instruction

    prompt = sections + SEPARATOR + instruction
    if not (budget.truncation_enabled and budget.max_context_tokens):
        return prompt

    total = estimator(prompt)
    if total <= budget.max_context_tokens:
        return prompt

    available = (
        budget.max_context_tokens
        - estimator(instruction)
        - SEPARATOR_TOKEN_ALLOWANCE
        - estimator(TRUNCATION_MARKER)
    )
    logger.info(
        "Prompt is ~%s tokens, over the %s limit; %s tokens left for context",
        total,
        budget.max_context_tokens,
        available,
    )
    if available <= 0:
        logger.warning("Instruction alone fills the token budget, dropping all context")
        return instruction
    truncated = truncate_to_token_limit(sections, available, estimator)
    if not truncated.endswith("\n\n"):
        truncated += "\n\n"
    return truncated + SEPARATOR + instruction


def generate_prompt(
    adapter: GitPlatformAdapter,
    repo: str,
    event: ClassifiedEvent,
    instruction: str,
    budget: ContextBudget,
    command_prefix: str | None,
    bot_login: str,
    log: logging.Logger | None = None,
) -> str:
    """Fetch history and changed files for event and assemble the prompt.

    A newly opened issue has no history, so its prompt is the
    instruction itself and no API calls are made.
    """
    logger = log or LOG
    if isinstance(event, IssueOpened):
        return instruction

    contents = fetch_contents(adapter, repo, event, log=logger)
    changed_files: List[str] = []
    if isinstance(event, PR_EVENTS):
        try:
            changed_files = adapter.list_pr_files(repo, event.number)
        except GitPlatformError as e:
            logger.error("Failed to list files of pull request #%s: %s", event.number, e)
            raise
    return assemble_prompt(
        event,
        instruction,
        contents,
        changed_files,
        budget,
        command_prefix,
        bot_login,
        log=logger,
    )
