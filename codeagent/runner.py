"""One agent run for one webhook event.

process_event decides whether the event triggers a run; run_action
performs it:

1. Optional permission check of the triggering author.
2. Eyes reaction on the issue or comment.
3. Clone the default branch (issues) or the PR head branch (PRs).
4. Snapshot the workspace, build the prompt, run the agent.
5. Diff the workspace against the snapshot and publish the result: a new
   PR for issues, a commit on the head branch for PRs, or just a comment
   when nothing changed.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from codeagent.adapters.base import GitPlatformAdapter, GitPlatformError
from codeagent.adapters.github import GitHubAdapter
from codeagent.agents import AgentExecutionError, make_agent_runner
from codeagent.config import AppConfig
from codeagent.context.prompt import generate_prompt
from codeagent.events.classify import classify_event
from codeagent.events.payload import extract_repository
from codeagent.events.types import (
    ISSUE_EVENTS,
    PR_EVENTS,
    ClassifiedEvent,
    IssueOpened,
    PullRequestReviewCommentCreated,
    RepositoryInfo,
)
from codeagent.files.changes import detect_changes
from codeagent.files.filtered_workspace import (
    cleanup_filtered_workspace,
    create_filtered_workspace,
    sync_changes,
)
from codeagent.files.snapshot import capture_file_state, is_empty_snapshot
from codeagent.security import has_write_permission, mask_sensitive_info
from codeagent.services.git import (
    GitRunnerError,
    add_all_and_commit,
    branch_name_for_event,
    checkout_branch,
    clone_repository,
    create_branch,
    push_branch,
)
from codeagent.trigger.resolver import TriggerDecision, command_prefix_for, resolve_with_overrides

LOG = logging.getLogger("codeagent.runner")

# GitHub rejects bodies over 65536 characters
OUTPUT_LIMIT = 60000
PROMPT_LOG_CHARS = 100
COMMENT_RETRIES = 3
COMMENT_RETRY_DELAY_SECONDS = 1.0


class EmptySnapshotError(Exception):
    """No files survived filtering, so the agent is not run."""


@dataclass(frozen=True)
class ProcessedEvent:
    """A triggering event with its decision and effective config."""

    event: ClassifiedEvent
    decision: TriggerDecision
    config: AppConfig
    payload: Dict[str, Any]
    repository: RepositoryInfo


def limit(text: str, max_length: int) -> str:
    return text if len(text) <= max_length else text[: max_length - 1] + "..."


def truncate_output(output: str, log: logging.Logger | None = None) -> str:
    """Cut output to OUTPUT_LIMIT characters for comment and PR bodies."""
    if len(output) > OUTPUT_LIMIT:
        (log or LOG).warning("Output exceeds %s characters, truncating", OUTPUT_LIMIT)
        return output[:OUTPUT_LIMIT]
    return output


def commit_message(event: ClassifiedEvent | None, changed_files: List[str]) -> str:
    """Fallback commit message; also used as the PR title."""
    if isinstance(event, PR_EVENTS):
        return f"Apply changes for PR #{event.number}"
    if isinstance(event, ISSUE_EVENTS):
        return f"Apply changes for Issue #{event.number}"
    count = len(changed_files)
    return f"Apply changes to {count} file{'' if count == 1 else 's'}"


def process_event(
    config: AppConfig,
    payload: Dict[str, Any],
    log: logging.Logger | None = None,
) -> ProcessedEvent | None:
    """Classify payload and resolve its trigger; None means do nothing."""
    logger = log or LOG
    if config.bot.disabled:
        logger.info("Bot is disabled, ignoring event")
        return None
    event = classify_event(payload, log=logger)
    if event is None:
        return None
    logger.info("Detected event type: %s", event.type)
    if config.bot.login and event.author.strip() == config.bot.login:
        logger.info("Ignoring event authored by the bot itself (%s)", config.bot.login)
        return None

    effective, decision = resolve_with_overrides(event, payload, config, log=logger)
    if decision is None:
        return None
    repository = extract_repository(payload, log=logger)
    if repository is None or not repository.full_name:
        repository = RepositoryInfo(full_name=config.bot.repository)
    return ProcessedEvent(
        event=event,
        decision=decision,
        config=effective,
        payload=payload,
        repository=repository,
    )


def _reaction_target(event: ClassifiedEvent) -> tuple[str, int]:
    if isinstance(event, IssueOpened):
        return "issue", event.number
    if isinstance(event, PullRequestReviewCommentCreated):
        return "review_comment", event.comment_id
    return "issue_comment", event.comment_id


def add_eye_reaction(
    adapter: GitPlatformAdapter,
    repo: str,
    event: ClassifiedEvent,
    log: logging.Logger | None = None,
) -> None:
    """Acknowledge the event; a failure is only logged."""
    logger = log or LOG
    subject, subject_id = _reaction_target(event)
    try:
        adapter.add_reaction(repo, subject, subject_id, "eyes")
    except GitPlatformError as e:
        logger.warning("Failed to add reaction to %s %s: %s", subject, subject_id, e)
        return
    logger.info("Added eyes reaction to %s %s", subject, subject_id)


def post_comment(
    adapter: GitPlatformAdapter,
    repo: str,
    event: ClassifiedEvent,
    body: str,
    max_retries: int = COMMENT_RETRIES,
    retry_delay: float = COMMENT_RETRY_DELAY_SECONDS,
    log: logging.Logger | None = None,
) -> bool:
    """Post body on the issue or PR, or as a reply in a review thread.

    A failed thread reply falls back to a PR conversation comment.
    Network and server errors are retried with linear backoff. Returns
    False when the comment could not be posted.
    """
    logger = log or LOG
    text = truncate_output(body, log=logger)
    retries = 0
    while True:
        try:
            if isinstance(event, PullRequestReviewCommentCreated):
                try:
                    adapter.reply_to_review_comment(repo, event.number, event.thread_root_id, text)
                    return True
                except (GitPlatformError, NotImplementedError) as e:
                    logger.warning("Failed to reply in review thread: %s", e)
                    logger.info("Falling back to a regular PR comment")
            adapter.create_comment(repo, event.number, text)
            return True
        except GitPlatformError as e:
            if e.retryable and retries < max_retries:
                retries += 1
                wait = retry_delay * retries
                logger.warning(
                    "Network error when posting comment: %s. Retrying %s/%s in %.1fs",
                    e,
                    retries,
                    max_retries,
                    wait,
                )
                time.sleep(wait)
                continue
            logger.error("Failed to post comment after %s retries: %s", retries, e)
            return False


def _clone_branch(processed: ProcessedEvent, adapter: GitPlatformAdapter) -> str:
    event = processed.event
    if isinstance(event, PR_EVENTS):
        return adapter.get_pr(processed.repository.full_name, event.number).head_branch
    return processed.repository.default_branch


def _clone_url(repository: RepositoryInfo) -> str:
    return repository.clone_url or f"https://github.com/{repository.full_name}.git"


def create_pull_request(
    processed: ProcessedEvent,
    adapter: GitPlatformAdapter,
    workspace: Path,
    message: str,
    output: str,
    log: logging.Logger | None = None,
) -> None:
    """Commit on a new {agent}/{issue} branch and open a PR that closes the
    issue."""
    logger = log or LOG
    config = processed.config
    event = processed.event
    repo = processed.repository.full_name
    branch = branch_name_for_event(processed.decision.agent, event)

    create_branch(branch, repo_dir=workspace, log=logger)
    if not add_all_and_commit(message, config.bot.name, config.bot.email, repo_dir=workspace, log=logger):
        post_comment(adapter, repo, event, output, log=logger)
        return
    push_branch(branch, repo_dir=workspace, force=True, log=logger)
    body = (
        f"_This pull request was created by the Code Agent and closes #{event.number}_.\n\n"
        f"{truncate_output(output, log=logger)}"
    )
    pr = adapter.create_pr(repo, message, body, branch, processed.repository.default_branch)
    logger.info("Pull request created at %s", pr.html_url)
    post_comment(
        adapter,
        repo,
        event,
        f"Created pull request #{pr.number} that closes this issue on merge.",
        log=logger,
    )


def commit_to_pull_request(
    processed: ProcessedEvent,
    adapter: GitPlatformAdapter,
    workspace: Path,
    message: str,
    output: str,
    log: logging.Logger | None = None,
) -> None:
    """Commit and push onto the PR head branch, then reply with output."""
    logger = log or LOG
    config = processed.config
    event = processed.event
    repo = processed.repository.full_name
    try:
        head = adapter.get_pr(repo, event.number).head_branch
        checkout_branch(head, repo_dir=workspace, log=logger)
        if add_all_and_commit(message, config.bot.name, config.bot.email, repo_dir=workspace, log=logger):
            push_branch(head, repo_dir=workspace, log=logger)
    except (GitPlatformError, GitRunnerError) as e:
        logger.error("Error committing and pushing changes: %s", e)
        post_comment(adapter, repo, event, f"Failed to apply changes to this PR: {e}", log=logger)
        raise
    post_comment(adapter, repo, event, output, log=logger)


def handle_result(
    processed: ProcessedEvent,
    adapter: GitPlatformAdapter,
    workspace: Path,
    output: str,
    changed_files: List[str],
    log: logging.Logger | None = None,
) -> None:
    """Publish the agent output and any file changes."""
    logger = log or LOG
    event = processed.event
    if not changed_files:
        post_comment(adapter, processed.repository.full_name, event, output, log=logger)
        return
    logger.info("Detected changes in %s files:\n%s", len(changed_files), "\n".join(changed_files))
    message = commit_message(event, changed_files)
    if isinstance(event, ISSUE_EVENTS):
        create_pull_request(processed, adapter, workspace, message, output, log=logger)
    else:
        commit_to_pull_request(processed, adapter, workspace, message, output, log=logger)


def _run_agent(
    processed: ProcessedEvent,
    adapter: GitPlatformAdapter,
    agent_workspace: Path,
    log: logging.Logger,
) -> tuple[str, List[str]]:
    config = processed.config
    repo = processed.repository.full_name
    before = capture_file_state(agent_workspace, config.filters, log=log)
    if is_empty_snapshot(before):
        raise EmptySnapshotError(f"No files to work on in {agent_workspace}; check the file filters")

    prompt = generate_prompt(
        adapter,
        repo,
        processed.event,
        processed.decision.instruction,
        config.context,
        command_prefix_for(processed.decision.agent, config.trigger),
        config.bot.login,
        log=log,
    )
    log.info("Prompt: %s", limit(prompt, PROMPT_LOG_CHARS))

    runner = make_agent_runner(processed.decision.agent, config, log=log)
    raw_output = runner.run(prompt, agent_workspace, config.agents.timeout_seconds)
    output = mask_sensitive_info(raw_output, config.secret_values())
    log.info("Output:\n%s", output)
    return output, detect_changes(agent_workspace, before, config.filters, log=log)


def run_action(
    processed: ProcessedEvent,
    adapter: GitPlatformAdapter,
    log: logging.Logger | None = None,
) -> bool:
    """Run the agent for a processed event and publish the result.

    Returns False when the run was skipped. Clone, API, snapshot and agent
    failures are reported on the issue or PR (except an empty snapshot)
    and re-raised.
    """
    logger = log or LOG
    config = processed.config
    event = processed.event
    repo = processed.repository.full_name
    secrets = config.secret_values()

    if config.bot.require_write_permission and not has_write_permission(adapter, repo, event.author, log=logger):
        logger.info("User %s lacks write permission, skipping", event.author or "(unknown)")
        return False

    add_eye_reaction(adapter, repo, event, log=logger)

    workspace = Path(config.bot.workspace)
    try:
        clone_repository(
            _clone_url(processed.repository),
            _clone_branch(processed, adapter),
            workspace,
            token=config.github_token_resolved,
            log=logger,
        )
    except (GitPlatformError, GitRunnerError) as e:
        post_comment(adapter, repo, event, mask_sensitive_info(f"Failed to clone repository: {e}", secrets), log=logger)
        raise

    agent_workspace = create_filtered_workspace(workspace, config.filters, config.codebase, log=logger)
    try:
        output, changed = _run_agent(processed, adapter, agent_workspace, logger)
        sync_changes(agent_workspace, workspace, changed, log=logger)
    except EmptySnapshotError as e:
        logger.warning("%s", e)
        raise
    except AgentExecutionError as e:
        post_comment(adapter, repo, event, mask_sensitive_info(f"CLI execution failed: {e}", secrets), log=logger)
        raise
    except GitPlatformError as e:
        post_comment(adapter, repo, event, mask_sensitive_info(f"Failed to fetch context: {e}", secrets), log=logger)
        raise
    finally:
        cleanup_filtered_workspace(agent_workspace, workspace, log=logger)

    handle_result(processed, adapter, workspace, output, changed, log=logger)
    logger.info("Action completed successfully")
    return True


def make_adapter(config: AppConfig) -> GitHubAdapter:
    """GitHub adapter from the resolved token; ValueError when none is set."""
    token = config.github_token_resolved
    if not token:
        raise ValueError("GitHub token is not configured (GITHUB_TOKEN or GITHUB_TOKEN_FILE)")
    return GitHubAdapter(token=token, api_url=config.github.api_url)
