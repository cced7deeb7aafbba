"""Tests for codeagent.trigger (command and label resolution, body overrides)."""

import logging

import pytest

from codeagent.config import AppConfig, TriggerConfig
from codeagent.events import IssueCommentCreated, IssueOpened, PullRequestCommentCreated
from codeagent.models import AgentKind
from codeagent.trigger import (
    TriggerDecision,
    command_prefix_for,
    extract_config_overrides,
    resolve_trigger,
    resolve_with_overrides,
)


def _comment_event(text: str, number: int = 7) -> IssueCommentCreated:
    return IssueCommentCreated(issue_number=number, title="t", body="b", comment_id=1, comment_body=text)


def _labeled_payload(*labels: str, title: str = "Add logging", body: str = "need structured logs") -> dict:
    return {
        "action": "opened",
        "issue": {"number": 5, "title": title, "body": body, "labels": [{"name": n} for n in labels]},
    }


class TestCommandTrigger:
    """Explicit command prefixes in the event text."""

    def test_claude_command(self) -> None:
        event = _comment_event("/claude please fix the typo")
        decision = resolve_trigger(event, {"issue": {"labels": []}}, TriggerConfig())
        assert decision == TriggerDecision(agent=AgentKind.CLAUDE, instruction="please fix the typo")

    def test_codex_command_on_pr(self) -> None:
        event = PullRequestCommentCreated(pr_number=3, comment_id=2, comment_body="/codex add tests\n")
        decision = resolve_trigger(event, {}, TriggerConfig())
        assert decision.agent is AgentKind.CODEX
        assert decision.instruction == "add tests"

    def test_command_wins_over_labels(self) -> None:
        event = _comment_event("/codex do it")
        decision = resolve_trigger(event, _labeled_payload("claude"), TriggerConfig())
        assert decision.agent is AgentKind.CODEX

    def test_command_without_instruction_is_no_run(self) -> None:
        assert resolve_trigger(_comment_event("/claude   "), {}, TriggerConfig()) is None

    def test_command_must_start_the_text(self) -> None:
        assert resolve_trigger(_comment_event("please /claude fix"), {}, TriggerConfig()) is None

    def test_custom_prefix(self) -> None:
        config = TriggerConfig(commands={"@bot": "codex"})
        decision = resolve_trigger(_comment_event("@bot refactor"), {}, config)
        assert decision.agent is AgentKind.CODEX
        assert resolve_trigger(_comment_event("/claude refactor"), {}, config) is None

    def test_resolution_is_repeatable(self) -> None:
        event = _comment_event("/claude please fix the typo")
        payload = {"issue": {"labels": [{"name": "codex"}]}}
        assert resolve_trigger(event, payload, TriggerConfig()) == resolve_trigger(event, payload, TriggerConfig())


class TestLabelTrigger:
    """Agent-named and custom trigger labels."""

    def test_agent_label_builds_issue_instruction(self) -> None:
        event = IssueOpened(issue_number=5, title="Add logging", body="need structured logs")
        decision = resolve_trigger(event, _labeled_payload("codex"), TriggerConfig())
        assert decision.agent is AgentKind.CODEX
        assert decision.instruction == "Review and address this issue: Add logging\n\nneed structured logs"

    def test_agent_label_case_insensitive(self) -> None:
        event = IssueOpened(issue_number=5, title="Add logging", body="x")
        decision = resolve_trigger(event, _labeled_payload("Claude"), TriggerConfig())
        assert decision.agent is AgentKind.CLAUDE

    def test_custom_label_selects_default_agent(self) -> None:
        config = TriggerConfig(labels="ai-review", default_agent="codex")
        event = IssueOpened(issue_number=5, title="Add logging", body="x")
        assert resolve_trigger(event, _labeled_payload("AI-Review"), config).agent is AgentKind.CODEX

    def test_unconfigured_label_is_no_run(self) -> None:
        event = IssueOpened(issue_number=5, title="Add logging", body="x")
        assert resolve_trigger(event, _labeled_payload("bug"), TriggerConfig()) is None

    def test_pull_request_instruction(self) -> None:
        event = PullRequestCommentCreated(pr_number=3, comment_id=2, comment_body="looks good")
        payload = {"pull_request": {"title": "Cache", "body": "adds cache", "labels": [{"name": "claude"}]}}
        decision = resolve_trigger(event, payload, TriggerConfig())
        assert decision.instruction == "Review this pull request: Cache\n\nadds cache"

    def test_generic_instruction_without_title(self) -> None:
        event = _comment_event("hello")
        decision = resolve_trigger(event, {"label": {"name": "claude"}}, TriggerConfig())
        assert decision.instruction == "Please review the changes and provide feedback."


def test_command_prefix_for() -> None:
    config = TriggerConfig()
    assert command_prefix_for(AgentKind.CLAUDE, config) == "/claude"
    assert command_prefix_for(AgentKind.CODEX, TriggerConfig(commands={"/claude": "claude"})) is None


class TestConfigOverrides:
    """```yaml config``` and ```json config``` blocks in a body."""

    def test_yaml_block(self) -> None:
        body = "Fix it\n\n```yaml config\nmax-context-tokens: 8000\ntrigger-labels: bot\n```\n"
        assert extract_config_overrides(body) == {"max-context-tokens": 8000, "trigger-labels": "bot"}

    def test_json_block(self) -> None:
        body = '```JSON config\n{"timeout": 30}\n```'
        assert extract_config_overrides(body) == {"timeout": 30}

    def test_yaml_wins_over_json(self) -> None:
        body = '```json config\n{"timeout": 30}\n```\n```yaml config\ntimeout: 60\n```'
        assert extract_config_overrides(body) == {"timeout": 60}

    def test_no_block(self) -> None:
        assert extract_config_overrides("just text\n```yaml\na: 1\n```") is None
        assert extract_config_overrides(None) is None

    def test_malformed_block_is_ignored(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            assert extract_config_overrides('```json config\n{"timeout": \n```') is None
        assert "Failed to parse config overrides" in caplog.text

    def test_non_mapping_is_ignored(self) -> None:
        assert extract_config_overrides("```yaml config\n- a\n- b\n```") is None


class TestResolveWithOverrides:
    def test_overrides_feed_trigger_and_budget(self) -> None:
        payload = {
            "issue": {
                "title": "Add logging",
                "body": "```yaml config\ntrigger-labels: automation\ntrigger-type: codex\nmax-history-comments: 2\n```",
                "labels": [{"name": "automation"}],
            }
        }
        event = IssueOpened(issue_number=5, title="Add logging", body=payload["issue"]["body"])
        config = AppConfig()
        effective, decision = resolve_with_overrides(event, payload, config)
        assert decision.agent is AgentKind.CODEX
        assert effective.context.max_history_items == 2
        assert config.trigger.labels == []
        assert config.context.max_history_items is None

    def test_no_overrides_keeps_config(self) -> None:
        event = _comment_event("/claude go")
        effective, decision = resolve_with_overrides(event, {"issue": {"body": "plain"}}, AppConfig())
        assert effective == AppConfig()
        assert decision.instruction == "go"
