"""Tests for codeagent.config (sections, load_config, apply_overrides)."""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from codeagent.config import (
    AppConfig,
    ContextBudget,
    FilterConfig,
    GitHubConfig,
    TriggerConfig,
    apply_overrides,
    load_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "GITHUB_TOKEN",
        "GITHUB_TOKEN_FILE",
        "BOT_REPOSITORY",
        "ANTHROPIC_API_KEY",
        "ANTHROPIC_API_KEY_FILE",
        "OPENAI_API_KEY",
        "OPENAI_API_KEY_FILE",
        "TRIGGER_LABELS",
        "CONTEXT_MAX_CONTEXT_TOKENS",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("codeagent.config._current_env", {})


class TestTriggerConfig:
    """Command prefixes, trigger labels and default agent."""

    def test_default_commands_in_priority_order(self) -> None:
        config = TriggerConfig()
        assert list(config.commands.items()) == [("/claude", "claude"), ("/codex", "codex")]
        assert config.labels == []
        assert config.default_agent == "claude"

    def test_labels_from_comma_string_are_lowercased(self) -> None:
        config = TriggerConfig(labels="Bot, AUTOMATION ,")
        assert config.labels == ["bot", "automation"]

    def test_unknown_default_agent_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TriggerConfig(default_agent="gpt")

    def test_command_for_unknown_agent_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TriggerConfig(commands={"/ai": "other"})


class TestFilterAndBudget:
    def test_filter_patterns_split_from_string(self) -> None:
        config = FilterConfig(exclude_patterns="*.md, docs/**", excluded_extensions=".bin,.dat")
        assert config.exclude_patterns == ["*.md", "docs/**"]
        assert config.excluded_extensions == [".bin", ".dat"]

    def test_empty_pattern_string_is_none(self) -> None:
        assert FilterConfig(include_patterns="").include_patterns is None

    def test_budget_defaults(self) -> None:
        budget = ContextBudget()
        assert budget.max_context_tokens is None
        assert budget.truncation_enabled is False


class TestLoadConfig:
    """load_config: YAML plus environment."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(tmp_path / "nope.yaml")
        assert isinstance(config, AppConfig)
        assert config.agents.timeout_seconds == 600

    def test_yaml_sections_and_env_substitution(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_REPO", "octo/hello")
        path = tmp_path / "config.yaml"
        path.write_text(
            "bot:\n"
            "  repository: ${MY_REPO}\n"
            "trigger:\n"
            "  labels: ai, review\n"
            "context:\n"
            "  max_context_tokens: 5000\n"
            "  truncation_enabled: true\n"
            "agents:\n"
            "  timeout_seconds: 120\n"
            "  claude:\n"
            "    model: claude-sonnet\n"
        )
        config = load_config(path)
        assert config.bot.repository == "octo/hello"
        assert config.trigger.labels == ["ai", "review"]
        assert config.context.max_context_tokens == 5000
        assert config.agents.timeout_seconds == 120
        assert config.agents.claude.model == "claude-sonnet"

    def test_token_from_secret_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        secret = tmp_path / "token"
        secret.write_text("ghp_secret\n")
        monkeypatch.setenv("GITHUB_TOKEN_FILE", str(secret))
        path = tmp_path / "config.yaml"
        path.write_text("bot:\n  name: bot\n")
        config = load_config(path)
        assert config.github_token_resolved == "ghp_secret"

    def test_token_in_config_wins(self) -> None:
        config = AppConfig(github=GitHubConfig(token="from-config"))
        assert config.github_token_resolved == "from-config"


def test_secret_values_collects_configured_secrets() -> None:
    config = AppConfig(github=GitHubConfig(token="tok"))
    config.agents.claude.base_url = "https://proxy.internal"
    assert "tok" in config.secret_values()
    assert "https://proxy.internal" in config.secret_values()
    assert None not in config.secret_values()


class TestApplyOverrides:
    """Run-time overrides applied to a copy of the config."""

    def test_kebab_and_snake_keys(self) -> None:
        config = AppConfig()
        result = apply_overrides(config, {"max-context-tokens": 8000, "trigger_labels": "Bot"})
        assert result.context.max_context_tokens == 8000
        assert result.trigger.labels == ["bot"]

    def test_original_config_is_not_modified(self) -> None:
        config = AppConfig()
        apply_overrides(config, {"max_history_items": 3, "timeout": 30})
        assert config.context.max_history_items is None
        assert config.agents.timeout_seconds == 600

    def test_aliases(self) -> None:
        result = apply_overrides(
            AppConfig(),
            {"max-history-comments": 2, "enable-context-truncation": True, "trigger-type": "codex"},
        )
        assert result.context.max_history_items == 2
        assert result.context.truncation_enabled is True
        assert result.trigger.default_agent == "codex"

    def test_invalid_value_is_ignored_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="codeagent.config"):
            result = apply_overrides(AppConfig(), {"max_context_tokens": "lots", "max_history_items": 4})
        assert result.context.max_context_tokens is None
        assert result.context.max_history_items == 4
        assert "max_context_tokens" in caplog.text

    def test_unknown_keys_are_ignored(self) -> None:
        result = apply_overrides(AppConfig(), {"github_token": "evil", "bot": {"disabled": True}})
        assert result.github.token is None
        assert result.bot.disabled is False

    def test_none_overrides_return_copy(self) -> None:
        config = AppConfig()
        result = apply_overrides(config, None)
        assert result == config
        assert result is not config
