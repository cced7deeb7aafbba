"""Configuration loading from YAML and environment.

Secrets (tokens, API keys) are taken from environment variables or from
files (Docker secrets). Never put real tokens in config files committed
to the repo.

Run-time overrides from an issue body (```yaml config``` blocks) are
applied to a copy of the loaded config with apply_overrides, so a
single run never mutates process-wide state.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG = logging.getLogger("codeagent.config")

DEFAULT_MAX_FILE_SIZE = 1024 * 1024

# Reserved agent names; also valid label names that select the agent directly
AGENT_NAMES = ("claude", "codex")


def _read_secret(env_key: str, file_env_key: str) -> str | None:
    """Read secret from env var or from file path in env (e.g. Docker
    secrets)."""
    value = _current_env.get(env_key)
    if value:
        return value.strip()
    file_path = _current_env.get(file_env_key)
    if file_path:
        return Path(file_path).read_text().strip()
    return None


# Injected by load_config so properties can read env/file
_current_env: dict[str, str] = {}


def _split_str_list(value: Any) -> Any:
    """Split comma-separated string into a list; empty string becomes None."""
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
        items = [item for item in items if item]
        return items or None
    return value


def _is_placeholder(value: str | None) -> bool:
    return not value or value.startswith("${")


class BotConfig(BaseSettings):
    """Bot identity, target repo and run switches."""

    model_config = SettingsConfigDict(env_prefix="BOT_", extra="ignore")

    name: str = Field(default="github-actions[bot]", description="Git user.name for commits")
    email: str = Field(
        default="github-actions[bot]@users.noreply.github.com",
        description="Git user.email for commits",
    )
    login: str = Field(
        default="github-actions[bot]",
        description="Login the automation posts as; its own events never trigger a run",
    )
    repository: str = Field(default="owner/repo", description="Target repo e.g. octo/hello")
    workspace: str = Field(default="/workspace/app", description="Directory the repo is cloned into")
    disabled: bool = Field(default=False, description="Do nothing when true")
    require_write_permission: bool = Field(
        default=False, description="Only act for authors with admin or write permission"
    )


class GitHubConfig(BaseSettings):
    """GitHub API and webhook settings."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: str | None = Field(default=None, description="PAT or app token; use env or secret file")
    api_url: str = Field(default="https://api.github.com", description="API base URL")
    webhook_path: str = Field(default="/webhook/github", description="Webhook URL path")
    webhook_secret: str = Field(default="", description="Secret for webhook signature verification")


class TriggerConfig(BaseSettings):
    """Command prefixes and trigger labels."""

    model_config = SettingsConfigDict(env_prefix="TRIGGER_", extra="ignore")

    # Checked in insertion order; first matching prefix wins
    commands: Dict[str, str] = Field(
        default_factory=lambda: {"/claude": "claude", "/codex": "codex"},
        description="Command prefix -> agent kind",
    )
    labels: List[str] = Field(default_factory=list, description="Custom labels that trigger the default agent")
    default_agent: str = Field(default="claude", description="Agent used for custom trigger labels")

    @field_validator("labels", mode="before")
    @classmethod
    def _split_labels(cls, value: Any) -> Any:
        value = _split_str_list(value)
        if value is None:
            return []
        return [str(label).strip().lower() for label in value]

    @field_validator("default_agent")
    @classmethod
    def _check_default_agent(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in AGENT_NAMES:
            raise ValueError(f"unknown agent: {value}")
        return value

    @field_validator("commands")
    @classmethod
    def _check_commands(cls, value: Dict[str, str]) -> Dict[str, str]:
        checked = {}
        for prefix, agent in value.items():
            agent = agent.strip().lower()
            if not prefix or agent not in AGENT_NAMES:
                raise ValueError(f"invalid command {prefix!r} -> {agent!r}")
            checked[prefix] = agent
        return checked


class FilterConfig(BaseSettings):
    """Which workspace files enter a snapshot."""

    model_config = SettingsConfigDict(env_prefix="FILTER_", extra="ignore")

    include_patterns: List[str] | None = Field(default=None, description="Glob patterns to enumerate")
    exclude_patterns: List[str] | None = Field(default=None, description="Extra ignore patterns")
    max_file_size_bytes: int = Field(default=DEFAULT_MAX_FILE_SIZE, ge=1, description="Larger files are skipped")
    excluded_extensions: List[str] = Field(default_factory=list, description="Extra extensions to skip")
    prioritize_patterns: List[str] | None = Field(default=None, description="Patterns processed first")

    @field_validator("include_patterns", "exclude_patterns", "prioritize_patterns", mode="before")
    @classmethod
    def _split_patterns(cls, value: Any) -> Any:
        return _split_str_list(value)

    @field_validator("excluded_extensions", mode="before")
    @classmethod
    def _split_extensions(cls, value: Any) -> Any:
        return _split_str_list(value) or []


class CodebaseConfig(BaseSettings):
    """Filtered workspace limits (copy of the repo handed to the agent)."""

    model_config = SettingsConfigDict(env_prefix="CODEBASE_", extra="ignore")

    enable_filtering: bool = Field(default=False, description="Run the agent in a filtered copy")
    max_files: int | None = Field(default=None, ge=1, description="Max files copied")
    max_size_bytes: int | None = Field(default=None, ge=1, description="Max total bytes copied")
    prioritize_recent_files: bool = Field(default=False, description="Most recently modified first")


class ContextBudget(BaseSettings):
    """Token and item limits for the assembled prompt."""

    model_config = SettingsConfigDict(env_prefix="CONTEXT_", extra="ignore")

    max_context_tokens: int | None = Field(default=None, ge=1, description="Token budget for the whole prompt")
    max_history_items: int | None = Field(default=None, ge=0, description="Most recent comments kept")
    max_changed_files_listed: int | None = Field(default=None, ge=0, description="First changed files kept")
    truncation_enabled: bool = Field(default=False, description="Enable token truncation")


class ClaudeAgentConfig(BaseSettings):
    """Claude Code CLI settings."""

    model_config = SettingsConfigDict(env_prefix="ANTHROPIC_", extra="ignore")

    command: str = Field(default="claude", description="CLI command name")
    api_key: str | None = Field(default=None, description="ANTHROPIC_API_KEY for the CLI")
    base_url: str | None = Field(default=None, description="ANTHROPIC_BASE_URL")
    model: str | None = Field(default=None, description="ANTHROPIC_MODEL")
    small_fast_model: str | None = Field(default=None, description="ANTHROPIC_SMALL_FAST_MODEL")
    allowed_tools: List[str] = Field(
        default_factory=lambda: ["Bash", "Edit", "Write"],
        description="--allowedTools passed to the CLI",
    )
    use_bedrock: bool = Field(default=False, description="CLAUDE_CODE_USE_BEDROCK")
    bedrock_base_url: str | None = Field(default=None, description="ANTHROPIC_BEDROCK_BASE_URL")
    aws_access_key_id: str | None = Field(default=None, description="AWS key for Bedrock")
    aws_secret_access_key: str | None = Field(default=None, description="AWS secret for Bedrock")
    aws_region: str | None = Field(default=None, description="AWS region for Bedrock")
    disable_prompt_caching: bool = Field(default=False, description="DISABLE_PROMPT_CACHING")

    @field_validator("allowed_tools", mode="before")
    @classmethod
    def _split_tools(cls, value: Any) -> Any:
        return _split_str_list(value) or []


class CodexAgentConfig(BaseSettings):
    """Codex CLI settings."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_", extra="ignore")

    command: str = Field(default="codex", description="CLI command name")
    api_key: str | None = Field(default=None, description="OPENAI_API_KEY for the CLI")
    base_url: str | None = Field(default=None, description="OPENAI_BASE_URL")
    model: str | None = Field(default=None, description="--model")


class AgentsConfig(BaseSettings):
    """Agent runners and their shared timeout."""

    model_config = SettingsConfigDict(env_prefix="AGENT_", extra="ignore")

    timeout_seconds: int = Field(default=600, ge=1, description="Hard timeout for one agent run")
    claude: ClaudeAgentConfig = Field(default_factory=ClaudeAgentConfig)
    codex: CodexAgentConfig = Field(default_factory=CodexAgentConfig)


class WebhookConfig(BaseSettings):
    """Webhook server settings."""

    model_config = SettingsConfigDict(env_prefix="WEBHOOK_", extra="ignore")

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOGGING_", extra="ignore")

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )


class AppConfig(BaseSettings):
    """Root application config from YAML + env."""

    model_config = SettingsConfigDict(extra="ignore")

    bot: BotConfig = Field(default_factory=BotConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    trigger: TriggerConfig = Field(default_factory=TriggerConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    codebase: CodebaseConfig = Field(default_factory=CodebaseConfig)
    context: ContextBudget = Field(default_factory=ContextBudget)
    agents: AgentsConfig = Field(default_factory=AgentsConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def github_token_resolved(self) -> str | None:
        """Resolve GitHub token from config, env or Docker secret file."""
        t = self.github.token
        if not _is_placeholder(t):
            return t
        return _read_secret("GITHUB_TOKEN", "GITHUB_TOKEN_FILE")

    @property
    def webhook_secret_resolved(self) -> str:
        """Resolve webhook secret from config, env or Docker secret file."""
        s = self.github.webhook_secret
        if not _is_placeholder(s):
            return s
        return _read_secret("WEBHOOK_SECRET", "WEBHOOK_SECRET_FILE") or ""

    @property
    def anthropic_api_key_resolved(self) -> str | None:
        """Resolve Anthropic API key for the Claude Code CLI."""
        k = self.agents.claude.api_key
        if not _is_placeholder(k):
            return k
        return _read_secret("ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY_FILE")

    @property
    def openai_api_key_resolved(self) -> str | None:
        """Resolve OpenAI API key for the Codex CLI."""
        k = self.agents.codex.api_key
        if not _is_placeholder(k):
            return k
        return _read_secret("OPENAI_API_KEY", "OPENAI_API_KEY_FILE")

    def secret_values(self) -> list[str]:
        """All configured secrets and private endpoints that must never be
        shown in output."""
        claude = self.agents.claude
        codex = self.agents.codex
        candidates = [
            self.github_token_resolved,
            self.anthropic_api_key_resolved,
            self.openai_api_key_resolved,
            claude.base_url,
            claude.bedrock_base_url,
            claude.aws_access_key_id,
            claude.aws_secret_access_key,
            codex.base_url,
        ]
        return [c for c in candidates if c]


# Override key -> (section, field). Only these may be changed from an issue body.
OVERRIDABLE_FIELDS: dict[str, tuple[str, str]] = {
    "trigger_labels": ("trigger", "labels"),
    "trigger_type": ("trigger", "default_agent"),
    "default_agent": ("trigger", "default_agent"),
    "include_patterns": ("filters", "include_patterns"),
    "exclude_patterns": ("filters", "exclude_patterns"),
    "max_file_size_bytes": ("filters", "max_file_size_bytes"),
    "excluded_extensions": ("filters", "excluded_extensions"),
    "prioritize_patterns": ("filters", "prioritize_patterns"),
    "max_context_tokens": ("context", "max_context_tokens"),
    "max_history_items": ("context", "max_history_items"),
    "max_history_comments": ("context", "max_history_items"),
    "max_changed_files_listed": ("context", "max_changed_files_listed"),
    "max_changed_files_context": ("context", "max_changed_files_listed"),
    "enable_context_truncation": ("context", "truncation_enabled"),
    "truncation_enabled": ("context", "truncation_enabled"),
    "enable_codebase_filtering": ("codebase", "enable_filtering"),
    "max_codebase_files": ("codebase", "max_files"),
    "prioritize_recent_files": ("codebase", "prioritize_recent_files"),
    "timeout": ("agents", "timeout_seconds"),
    "timeout_seconds": ("agents", "timeout_seconds"),
}


def _normalize_key(key: Any) -> str:
    return str(key).strip().lower().replace("-", "_")


def apply_overrides(
    config: AppConfig,
    overrides: Dict[str, Any] | None,
    log: logging.Logger | None = None,
) -> AppConfig:
    """Return a copy of config with known override keys applied.

    Keys may be snake_case or kebab-case (action input names such as
    max-context-tokens). Unknown keys are skipped; values that fail
    validation are logged and leave the previous value in place. The
    passed config is never modified.
    """
    logger = log or LOG
    result = config.model_copy(deep=True)
    if not overrides:
        return result
    for raw_key, value in overrides.items():
        key = _normalize_key(raw_key)
        target = OVERRIDABLE_FIELDS.get(key)
        if target is None:
            logger.debug("Ignoring unknown config override %r", raw_key)
            continue
        section_name, field_name = target
        section = getattr(result, section_name)
        data = section.model_dump()
        data[field_name] = value
        try:
            updated = type(section).model_validate(data)
        except ValidationError as e:
            logger.warning("Invalid value for config override %r: %s", raw_key, e.errors()[0].get("msg"))
            continue
        setattr(result, section_name, updated)
        logger.info("Applied config override %s=%r", key, value)
    return result


def _substitute_env(value: Any) -> Any:
    """Replace ${VAR} and $VAR in strings with os.environ."""
    if isinstance(value, str):
        if value.startswith("${") and value.endswith("}"):
            key = value[2:-1].strip()
            return _current_env.get(key, value)
        if value.startswith("$") and not value.startswith("${"):
            key = value[1:].strip()
            return _current_env.get(key, value)
        return value
    if isinstance(value, dict):
        return {k: _substitute_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v) for v in value]
    return value


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load config from YAML file and environment.

    Secrets: GITHUB_TOKEN or GITHUB_TOKEN_FILE, ANTHROPIC_API_KEY or
    ANTHROPIC_API_KEY_FILE, OPENAI_API_KEY or OPENAI_API_KEY_FILE,
    WEBHOOK_SECRET or WEBHOOK_SECRET_FILE.
    """
    global _current_env
    import os

    _current_env = dict(os.environ)

    path = config_path or Path("config.yaml")
    if not path.is_file():
        return AppConfig()

    raw = yaml.safe_load(path.read_text()) or {}
    raw = _substitute_env(raw)

    bot_raw = raw.get("bot") or {}
    if _current_env.get("BOT_REPOSITORY"):
        bot_raw = {**bot_raw, "repository": _current_env.get("BOT_REPOSITORY")}

    agents_raw = raw.get("agents") or {}
    shared_raw = {k: v for k, v in agents_raw.items() if k not in ("claude", "codex")}
    agents = AgentsConfig(
        **shared_raw,
        claude=ClaudeAgentConfig(**(agents_raw.get("claude") or {})),
        codex=CodexAgentConfig(**(agents_raw.get("codex") or {})),
    )

    return AppConfig(
        bot=BotConfig(**bot_raw),
        github=GitHubConfig(**(raw.get("github") or {})),
        trigger=TriggerConfig(**(raw.get("trigger") or {})),
        filters=FilterConfig(**(raw.get("filters") or {})),
        codebase=CodebaseConfig(**(raw.get("codebase") or {})),
        context=ContextBudget(**(raw.get("context") or {})),
        agents=agents,
        webhook=WebhookConfig(**(raw.get("webhook") or {})),
        logging=LoggingConfig(**(raw.get("logging") or {})),
    )
