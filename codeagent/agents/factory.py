"""Build the runner for a trigger decision from app config."""

import logging

from codeagent.agents.base import AgentRunner
from codeagent.agents.claude_code import ClaudeCodeRunner
from codeagent.agents.codex import CodexRunner
from codeagent.config import AppConfig
from codeagent.models import AgentKind


def make_agent_runner(kind: AgentKind, config: AppConfig, log: logging.Logger | None = None) -> AgentRunner:
    """ClaudeCodeRunner or CodexRunner configured from config.agents and
    the resolved API keys."""
    if kind == AgentKind.CLAUDE:
        cfg = config.agents.claude
        return ClaudeCodeRunner(
            command=cfg.command,
            api_key=config.anthropic_api_key_resolved,
            base_url=cfg.base_url,
            model=cfg.model,
            small_fast_model=cfg.small_fast_model,
            allowed_tools=cfg.allowed_tools,
            use_bedrock=cfg.use_bedrock,
            bedrock_base_url=cfg.bedrock_base_url,
            aws_access_key_id=cfg.aws_access_key_id,
            aws_secret_access_key=cfg.aws_secret_access_key,
            aws_region=cfg.aws_region,
            disable_prompt_caching=cfg.disable_prompt_caching,
            log=log,
        )
    cfg = config.agents.codex
    return CodexRunner(
        command=cfg.command,
        api_key=config.openai_api_key_resolved,
        base_url=cfg.base_url,
        model=cfg.model,
        log=log,
    )
