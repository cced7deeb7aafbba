"""External coding agent runners (Claude Code CLI, Codex CLI)."""

from codeagent.agents.base import AgentExecutionError, AgentRunner, AgentTimeoutError
from codeagent.agents.claude_code import ClaudeCodeRunner
from codeagent.agents.codex import CodexRunner
from codeagent.agents.factory import make_agent_runner

__all__ = [
    "AgentExecutionError",
    "AgentRunner",
    "AgentTimeoutError",
    "ClaudeCodeRunner",
    "CodexRunner",
    "make_agent_runner",
]
