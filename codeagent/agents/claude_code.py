"""Claude Code CLI runner: claude -p PROMPT --allowedTools Bash,Edit,Write."""

import logging
from typing import Dict, List, Sequence

from codeagent.agents.base import AgentRunner


class ClaudeCodeRunner(AgentRunner):
    """Headless Claude Code with a fixed tool allow-list."""

    name = "claude"

    def __init__(
        self,
        command: str = "claude",
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        small_fast_model: str | None = None,
        allowed_tools: Sequence[str] = ("Bash", "Edit", "Write"),
        use_bedrock: bool = False,
        bedrock_base_url: str | None = None,
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
        aws_region: str | None = None,
        disable_prompt_caching: bool = False,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(command, log=log)
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.small_fast_model = small_fast_model
        self.allowed_tools = list(allowed_tools)
        self.use_bedrock = use_bedrock
        self.bedrock_base_url = bedrock_base_url
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.aws_region = aws_region
        self.disable_prompt_caching = disable_prompt_caching

    def build_args(self, prompt: str) -> List[str]:
        cmd = [self.command, "-p", prompt]
        if self.allowed_tools:
            cmd.extend(["--allowedTools", ",".join(self.allowed_tools)])
        return cmd

    def extra_env(self) -> Dict[str, str]:
        env: Dict[str, str] = {}
        if self.api_key:
            env["ANTHROPIC_API_KEY"] = self.api_key
        if self.base_url:
            env["ANTHROPIC_BASE_URL"] = self.base_url
        if self.model:
            env["ANTHROPIC_MODEL"] = self.model
        if self.small_fast_model:
            env["ANTHROPIC_SMALL_FAST_MODEL"] = self.small_fast_model
        if self.disable_prompt_caching:
            env["DISABLE_PROMPT_CACHING"] = "1"
        if self.use_bedrock:
            env["CLAUDE_CODE_USE_BEDROCK"] = "1"
            if self.bedrock_base_url:
                env["ANTHROPIC_BEDROCK_BASE_URL"] = self.bedrock_base_url
            if self.aws_access_key_id:
                env["AWS_ACCESS_KEY_ID"] = self.aws_access_key_id
            if self.aws_secret_access_key:
                env["AWS_SECRET_ACCESS_KEY"] = self.aws_secret_access_key
            if self.aws_region:
                env["AWS_REGION"] = self.aws_region
        return env
