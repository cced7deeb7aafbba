"""Codex CLI runner: codex exec --full-auto PROMPT."""

import logging
from typing import Dict, List

from codeagent.agents.base import AgentRunner


class CodexRunner(AgentRunner):
    name = "codex"

    def __init__(
        self,
        command: str = "codex",
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(command, log=log)
        self.api_key = api_key
        self.base_url = base_url
        self.model = model

    def build_args(self, prompt: str) -> List[str]:
        cmd = [self.command, "exec", "--full-auto"]
        if self.model:
            cmd.extend(["--model", self.model])
        cmd.append(prompt)
        return cmd

    def extra_env(self) -> Dict[str, str]:
        env: Dict[str, str] = {}
        if self.api_key:
            env["OPENAI_API_KEY"] = self.api_key
        if self.base_url:
            env["OPENAI_BASE_URL"] = self.base_url
        return env
