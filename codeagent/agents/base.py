"""Abstract base for agent runners that shell out to a CLI."""

import logging
import os
import subprocess
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List


class AgentExecutionError(Exception):
    """Agent CLI missing, or it exited non-zero."""


class AgentTimeoutError(AgentExecutionError):
    """Agent CLI did not finish within the timeout. Never retried."""


class AgentRunner(ABC):
    """Run one agent CLI invocation in a workspace and return its stdout."""

    name = "agent"

    def __init__(self, command: str, log: logging.Logger | None = None) -> None:
        self.command = command
        self._log = log or logging.getLogger(f"codeagent.agents.{self.name}")

    @abstractmethod
    def build_args(self, prompt: str) -> List[str]:
        """Full argv for the CLI, prompt included."""

    def extra_env(self) -> Dict[str, str]:
        """Variables added on top of the current environment."""
        return {}

    def run(self, prompt: str, workspace: Path | str, timeout_seconds: int) -> str:
        """Run the CLI in workspace; return stdout.

        Raises AgentTimeoutError when the timeout expires and
        AgentExecutionError when the CLI is missing or exits non-zero.
        """
        timeout_ms = timeout_seconds * 1000
        self._log.info("Executing %s CLI in %s with timeout %sms", self.name, workspace, timeout_ms)
        env = os.environ.copy()
        env.update(self.extra_env())
        started = time.monotonic()
        try:
            result = subprocess.run(
                self.build_args(prompt),
                cwd=str(workspace),
                env=env,
                timeout=timeout_seconds,
                check=False,
                capture_output=True,
                text=True,
            )
        except subprocess.TimeoutExpired as e:
            self._log.error("%s CLI timed out after %sms", self.name, timeout_ms)
            raise AgentTimeoutError(f"{self.name} CLI timed out after {timeout_ms}ms") from e
        except FileNotFoundError as e:
            self._log.error("%s CLI not found: %s", self.name, e)
            raise AgentExecutionError(f"{self.name} CLI not found: {self.command}") from e

        elapsed_ms = int((time.monotonic() - started) * 1000)
        self._log.info("%s CLI exited with code %s after %sms", self.name, result.returncode, elapsed_ms)
        stdout = result.stdout or ""
        stderr = (result.stderr or "").strip()
        if result.returncode != 0:
            detail = f"Stderr: {stderr}" if stderr else f"Stdout: {stdout.strip()}"
            self._log.error("%s CLI failed with exit code %s", self.name, result.returncode)
            raise AgentExecutionError(f"{self.name} CLI failed with exit code {result.returncode}. {detail}")
        if stderr:
            self._log.warning("%s CLI exited successfully but wrote to stderr: %s", self.name, stderr)
        return stdout
