"""Code agent: run Claude Code or Codex for GitHub issues and pull requests.

An event is classified, checked for a trigger (command prefix or label),
and the chosen agent runs on a fresh clone. Changed files are detected by
comparing content hashes before and after the run.
"""

__version__ = "0.1.0"
