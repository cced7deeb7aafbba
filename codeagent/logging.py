"""Logging from config and env.

Levels (inclusive):
- ERROR: failed runs and failed API calls
- WARNING: skipped files, malformed overrides, failed reactions, and ERROR
- INFO: run progress (trigger, clone, agent, commit, push), WARNING, and ERROR
- DEBUG: ignored override keys, file-level snapshot details, and all above

Configure via config.yaml (logging.level, logging.format) or env (LOGGING_LEVEL, LOGGING_FORMAT).
Configured secrets are masked in every record that reaches the root handlers.
"""

import logging
from typing import Iterable

from codeagent.config import LoggingConfig
from codeagent.security import mask_sensitive_info

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}

DEFAULT_LEVEL = "INFO"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Chatty at INFO/DEBUG; request URLs may carry tokens
QUIET_LOGGERS = ("urllib3", "requests")


def _resolve_level(level: str) -> int:
    """Map level name to logging constant.

    Falls back to INFO if unknown.
    """
    return LEVELS.get(level.upper().strip(), logging.INFO)


class SecretMaskFilter(logging.Filter):
    """Replaces secrets in the formatted message of each record."""

    def __init__(self, secrets: Iterable[str | None]) -> None:
        super().__init__()
        self._secrets = [s for s in secrets if s]

    def filter(self, record: logging.LogRecord) -> bool:
        if self._secrets:
            message = record.getMessage()
            masked = mask_sensitive_info(message, self._secrets)
            if masked != message:
                record.msg = masked
                record.args = None
        return True


class CodeAgentLogging:
    """Configures the root logger from LoggingConfig and masks secrets."""

    def __init__(self, config: LoggingConfig, secrets: Iterable[str | None] = ()) -> None:
        self._level = _resolve_level(config.level)
        self._format = config.format or DEFAULT_FORMAT
        self._secrets = list(secrets)

    def setup(self) -> None:
        """Apply level, format and the secret filter to the root logger."""
        logging.basicConfig(
            level=self._level,
            format=self._format,
            force=True,
        )
        mask = SecretMaskFilter(self._secrets)
        for handler in logging.root.handlers:
            handler.addFilter(mask)
        quiet_level = max(self._level, logging.WARNING)
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(quiet_level)

    def get_logger(self, name: str) -> logging.Logger:
        """Return a logger with the given name (uses root config)."""
        return logging.getLogger(name)
