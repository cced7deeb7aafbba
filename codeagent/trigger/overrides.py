"""Extract run-time config overrides from an issue or PR body.

Recognised blocks (tag is case-insensitive):

    ```yaml config
    max-context-tokens: 8000
    ```

    ```json config
    {"trigger-labels": "bot,automation"}
    ```

When both are present the YAML block wins.
"""

import json
import logging
import re
from typing import Any, Dict

import yaml

LOG = logging.getLogger("codeagent.trigger.overrides")

YAML_BLOCK = re.compile(r"```yaml\s*?config\s*?\n(.*?)```", re.IGNORECASE | re.DOTALL)
JSON_BLOCK = re.compile(r"```json\s*?config\s*?\n(.*?)```", re.IGNORECASE | re.DOTALL)


def extract_config_overrides(body: str | None, log: logging.Logger | None = None) -> Dict[str, Any] | None:
    """Parsed override mapping, or None when there is no usable block.

    A block that fails to parse or does not hold a mapping is logged as a
    warning and ignored.
    """
    logger = log or LOG
    if not body:
        return None

    content = None
    is_yaml = False
    match = YAML_BLOCK.search(body)
    if match and match.group(1).strip():
        content = match.group(1).strip()
        is_yaml = True
    else:
        match = JSON_BLOCK.search(body)
        if match and match.group(1).strip():
            content = match.group(1).strip()
    if not content:
        return None

    try:
        data = yaml.safe_load(content) if is_yaml else json.loads(content)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        logger.warning("Failed to parse config overrides: %s", e)
        return None
    if not isinstance(data, dict):
        logger.warning("Config overrides must be a mapping, got %s", type(data).__name__)
        return None
    logger.debug("Extracted config overrides: %s", data)
    return data
