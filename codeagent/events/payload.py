"""Read event payloads and pull simple values out of them."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from codeagent.events.types import ClassifiedEvent, RepositoryInfo

LOG = logging.getLogger("codeagent.events.payload")


class EventPayloadError(Exception):
    """Event payload file missing, unreadable or not a JSON object."""


def load_event_payload(path: Path | str) -> Dict[str, Any]:
    """Load the JSON event file written by the workflow runner."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise EventPayloadError(f"Cannot read event file {p}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise EventPayloadError(f"Event file {p} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise EventPayloadError(f"Event file {p} does not contain a JSON object")
    return data


def extract_text(event: ClassifiedEvent) -> str:
    """Primary text: issue body for an opened issue, comment body otherwise."""
    return event.text


def _label_names(labels: Any) -> List[str]:
    if not isinstance(labels, list):
        return []
    names = []
    for label in labels:
        name = label.get("name") if isinstance(label, dict) else label
        if isinstance(name, str) and name:
            names.append(name.lower())
    return names


def extract_labels(payload: Dict[str, Any]) -> List[str]:
    """Lower-cased label names from the issue, the pull request, or a
    label-change payload, in that order of preference."""
    issue = payload.get("issue")
    if isinstance(issue, dict) and issue.get("labels"):
        return _label_names(issue["labels"])
    pull = payload.get("pull_request")
    if isinstance(pull, dict) and pull.get("labels"):
        return _label_names(pull["labels"])
    label = payload.get("label")
    if label:
        return _label_names([label])
    return []


def extract_repository(payload: Dict[str, Any], log: logging.Logger | None = None) -> RepositoryInfo | None:
    """Repository block of the payload, or None when absent or malformed."""
    logger = log or LOG
    repo = payload.get("repository")
    if not isinstance(repo, dict):
        return None
    try:
        return RepositoryInfo(
            full_name=repo.get("full_name") or "",
            default_branch=repo.get("default_branch") or "main",
            clone_url=repo.get("clone_url") or "",
        )
    except ValidationError as e:
        logger.warning("Malformed repository block: %s", e)
        return None
