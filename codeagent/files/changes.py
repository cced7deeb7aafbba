"""Detect added, modified and deleted files between two snapshots."""

import logging
from pathlib import Path
from typing import List

from codeagent.config import FilterConfig
from codeagent.files.snapshot import FileSnapshot, capture_file_state

LOG = logging.getLogger("codeagent.files.changes")


def diff_snapshots(before: FileSnapshot, after: FileSnapshot) -> List[str]:
    """Paths whose digest or presence differs between the snapshots.

    Additions and modifications come first in the order of after,
    followed by deletions in the order of before. The kind of change is
    not reported.
    """
    changed: dict[str, None] = {}
    for path, digest in after.items():
        if before.get(path) != digest:
            changed[path] = None
    for path in before:
        if path not in after:
            changed[path] = None
    return list(changed)


def detect_changes(
    workspace: Path | str,
    before: FileSnapshot,
    config: FilterConfig | None = None,
    log: logging.Logger | None = None,
) -> List[str]:
    """Re-capture the workspace and diff it against before.

    config must be the same FilterConfig used to capture before; a
    different filter makes untouched files look added or deleted.
    """
    logger = log or LOG
    logger.info("Detecting file changes by comparing states")
    after = capture_file_state(workspace, config, log=logger)
    changed = diff_snapshots(before, after)
    if changed:
        logger.info("Detected changes in %s files: %s", len(changed), ", ".join(changed))
    else:
        logger.info("No file changes detected between states")
    return changed
