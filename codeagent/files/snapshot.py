"""Capture the state (relative path -> SHA-256) of workspace files.

Files pass through, in order: enumeration (include patterns or a full
walk), layered ignore rules (built-in excludes, caller excludes,
.gitignore), extension exclusion, size exclusion and optional
prioritization, and are then hashed.

Files larger than max_file_size_bytes never enter a snapshot, so a change
to such a file is never reported.
"""

import fnmatch
import logging
import os
from pathlib import Path
from typing import Dict, Iterable, List

from codeagent.config import FilterConfig
from codeagent.files.hashing import FileHashError, calculate_file_hash
from codeagent.files.ignore import IgnoreMatcher

LOG = logging.getLogger("codeagent.files.snapshot")

FileSnapshot = Dict[str, str]

VCS_DIR = ".git"
GITIGNORE = ".gitignore"

INFRA_EXCLUDES = (
    ".git/**",
    "node_modules/**",
    "**/dist/**",
    "**/build/**",
    "**/.cache/**",
)

DEFAULT_EXCLUDED_EXTENSIONS = frozenset(
    {
        # Binary and large file types
        ".exe", ".dll", ".so", ".dylib", ".obj", ".o",
        ".zip", ".tar", ".gz", ".7z", ".rar",
        ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".ico", ".webp",
        ".mp3", ".mp4", ".avi", ".mov", ".wav",
        ".pdf", ".doc", ".docx", ".ppt", ".pptx", ".xls", ".xlsx",
        # Build artifacts and caches
        ".class", ".pyc", ".pyo", ".pyd",
        # Logs
        ".log",
    }
)  # fmt: skip


def _normalize_extensions(extensions: Iterable[str]) -> set[str]:
    result = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        result.add(ext if ext.startswith(".") else f".{ext}")
    return result


def build_ignore_matcher(
    workspace: Path,
    config: FilterConfig,
    log: logging.Logger | None = None,
) -> IgnoreMatcher:
    """Layer built-in excludes, caller excludes and the workspace
    .gitignore."""
    logger = log or LOG
    matcher = IgnoreMatcher()
    matcher.add(INFRA_EXCLUDES, source="builtin")
    if config.exclude_patterns:
        added = matcher.add(config.exclude_patterns, source="exclude_patterns")
        logger.info("Added %s custom exclude patterns", added)
    gitignore = workspace / GITIGNORE
    if gitignore.is_file():
        try:
            matcher.add(gitignore.read_text(encoding="utf-8", errors="replace"), source=GITIGNORE)
            logger.debug("Read ignore rules from %s", gitignore)
        except OSError as e:
            logger.warning("Failed to read %s: %s; proceeding with current ignores", gitignore, e)
    return matcher


def _walk_files(workspace: Path) -> List[str]:
    """Every file below workspace (dot-files included), .git pruned."""
    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(workspace):
        dirnames[:] = [d for d in dirnames if d != VCS_DIR]
        rel_dir = Path(dirpath).relative_to(workspace)
        for name in filenames:
            found.append((rel_dir / name).as_posix())
    return sorted(found)


def _glob_files(workspace: Path, patterns: List[str], log: logging.Logger) -> List[str]:
    """Files matching any include pattern, first occurrence kept."""
    seen: dict[str, None] = {}
    for pattern in patterns:
        try:
            matches = sorted(
                p.relative_to(workspace).as_posix() for p in workspace.glob(pattern) if p.is_file()
            )
        except (ValueError, NotImplementedError) as e:
            log.warning("Skipping invalid include pattern %r: %s", pattern, e)
            continue
        for rel in matches:
            if VCS_DIR in rel.split("/"):
                continue
            seen.setdefault(rel, None)
    return list(seen)


def enumerate_files(
    workspace: Path,
    include_patterns: List[str] | None = None,
    log: logging.Logger | None = None,
) -> List[str]:
    """Candidate paths relative to workspace, forward-slash separated."""
    logger = log or LOG
    if include_patterns:
        logger.info("Using custom include patterns: %s", ", ".join(include_patterns))
        return _glob_files(workspace, include_patterns, logger)
    return _walk_files(workspace)


def _is_priority(path: str, patterns: List[str]) -> bool:
    return any(fnmatch.fnmatchcase(path, f"*{pattern}*") for pattern in patterns)


def prioritize(paths: List[str], patterns: List[str] | None) -> List[str]:
    """Stable partition: paths matching any pattern (anywhere in the path)
    first."""
    if not patterns:
        return list(paths)
    priority: List[str] = []
    regular: List[str] = []
    for path in paths:
        if _is_priority(path, patterns):
            priority.append(path)
        else:
            regular.append(path)
    return priority + regular


def select_files(
    workspace: Path | str,
    config: FilterConfig | None = None,
    log: logging.Logger | None = None,
) -> List[str]:
    """Apply enumeration, ignore, extension, size and priority rules.

    Returns the surviving relative paths in processing order.
    """
    logger = log or LOG
    root = Path(workspace)
    cfg = config or FilterConfig()

    matcher = build_ignore_matcher(root, cfg, log=logger)
    candidates = enumerate_files(root, cfg.include_patterns, log=logger)
    files = matcher.filter(candidates)

    excluded = DEFAULT_EXCLUDED_EXTENSIONS | _normalize_extensions(cfg.excluded_extensions)
    files = [f for f in files if Path(f).suffix.lower() not in excluded]

    sized: List[str] = []
    for rel in files:
        try:
            size = (root / rel).stat().st_size
        except OSError as e:
            logger.warning("Could not stat %s: %s", rel, e)
            continue
        if size > cfg.max_file_size_bytes:
            logger.info("Skipping file exceeding size limit (%.2fkb): %s", size / 1024, rel)
            continue
        sized.append(rel)

    ordered = prioritize(sized, cfg.prioritize_patterns)
    if cfg.prioritize_patterns:
        count = sum(1 for p in sized if _is_priority(p, cfg.prioritize_patterns))
        logger.info("Prioritized %s files based on provided patterns", count)
    logger.info("Found %s total files, processing %s files after filtering", len(candidates), len(ordered))
    return ordered


def capture_file_state(
    workspace: Path | str,
    config: FilterConfig | None = None,
    log: logging.Logger | None = None,
) -> FileSnapshot:
    """Capture {relative path: sha256 hex} for files surviving the filters.

    Unreadable files are logged and skipped. An empty result is returned
    as an empty dict with a warning: it usually means a misconfigured
    filter, and callers must not compare against it.
    """
    logger = log or LOG
    root = Path(workspace)
    logger.info("Capturing current file state of %s", root)
    state: FileSnapshot = {}
    for rel in select_files(root, config, log=logger):
        try:
            state[rel] = calculate_file_hash(root / rel, log=logger)
        except FileHashError as e:
            logger.warning("Could not process file %s: %s", rel, e.reason)
    if not state:
        logger.warning("No files were captured after filtering")
        return {}
    logger.info("Captured state of %s files", len(state))
    return state


def is_empty_snapshot(snapshot: FileSnapshot) -> bool:
    """True when nothing survived filtering (nothing to compare)."""
    return len(snapshot) == 0
