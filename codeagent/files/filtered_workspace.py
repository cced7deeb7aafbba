"""Filtered copy of the workspace handed to the agent.

When codebase filtering is enabled, only files that survive the snapshot
filters (and the codebase file-count and byte limits) are copied into a
temporary directory, together with a few repository files agents rely
on. Any failure falls back to the original workspace.
"""

import logging
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List

from codeagent.config import CodebaseConfig, FilterConfig
from codeagent.context.tokens import estimate_tokens
from codeagent.files.snapshot import select_files

LOG = logging.getLogger("codeagent.files.filtered_workspace")

TEMP_PREFIX = "filtered-workspace-"

ESSENTIAL_FILES = (
    "README.md",
    "LICENSE",
    ".gitignore",
    "Makefile",
    "Dockerfile",
    "docker-compose.yml",
    "docker-compose.yaml",
    "pyproject.toml",
    "setup.cfg",
    "requirements.txt",
    "package.json",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "tsconfig.json",
)


@dataclass(frozen=True)
class CandidateFile:
    """A file selected for the filtered workspace."""

    relative_path: str
    size: int
    mtime: float
    estimated_tokens: int

    @property
    def weight(self) -> int:
        # Tokens weigh more than raw bytes
        return self.size + self.estimated_tokens * 10


def _collect(source: Path, filters: FilterConfig, log: logging.Logger) -> List[CandidateFile]:
    files: List[CandidateFile] = []
    for rel in select_files(source, filters, log=log):
        path = source / rel
        try:
            stats = path.stat()
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.debug("Skipping %s for filtered workspace: %s", rel, e)
            continue
        files.append(
            CandidateFile(
                relative_path=rel,
                size=stats.st_size,
                mtime=stats.st_mtime,
                estimated_tokens=estimate_tokens(text),
            )
        )
    return files


def apply_codebase_limits(
    files: List[CandidateFile],
    config: CodebaseConfig,
    log: logging.Logger | None = None,
) -> List[CandidateFile]:
    """Order by recency or weight, then cap file count and total bytes."""
    logger = log or LOG
    if config.prioritize_recent_files:
        ordered = sorted(files, key=lambda f: f.mtime, reverse=True)
    else:
        ordered = sorted(files, key=lambda f: f.weight)

    if config.max_files:
        ordered = ordered[: config.max_files]
        logger.info("Limited to %s files", config.max_files)

    if config.max_size_bytes:
        total = 0
        limited: List[CandidateFile] = []
        for f in ordered:
            if total + f.size > config.max_size_bytes:
                break
            limited.append(f)
            total += f.size
        ordered = limited
        logger.info("Limited to %.2f MB of files", total / 1024 / 1024)
    return ordered


def create_filtered_workspace(
    source: Path | str,
    filters: FilterConfig,
    codebase: CodebaseConfig,
    log: logging.Logger | None = None,
) -> Path:
    """Return a temp directory with the filtered files, or source itself
    when filtering is disabled or fails."""
    logger = log or LOG
    source_path = Path(source)
    if not codebase.enable_filtering:
        logger.info("Codebase filtering disabled, using original workspace")
        return source_path

    target = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    logger.info("Creating filtered workspace %s", target)
    try:
        files = apply_codebase_limits(_collect(source_path, filters, logger), codebase, log=logger)
        for f in files:
            dest = target / f.relative_path
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source_path / f.relative_path, dest)
        for name in ESSENTIAL_FILES:
            src = source_path / name
            if src.is_file() and not (target / name).exists():
                shutil.copy2(src, target / name)
        total_kb = sum(f.size for f in files) / 1024
        logger.info("Filtered workspace created with %s files (%.0f KB total)", len(files), total_kb)
        return target
    except OSError as e:
        logger.error("Failed to create filtered workspace: %s", e)
        shutil.rmtree(target, ignore_errors=True)
        return source_path


def sync_changes(
    filtered: Path | str,
    original: Path | str,
    changed: List[str],
    log: logging.Logger | None = None,
) -> None:
    """Copy changed paths from the filtered workspace back to the original.

    A path missing from the filtered workspace was deleted by the agent
    and is removed from the original too.
    """
    logger = log or LOG
    src_root = Path(filtered)
    dst_root = Path(original)
    if src_root == dst_root:
        return
    for rel in changed:
        src = src_root / rel
        dst = dst_root / rel
        if src.is_file():
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)
        elif dst.is_file():
            dst.unlink()
    logger.info("Synced %s changed files back to %s", len(changed), dst_root)


def cleanup_filtered_workspace(workspace: Path | str, original: Path | str, log: logging.Logger | None = None) -> None:
    """Remove a filtered workspace created by create_filtered_workspace."""
    logger = log or LOG
    path = Path(workspace)
    if path == Path(original) or not path.name.startswith(TEMP_PREFIX):
        return
    shutil.rmtree(path, ignore_errors=True)
    logger.info("Cleaned up filtered workspace %s", path)
