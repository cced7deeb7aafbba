"""Workspace snapshots and change detection."""

from codeagent.files.changes import detect_changes, diff_snapshots
from codeagent.files.hashing import FileHashError, calculate_file_hash, hash_bytes
from codeagent.files.ignore import IgnoreLayer, IgnoreMatcher
from codeagent.files.snapshot import (
    DEFAULT_EXCLUDED_EXTENSIONS,
    INFRA_EXCLUDES,
    FileSnapshot,
    capture_file_state,
    select_files,
)

__all__ = [
    "DEFAULT_EXCLUDED_EXTENSIONS",
    "FileHashError",
    "FileSnapshot",
    "INFRA_EXCLUDES",
    "IgnoreLayer",
    "IgnoreMatcher",
    "calculate_file_hash",
    "capture_file_state",
    "detect_changes",
    "diff_snapshots",
    "hash_bytes",
    "select_files",
]
