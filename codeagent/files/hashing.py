"""SHA-256 digests of file contents."""

import hashlib
import logging
from pathlib import Path

LOG = logging.getLogger("codeagent.files.hashing")

_CHUNK_SIZE = 64 * 1024


class FileHashError(OSError):
    """Raised when a file cannot be read for hashing."""

    def __init__(self, path: Path | str, reason: str) -> None:
        super().__init__(f"cannot hash {path}: {reason}")
        self.path = str(path)
        self.reason = reason


def hash_bytes(data: bytes) -> str:
    """Return the hex SHA-256 digest of an in-memory buffer."""
    return hashlib.sha256(data).hexdigest()


def calculate_file_hash(path: Path | str, log: logging.Logger | None = None) -> str:
    """Return the hex SHA-256 digest of a file's bytes.

    Raises FileHashError when the file cannot be read (vanished,
    permission denied, is a directory); the caller decides whether to
    skip the file or abort.
    """
    logger = log or LOG
    digest = hashlib.sha256()
    try:
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as e:
        logger.error("Failed to calculate hash for %s: %s", path, e)
        raise FileHashError(path, e.strerror or str(e)) from e
    return digest.hexdigest()
