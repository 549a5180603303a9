# chunksync/ingest/hashing.py
"""
Content hashing for change detection.

SHA-256 over UTF-8 bytes, rendered as bare lowercase hex. Hashes are
compared against the remote backend, so the format must stay stable:
no prefix, no truncation.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Union

_BLOCK_SIZE = 65536


def compute_text_hash(text: str) -> str:
    """
    SHA-256 of a string's UTF-8 bytes.

    Examples:
        >>> compute_text_hash("")
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def compute_file_hash(path: Union[str, Path]) -> str:
    """
    SHA-256 of a file's raw bytes, read in 64KB blocks.

    For a UTF-8 text file this equals compute_text_hash() of its decoded content.

    Raises:
        FileNotFoundError: If file doesn't exist
        IsADirectoryError: If path is a directory
    """
    p = Path(path)

    if not p.exists():
        raise FileNotFoundError(f"File not found: {path}")

    if p.is_dir():
        raise IsADirectoryError(f"Path is a directory: {path}")

    hasher = hashlib.sha256()
    with p.open("rb") as f:
        while block := f.read(_BLOCK_SIZE):
            hasher.update(block)

    return hasher.hexdigest()


__all__ = ["compute_text_hash", "compute_file_hash"]
