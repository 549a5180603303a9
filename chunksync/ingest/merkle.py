# chunksync/ingest/merkle.py
"""
Merkle snapshot of a project: per-file content hashes plus one root hash.

This is a flat hash map, not a hierarchical tree. Two snapshots are
equal iff their root hashes are equal, and ``diff`` lists the files
that differ.

Root hash:
    sha256("|".join(f"{path}:{hash}" for path, hash in sorted(pairs)))
    sha256("empty") when there are no files

Paths are project-relative with "/" separators and no trailing slash,
so the same checkout produces the same root hash on every machine.

Usage:
    builder = MerkleBuilder(project_root)
    local = builder.build_tree({"notes/a.md": text_a, "b.txt": text_b})
    changes = diff_trees(local, remote)      # remote may be None
    builder.save(paths.merkle_file, local)
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from chunksync.core.paths import atomic_write_text
from chunksync.ingest.hashing import compute_text_hash
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import MERKLE

logger = get_logger(__name__)

EMPTY_TREE_SENTINEL = "empty"
PAIR_DELIMITER = "|"


# =============================================================================
# Models
# =============================================================================


class MerkleNode(BaseModel):
    path: str
    hash: str
    is_file: bool = True

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MerkleTree(BaseModel):
    """Snapshot serialized as ``merkle.json`` and exchanged with the backend."""

    root_hash: str = Field(..., description="Aggregate hash over all file hashes")
    nodes: Dict[str, MerkleNode] = Field(default_factory=dict)
    file_hashes: Dict[str, str] = Field(default_factory=dict, description="path -> content hash")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_wire(cls, data: dict) -> "MerkleTree":
        return cls.model_validate(data)


class ChangeType(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class ChangeRecord:
    """One file that differs between two snapshots."""

    path: str
    change_type: ChangeType
    hash: Optional[str] = None


# =============================================================================
# Pure functions
# =============================================================================


def normalize_path(path: Union[str, Path], project_root: Union[str, Path, None] = None) -> str:
    """
    Normalize a path for use as a tree key.

    Examples:
        >>> normalize_path("C:\\\\work\\\\proj\\\\notes\\\\a.md", "C:\\\\work\\\\proj")
        'notes/a.md'
        >>> normalize_path("docs/")
        'docs'
    """
    normalized = str(path).replace("\\", "/")

    if project_root is not None:
        root = str(project_root).replace("\\", "/").rstrip("/")
        if root and normalized.startswith(root + "/"):
            normalized = normalized[len(root) + 1 :]

    if normalized.startswith("./"):
        normalized = normalized[2:]
    return normalized.rstrip("/")


def compute_root_hash(file_hashes: Mapping[str, str]) -> str:
    if not file_hashes:
        return compute_text_hash(EMPTY_TREE_SENTINEL)
    combined = PAIR_DELIMITER.join(f"{path}:{file_hashes[path]}" for path in sorted(file_hashes))
    return compute_text_hash(combined)


def diff_trees(local: MerkleTree, remote: Optional[MerkleTree]) -> List[ChangeRecord]:
    """
    Files that differ between a local and a remote snapshot.

    ``remote is None`` means the backend has never seen the project:
    every local file is added. Records come sorted by path, added and
    modified first, removed last.
    """
    if remote is None:
        return [
            ChangeRecord(path=path, change_type=ChangeType.ADDED, hash=local.file_hashes[path])
            for path in sorted(local.file_hashes)
        ]

    changes: List[ChangeRecord] = []
    for path in sorted(local.file_hashes):
        local_hash = local.file_hashes[path]
        remote_hash = remote.file_hashes.get(path)
        if remote_hash is None:
            changes.append(ChangeRecord(path=path, change_type=ChangeType.ADDED, hash=local_hash))
        elif remote_hash != local_hash:
            changes.append(ChangeRecord(path=path, change_type=ChangeType.MODIFIED, hash=local_hash))

    for path in sorted(remote.file_hashes):
        if path not in local.file_hashes:
            changes.append(ChangeRecord(path=path, change_type=ChangeType.REMOVED))

    return changes


# =============================================================================
# Builder
# =============================================================================


class MerkleBuilder:
    """Builds, persists and loads snapshots for one project."""

    def __init__(self, project_root: Union[str, Path, None] = None) -> None:
        self._project_root = project_root

    @staticmethod
    def hash_file(content: str) -> str:
        return compute_text_hash(content)

    def normalize_path(self, path: Union[str, Path]) -> str:
        return normalize_path(path, self._project_root)

    def build_tree(self, files: Mapping[str, str]) -> MerkleTree:
        """Hash every file (path -> content) and build the snapshot."""
        return self.build_tree_from_hashes({path: self.hash_file(c) for path, c in files.items()})

    def build_tree_from_hashes(self, file_hashes: Mapping[str, str]) -> MerkleTree:
        """Build a snapshot from precomputed content hashes (path -> hash)."""
        normalized: Dict[str, str] = {}
        for path, file_hash in file_hashes.items():
            key = self.normalize_path(path)
            if not key:
                continue
            normalized[key] = file_hash

        tree = MerkleTree(
            root_hash=compute_root_hash(normalized),
            nodes={p: MerkleNode(path=p, hash=h) for p, h in normalized.items()},
            file_hashes=normalized,
        )
        logger.debug(f"{MERKLE} Built tree over {len(normalized)} files: {tree.root_hash[:12]}")
        return tree

    @staticmethod
    def diff(local: MerkleTree, remote: Optional[MerkleTree]) -> List[ChangeRecord]:
        return diff_trees(local, remote)

    @staticmethod
    def load(path: Union[str, Path]) -> Optional[MerkleTree]:
        """Load a persisted snapshot. Missing or unreadable files mean "no tree"."""
        p = Path(path)
        if not p.exists():
            return None
        try:
            with p.open("r", encoding="utf-8") as f:
                return MerkleTree.from_wire(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"{MERKLE} Ignoring unreadable snapshot {p}: {e}")
            return None

    @staticmethod
    def save(path: Union[str, Path], tree: MerkleTree) -> None:
        atomic_write_text(Path(path), json.dumps(tree.to_wire(), indent=2))
        logger.debug(f"{MERKLE} Saved snapshot to {path}")


__all__ = [
    "EMPTY_TREE_SENTINEL",
    "MerkleNode",
    "MerkleTree",
    "ChangeType",
    "ChangeRecord",
    "MerkleBuilder",
    "normalize_path",
    "compute_root_hash",
    "diff_trees",
]
