# chunksync/core/paths.py
"""
Project-scoped paths.

Every indexed project keeps its local state in one hidden directory:

    <project>/.chunksync/
        config.json   project identity
        index.json    file hashes, chunk rows and embeddings
        merkle.json   last accepted Merkle tree
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

STATE_DIR_NAME = ".chunksync"


@dataclass(frozen=True)
class ProjectPaths:
    """Resolved locations of the state files of one project."""

    project_root: Path

    @classmethod
    def for_project(cls, project_path: Union[str, Path]) -> "ProjectPaths":
        return cls(project_root=Path(project_path).expanduser().resolve())

    @property
    def state_dir(self) -> Path:
        return self.project_root / STATE_DIR_NAME

    @property
    def config_file(self) -> Path:
        return self.state_dir / "config.json"

    @property
    def index_file(self) -> Path:
        return self.state_dir / "index.json"

    @property
    def merkle_file(self) -> Path:
        return self.state_dir / "merkle.json"

    def ensure_state_dir(self) -> Path:
        """Get the state directory and create it if it doesn't exist."""
        self.state_dir.mkdir(parents=True, exist_ok=True)
        return self.state_dir


def atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` through a temp file so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        with temp_path.open("w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        temp_path.replace(path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise


__all__ = ["STATE_DIR_NAME", "ProjectPaths", "atomic_write_text"]
