# chunksync/sync/project.py
"""
Project identity.

The backend keys everything by a project id stored in
``.chunksync/config.json``. When none is stored yet, a stable id is derived
from the project path, so the same checkout maps to the same remote
project across runs:

    "lf-" + sha256(lowercased, "/"-normalized path)[:12]
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from chunksync.core.paths import ProjectPaths, atomic_write_text
from chunksync.ingest.hashing import compute_text_hash
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import SYNC

logger = get_logger(__name__)

PROJECT_ID_PREFIX = "lf-"


class ProjectConfigFile(BaseModel):
    """Contents of config.json."""

    project_id: str = Field(..., min_length=1, alias="projectId")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


def derive_project_id(project_path: Union[str, Path]) -> str:
    normalized = str(project_path).replace("\\", "/").rstrip("/").lower()
    return PROJECT_ID_PREFIX + compute_text_hash(normalized)[:12]


class ProjectConfig:
    """Reads and writes the project id of one project."""

    def __init__(self, project_path: Union[str, Path]) -> None:
        self._paths = ProjectPaths.for_project(project_path)

    @property
    def paths(self) -> ProjectPaths:
        return self._paths

    def read_project_id(self) -> Optional[str]:
        path = self._paths.config_file
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                return ProjectConfigFile.model_validate(json.load(f)).project_id
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"{SYNC} Ignoring invalid project config {path}: {e}")
            return None

    def set_project_id(self, project_id: str) -> None:
        config = ProjectConfigFile(project_id=project_id)
        atomic_write_text(
            self._paths.config_file,
            json.dumps(config.model_dump(by_alias=True), indent=2),
        )
        logger.info(f"{SYNC} Project id set to {project_id}")

    def get_or_create_project_id(self) -> str:
        project_id = self.read_project_id()
        if project_id:
            return project_id
        project_id = derive_project_id(self._paths.project_root.as_posix())
        self.set_project_id(project_id)
        return project_id


__all__ = ["PROJECT_ID_PREFIX", "ProjectConfig", "ProjectConfigFile", "derive_project_id"]
