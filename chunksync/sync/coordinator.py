# chunksync/sync/coordinator.py
"""
SyncCoordinator - one full local-to-remote sync cycle.

    index pass (scan, re-chunk changed files, embed backlog)
        -> local Merkle tree from the current file hashes
        -> ensure the backend project exists
        -> fetch the remote tree (None if the backend has none)
        -> diff
        -> one payload per changed file (removed files: empty chunk list)
        -> ONE push carrying every payload and the new tree
        -> persist the tree to merkle.json

The push is all-or-nothing. When it fails nothing is persisted, so the
next cycle computes the same diff again. A conflict (HTTP 409) surfaces
as SyncConflictError and is never retried here: the caller decides.

Two cycles against the same project must not overlap; serialize them in
the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from chunksync.ingest.indexer import IndexReport, IndexService
from chunksync.ingest.merkle import ChangeRecord, ChangeType, MerkleBuilder, MerkleTree, diff_trees
from chunksync.ingest.state.store import ChunkStore
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import SYNC
from chunksync.sync.client import FilePayload, PushResult, SyncClient
from chunksync.sync.project import ProjectConfig

logger = get_logger(__name__)


@dataclass
class SyncOutcome:
    project_id: str
    tree: MerkleTree
    changes: List[ChangeRecord] = field(default_factory=list)
    result: Optional[PushResult] = None
    index_report: Optional[IndexReport] = None

    @property
    def changed_count(self) -> int:
        return len(self.changes)

    @property
    def pushed(self) -> bool:
        return self.result is not None


class SyncCoordinator:
    """Drives index + diff + push for one project."""

    def __init__(
        self,
        project_path: Union[str, Path],
        store: ChunkStore,
        indexer: IndexService,
        client: SyncClient,
        project_config: Optional[ProjectConfig] = None,
    ) -> None:
        self._root = Path(project_path).resolve()
        self._store = store
        self._indexer = indexer
        self._client = client
        self._project_config = project_config or ProjectConfig(self._root)
        self._builder = MerkleBuilder(self._root.as_posix())

    @property
    def merkle_file(self) -> Path:
        return self._project_config.paths.merkle_file

    def load_local_tree(self) -> Optional[MerkleTree]:
        """The last tree accepted by the backend, if any."""
        return self._builder.load(self.merkle_file)

    async def run_cycle(self, reindex: bool = True, project_name: Optional[str] = None) -> SyncOutcome:
        """
        Run one sync cycle.

        Args:
            reindex: Run an index pass first. Either way the local tree is
                     built from the hash records in the store.
            project_name: Display name for a newly created backend project.

        Raises:
            SyncConflictError: Concurrent modification on the backend; retry advisable.
            SyncError: Any other backend failure. Nothing was persisted.
        """
        report: Optional[IndexReport] = None
        if reindex:
            report = await self._indexer.index_workspace()

        # Hash records only exist for content that was actually chunked.
        file_hashes = {p: r.hash for p, r in self._store.get_all_file_hashes().items()}

        local = self._builder.build_tree_from_hashes(file_hashes)

        project_id = self._project_config.get_or_create_project_id()
        await self._client.ensure_project(project_id, project_name or self._root.name or "Workspace")

        logger.info(f"{SYNC} Fetching remote tree for {project_id}")
        remote = await self._client.fetch_remote_tree(project_id)
        changes = diff_trees(local, remote)
        outcome = SyncOutcome(project_id=project_id, tree=local, changes=changes, index_report=report)

        if not changes:
            logger.info(f"{SYNC} Remote is up to date ({local.root_hash[:12]})")
            self._builder.save(self.merkle_file, local)
            return outcome

        payloads = self.build_payloads(changes)
        logger.info(f"{SYNC} Pushing {len(payloads)} changed files")
        outcome.result = await self._client.push_changes(project_id, local, payloads)

        self._builder.save(self.merkle_file, local)
        return outcome

    def build_payloads(self, changes: List[ChangeRecord]) -> List[FilePayload]:
        """One payload per change, with project-relative paths."""
        payloads: List[FilePayload] = []
        for change in changes:
            rel = self._builder.normalize_path(change.path)
            if change.change_type == ChangeType.REMOVED:
                payloads.append(FilePayload(file_path=rel, chunks=[]))
                continue

            rows = self._store.get_chunks_for_file(change.path)
            record = self._store.get_file_hash(change.path)
            payloads.append(
                FilePayload(
                    file_path=rel,
                    chunks=[row.to_chunk() for row in rows],
                    file_hash=record.hash if record is not None else change.hash,
                )
            )
        return payloads

    def reset(self) -> None:
        """Forget all local state so the next cycle re-indexes and re-pushes everything."""
        reset_local_state(self._store, self.merkle_file)


def reset_local_state(store: ChunkStore, merkle_file: Path) -> None:
    """Clear an open store and delete the persisted tree."""
    store.clear()
    store.flush()
    if merkle_file.exists():
        merkle_file.unlink()
    logger.info(f"{SYNC} Local index and Merkle tree reset")


__all__ = ["SyncCoordinator", "SyncOutcome", "reset_local_state"]
