# chunksync/cli/context.py
"""
CLIContext - everything a command needs, built from one project path.

Commands open the store inside their own event loop and always close it,
so the debounced index.json flush never outlives the command.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from chunksync.config.loader import ConfigError, load_config
from chunksync.config.schema import ChunksyncConfig
from chunksync.ingest.indexer import IndexProgress, IndexService
from chunksync.ingest.state.store import ChunkStore
from chunksync.logging.logger import configure_logging
from chunksync.sync.client import SyncClient
from chunksync.sync.coordinator import SyncCoordinator
from chunksync.sync.project import ProjectConfig

from chunksync.cli.ui import ui


@dataclass
class CLIContext:
    project_root: Path
    config: ChunksyncConfig

    @classmethod
    def load(cls, project: Path, config_file: Optional[Path] = None, verbose: bool = False) -> "CLIContext":
        root = project.expanduser().resolve()
        if not root.is_dir():
            ui.error(f"Not a directory: {root}")
            raise typer.Exit(code=2)

        try:
            config = load_config(config_file)
        except ConfigError as e:
            ui.error(str(e))
            raise typer.Exit(code=2) from e

        configure_logging("DEBUG" if verbose else config.log_level)
        return cls(project_root=root, config=config)

    def open_store(self) -> ChunkStore:
        store = ChunkStore(flush_delay=self.config.store.flush_delay)
        store.open(self.project_root)
        return store

    def project_config(self) -> ProjectConfig:
        return ProjectConfig(self.project_root)

    def indexer(self, store: ChunkStore, verbose: bool = False) -> IndexService:
        def on_progress(progress: IndexProgress) -> None:
            if verbose:
                ui.info(
                    f"{progress.phase.value}: files {progress.files_done}/{progress.files_total}, "
                    f"chunks {progress.chunks_embedded}/{progress.chunks_total}"
                )

        return IndexService.from_config(self.project_root, store, self.config, on_progress=on_progress)

    def sync_client(self) -> SyncClient:
        return SyncClient(self.config.sync)

    def coordinator(self, store: ChunkStore, client: SyncClient, verbose: bool = False) -> SyncCoordinator:
        return SyncCoordinator(
            self.project_root,
            store=store,
            indexer=self.indexer(store, verbose=verbose),
            client=client,
            project_config=self.project_config(),
        )


__all__ = ["CLIContext"]
