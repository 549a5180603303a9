# chunksync/cli/commands/status.py
"""
Status and remote-index commands.

Usage:
    chunksync status ./notes
    chunksync status ./notes --remote
    chunksync remote-index ./notes -f a.md -f b.md
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, Optional

import typer

from chunksync.cli.context import CLIContext
from chunksync.cli.ui import ui
from chunksync.ingest.merkle import MerkleBuilder
from chunksync.sync.client import RemoteIndexStatus
from chunksync.sync.errors import SyncError


async def _remote_status(ctx: CLIContext, project_id: str) -> RemoteIndexStatus:
    async with ctx.sync_client() as client:
        return await client.get_status(project_id)


async def _trigger(ctx: CLIContext, project_id: str, files: Optional[List[str]]) -> str:
    async with ctx.sync_client() as client:
        return await client.trigger_index(project_id, files)


def command(project: Path, config: Optional[Path] = None, remote: bool = False) -> None:
    ctx = CLIContext.load(project, config)
    project_config = ctx.project_config()

    store = ctx.open_store()
    try:
        rows = [
            ["Files", str(store.file_count)],
            ["Chunks", str(store.chunk_count)],
            ["Embeddings", str(store.embedding_count)],
            ["Backlog", str(len(store.get_chunks_without_embeddings()))],
        ]
    finally:
        store.close()

    project_id = project_config.read_project_id()
    tree = MerkleBuilder.load(project_config.paths.merkle_file)
    rows.append(["Project id", project_id or "-"])
    rows.append(["Last synced root", tree.root_hash[:12] if tree else "never"])
    ui.table(["", "Value"], rows, title=str(ctx.project_root))

    if not remote:
        return
    if project_id is None:
        ui.warning("Project was never synced", "run `chunksync sync` first")
        return

    try:
        status = asyncio.run(_remote_status(ctx, project_id))
    except SyncError as e:
        ui.warning("Remote status unavailable", e.user_message)
        return

    ui.table(
        ["Status", "Progress", "Files", "Indexed", "Chunks"],
        [
            [
                status.status,
                f"{status.progress:g}",
                str(status.total_files),
                str(status.indexed_files),
                str(status.total_chunks),
            ]
        ],
        title="Remote",
    )


def trigger(project: Path, files: Optional[List[str]] = None, config: Optional[Path] = None) -> None:
    ctx = CLIContext.load(project, config)
    project_id = ctx.project_config().get_or_create_project_id()

    try:
        job_id = asyncio.run(_trigger(ctx, project_id, files or None))
    except SyncError as e:
        ui.error(e.user_message)
        raise typer.Exit(code=1) from e

    ui.success(f"Index job {job_id} started for {project_id}")
