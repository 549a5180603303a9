# chunksync/cli/commands/sync.py
"""
Sync command.

Usage:
    chunksync sync ./notes
    chunksync sync ./notes --no-reindex
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from chunksync.cli.commands.index import show_report
from chunksync.cli.context import CLIContext
from chunksync.cli.ui import ui
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import CLI
from chunksync.sync.coordinator import SyncOutcome
from chunksync.sync.errors import SyncError

logger = get_logger(__name__)


async def _run(ctx: CLIContext, reindex: bool, name: Optional[str], verbose: bool) -> SyncOutcome:
    store = ctx.open_store()
    try:
        async with ctx.sync_client() as client:
            coordinator = ctx.coordinator(store, client, verbose=verbose)
            return await coordinator.run_cycle(reindex=reindex, project_name=name)
    finally:
        store.close()


def command(
    project: Path,
    config: Optional[Path] = None,
    reindex: bool = True,
    name: Optional[str] = None,
    verbose: bool = False,
) -> None:
    ctx = CLIContext.load(project, config, verbose=verbose)
    ui.header("chunksync sync", str(ctx.project_root))

    try:
        outcome = asyncio.run(_run(ctx, reindex, name, verbose))
    except SyncError as e:
        logger.debug(f"{CLI} Sync failed: {e}")
        ui.error(e.user_message)
        if e.retryable:
            ui.info("Retrying later is safe; nothing was recorded as synced.")
        raise typer.Exit(code=1) from e

    if outcome.index_report is not None:
        show_report(outcome.index_report)

    if not outcome.changes:
        ui.success(f"Already in sync ({outcome.tree.root_hash[:12]})")
        return

    ui.table(
        ["File", "Change"],
        [[c.path, c.change_type.value] for c in outcome.changes],
        title=f"Project {outcome.project_id}",
    )
    result = outcome.result
    if result is not None:
        ui.success(
            f"Synced {outcome.changed_count} files "
            f"({result.inserted} inserted, {result.updated} updated, {result.deleted} deleted)"
        )
