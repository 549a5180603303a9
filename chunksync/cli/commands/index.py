# chunksync/cli/commands/index.py
"""
Index command.

Usage:
    chunksync index ./notes
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

from chunksync.cli.context import CLIContext
from chunksync.cli.ui import ui
from chunksync.ingest.indexer import IndexReport
from chunksync.logging.logger import get_logger
from chunksync.logging.tags import CLI

logger = get_logger(__name__)


async def _run(ctx: CLIContext, verbose: bool) -> IndexReport:
    store = ctx.open_store()
    try:
        return await ctx.indexer(store, verbose=verbose).index_workspace()
    finally:
        store.close()


def show_report(report: IndexReport) -> None:
    ui.table(
        ["Files scanned", "Re-chunked", "Removed", "Chunks", "Embedded", "Failed"],
        [
            [
                str(report.files_scanned),
                str(report.files_chunked),
                str(report.files_removed),
                str(report.chunks_total),
                str(report.embedded),
                str(report.failed),
            ]
        ],
    )
    if report.failed:
        ui.warning(
            f"{report.failed} chunks have no embedding yet",
            "they are retried on the next run",
        )


def command(project: Path, config: Optional[Path] = None, verbose: bool = False) -> None:
    ctx = CLIContext.load(project, config, verbose=verbose)
    ui.header("chunksync index", str(ctx.project_root))

    logger.debug(f"{CLI} Indexing {ctx.project_root}")
    report = asyncio.run(_run(ctx, verbose))

    show_report(report)
    ui.success("Index up to date")
