# chunksync/cli/commands/project.py
"""
Project identity and reset commands.

Usage:
    chunksync project-id ./notes
    chunksync project-id ./notes --set lf-0123456789ab
    chunksync reset ./notes --yes
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from chunksync.cli.context import CLIContext
from chunksync.cli.ui import ui
from chunksync.sync.coordinator import reset_local_state
from chunksync.sync.project import ProjectConfig


def command(project: Path, set_id: Optional[str] = None) -> None:
    config = ProjectConfig(project)
    if set_id is not None:
        if not set_id.strip():
            ui.error("Project id must not be empty")
            raise typer.Exit(code=2)
        config.set_project_id(set_id.strip())
        ui.success(f"Project id set to {set_id.strip()}")
        return

    ui.print(config.get_or_create_project_id())


def reset(project: Path, yes: bool = False) -> None:
    ctx = CLIContext.load(project)
    if not yes and not typer.confirm(f"Clear the local index of {ctx.project_root}?"):
        raise typer.Exit(code=1)

    store = ctx.open_store()
    try:
        reset_local_state(store, ctx.project_config().paths.merkle_file)
    finally:
        store.close()
    ui.success("Local index and Merkle tree cleared")
