# chunksync/cli/cli.py
"""
chunksync CLI - Main application.

Commands:
    chunksync index         Chunk and embed a workspace locally
    chunksync sync          Index, then push changed files to the backend
    chunksync status        Local index counts and remote index status
    chunksync remote-index  Ask the backend to (re)index the project
    chunksync project-id    Show or set the project id
    chunksync reset         Clear the local index and Merkle tree

Commands import their implementation only when invoked.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

app = typer.Typer(
    name="chunksync",
    help="Incrementally chunk, embed and sync a text workspace.",
    no_args_is_help=True,
    add_completion=False,
)


@app.command("index")
def index(
    project: Path = typer.Argument(Path("."), help="Project directory."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config overriding the defaults."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed progress."),
) -> None:
    """Chunk changed files and embed the backlog."""
    from chunksync.cli.commands import index as mod

    mod.command(project=project, config=config, verbose=verbose)


@app.command("sync")
def sync(
    project: Path = typer.Argument(Path("."), help="Project directory."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config overriding the defaults."),
    reindex: bool = typer.Option(True, "--reindex/--no-reindex", help="Run an index pass first."),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Backend project display name."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show detailed progress."),
) -> None:
    """Push changed files to the remote indexing backend."""
    from chunksync.cli.commands import sync as mod

    mod.command(project=project, config=config, reindex=reindex, name=name, verbose=verbose)


@app.command("status")
def status(
    project: Path = typer.Argument(Path("."), help="Project directory."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config overriding the defaults."),
    remote: bool = typer.Option(False, "--remote", "-r", help="Also query the backend."),
) -> None:
    """Show local index counts (and the remote status with --remote)."""
    from chunksync.cli.commands import status as mod

    mod.command(project=project, config=config, remote=remote)


@app.command("remote-index")
def remote_index(
    project: Path = typer.Argument(Path("."), help="Project directory."),
    files: Optional[List[str]] = typer.Option(None, "--file", "-f", help="Limit to these paths."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config overriding the defaults."),
) -> None:
    """Ask the backend to (re)index the project."""
    from chunksync.cli.commands import status as mod

    mod.trigger(project=project, files=files, config=config)


@app.command("project-id")
def project_id(
    project: Path = typer.Argument(Path("."), help="Project directory."),
    set_id: Optional[str] = typer.Option(None, "--set", help="Overwrite the stored project id."),
) -> None:
    """Show (or set) the project id used by the backend."""
    from chunksync.cli.commands import project as mod

    mod.command(project=project, set_id=set_id)


@app.command("reset")
def reset(
    project: Path = typer.Argument(Path("."), help="Project directory."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation."),
) -> None:
    """Clear the local index and Merkle tree, forcing a full re-index."""
    from chunksync.cli.commands import project as mod

    mod.reset(project=project, yes=yes)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
