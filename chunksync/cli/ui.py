# chunksync/cli/ui.py
"""
Shared UI helpers for CLI commands.

Usage:
    from chunksync.cli.ui import ui, console

    ui.header("Sync")
    ui.success("Done!")
    ui.table(["File", "Change"], rows)
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()


class UI:
    """Consistent styling for every command."""

    def print(self, msg: str, style: str = "") -> None:
        if style:
            console.print(f"[{style}]{msg}[/{style}]")
        else:
            console.print(msg)

    def header(self, title: str, subtitle: str = "") -> None:
        if subtitle:
            content = f"[bold]{title}[/bold]\n[dim]{subtitle}[/dim]"
        else:
            content = f"[bold]{title}[/bold]"
        console.print(Panel.fit(content, border_style="blue"))

    def success(self, msg: str) -> None:
        console.print(f"[green]✓[/green] {msg}")

    def error(self, msg: str) -> None:
        console.print(f"[red]✗[/red] {msg}")

    def warning(self, msg: str, detail: str = "") -> None:
        detail_str = f" [dim]({detail})[/dim]" if detail else ""
        console.print(f"[yellow]⚠[/yellow] {msg}{detail_str}")

    def info(self, msg: str) -> None:
        console.print(f"[dim]{msg}[/dim]")

    def table(self, headers: list[str], rows: list[list[str]], title: str = "") -> None:
        table = Table(title=title) if title else Table()
        for header in headers:
            table.add_column(header)
        for row in rows:
            table.add_row(*row)
        console.print(table)


ui = UI()

__all__ = ["UI", "console", "ui"]
