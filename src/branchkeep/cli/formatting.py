"""Rich formatting helpers for the branchkeep CLI.

Provides functions that format SDK data structures for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from branchkeep.models.gc import GCResult
    from branchkeep.models.objects import CommitInfo
    from branchkeep.models.refs import GCRefInfo


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_gc_result(result: GCResult, console: Console, *, verbose: bool = False) -> None:
    """Display the outcome of a sweep."""
    console.print(
        f"Scanned [cyan]{result.refs_scanned}[/cyan] references, "
        f"deleted [green]{result.refs_deleted}[/green], "
        f"skipped [dim]{result.refs_skipped}[/dim]",
        highlight=False,
    )
    if verbose:
        for name in result.deleted:
            console.print(f"  [red]deleted[/red] {escape(name)}", highlight=False)


def format_refs(infos: list[GCRefInfo], console: Console) -> None:
    """Display reserved references as a table."""
    if not infos:
        console.print("[dim]No pinned commits.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Commit", style="yellow", width=12)
    table.add_column("State")
    table.add_column("Reference", style="dim")

    for info in infos:
        state = "[green]visible[/green]" if info.visible else "[red]dangling[/red]"
        table.add_row(info.commit_oid[:12], state, escape(info.ref_name))

    console.print(table)


def format_log(entries: list[CommitInfo], console: Console) -> None:
    """Display commit log in compact table format."""
    if not entries:
        console.print("[dim]No commits.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Commit", style="yellow", width=8)
    table.add_column("Time", style="dim")
    table.add_column("Message")

    for entry in entries:
        table.add_row(
            entry.oid[:8],
            entry.created_at.strftime("%Y-%m-%d %H:%M"),
            escape(entry.message) if entry.message else "",
        )

    console.print(table)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
