"""branchkeep hide / unhide -- change a commit's visibility."""

from __future__ import annotations

import click


@click.command()
@click.argument("target")
@click.pass_context
def hide(ctx: click.Context, target: str) -> None:
    """Hide TARGET. Its pin is released by the next gc."""
    from branchkeep.cli import _repo_session

    with _repo_session(ctx) as (repo, console):
        oid = repo.resolve_commit(target)
        repo.hide(oid)
        console.print(f"Hid [yellow]{oid[:12]}[/yellow]", highlight=False)


@click.command()
@click.argument("target")
@click.pass_context
def unhide(ctx: click.Context, target: str) -> None:
    """Make TARGET visible again and re-pin it."""
    from branchkeep.cli import _repo_session

    with _repo_session(ctx) as (repo, console):
        oid = repo.resolve_commit(target)
        repo.unhide(oid)
        console.print(f"Unhid [yellow]{oid[:12]}[/yellow]", highlight=False)
