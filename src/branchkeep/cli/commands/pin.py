"""branchkeep pin -- keep a commit alive against native collection."""

from __future__ import annotations

import click


@click.command()
@click.argument("target")
@click.pass_context
def pin(ctx: click.Context, target: str) -> None:
    """Pin TARGET so native garbage collection keeps it.

    TARGET can be a commit id, id prefix (min 4 chars), branch, or ref name.
    """
    from branchkeep.cli import _repo_session
    from rich.markup import escape

    with _repo_session(ctx) as (repo, console):
        oid = repo.resolve_commit(target)
        ref_name = repo.mark_commit_reachable(oid)
        console.print(
            f"Pinned [yellow]{oid[:12]}[/yellow] as {escape(ref_name)}",
            highlight=False,
        )
