"""branchkeep refs -- list pinned commits."""

from __future__ import annotations

import click


@click.command()
@click.pass_context
def refs(ctx: click.Context) -> None:
    """List reserved references and whether gc would keep them."""
    from branchkeep.cli import _repo_session
    from branchkeep.cli.formatting import format_refs

    with _repo_session(ctx) as (repo, console):
        format_refs(repo.list_gc_refs(), console)
