"""branchkeep gc -- release pinned commits that are no longer visible."""

from __future__ import annotations

import click


@click.command()
@click.option("-v", "--verbose", is_flag=True, help="List each deleted reference.")
@click.pass_context
def gc(ctx: click.Context, verbose: bool) -> None:
    """Delete reserved references to commits that left the visible set.

    Branches, tags and HEAD are never touched.
    """
    from branchkeep.cli import _repo_session
    from branchkeep.cli.formatting import format_gc_result

    with _repo_session(ctx) as (repo, console):
        result = repo.collect_garbage(console.file)
        format_gc_result(result, console, verbose=verbose)
