"""branchkeep log -- show commit history."""

from __future__ import annotations

import click


@click.command()
@click.option("-n", "--limit", default=20, type=int, help="Maximum number of commits to show.")
@click.pass_context
def log(ctx: click.Context, limit: int) -> None:
    """Show first-parent history from HEAD backward."""
    from branchkeep.cli import _repo_session
    from branchkeep.cli.formatting import format_log

    with _repo_session(ctx) as (repo, console):
        format_log(repo.log(limit=limit), console)
