"""branchkeep CLI -- terminal interface for pinning and sweeping commits.

This module is NEVER imported from branchkeep/__init__.py.
It is only loaded via the ``branchkeep`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install branchkeep[cli]"
    ) from None

from branchkeep.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from branchkeep.repo import Repository


@click.group()
@click.option(
    "--db",
    default=".branchkeep.db",
    envvar="BRANCHKEEP_DB",
    help="Path to the repository database.",
)
@click.option(
    "--main-branch",
    default="main",
    envvar="BRANCHKEEP_MAIN_BRANCH",
    help="Name of the main branch.",
)
@click.pass_context
def cli(ctx: click.Context, db: str, main_branch: str) -> None:
    """branchkeep: keep visible commits alive across garbage collection."""
    ctx.ensure_object(dict)
    ctx.obj["db_path"] = db
    ctx.obj["main_branch"] = main_branch


def _get_repo(ctx: click.Context) -> Repository:
    """Open a Repository from Click context."""
    from branchkeep.models.config import RepoConfig
    from branchkeep.repo import Repository

    db_path = ctx.obj["db_path"]
    if not os.path.exists(db_path):
        format_error(f"Database not found: {db_path}", get_console())
        raise SystemExit(1)

    config = RepoConfig(db_path=db_path, main_branch=ctx.obj["main_branch"])
    return Repository.open(db_path, config=config)


@contextmanager
def _repo_session(ctx: click.Context) -> Iterator[tuple[Repository, Console]]:
    """Open a Repository, yield (repo, console), and handle cleanup.

    Ensures the repository is closed on exit and formats exceptions as
    CLI errors.
    """
    console = get_console()
    try:
        repo = _get_repo(ctx)
        try:
            yield repo, console
        finally:
            repo.close()
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from branchkeep.cli.commands.gc import gc  # noqa: E402
from branchkeep.cli.commands.hide import hide, unhide  # noqa: E402
from branchkeep.cli.commands.log import log  # noqa: E402
from branchkeep.cli.commands.pin import pin  # noqa: E402
from branchkeep.cli.commands.refs import refs  # noqa: E402

cli.add_command(gc)
cli.add_command(hide)
cli.add_command(unhide)
cli.add_command(log)
cli.add_command(pin)
cli.add_command(refs)
