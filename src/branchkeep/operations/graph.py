"""Visibility graph: which commits the user still considers live.

The visible set is built from the HEAD commit, the main branch tip, every
branch tip, and every commit the event log says is visible. From each of
those roots the walk follows parents until it reaches history already
contained in the main branch, so the result covers the user's
outstanding work plus the points where it attaches to main.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from branchkeep.operations.eventlog import EventReplayer
    from branchkeep.operations.mergebase import MergeBaseCache
    from branchkeep.storage.repositories import ObjectRepository

logger = logging.getLogger(__name__)


def compute_visible_commits(
    object_repo: ObjectRepository,
    merge_base_cache: MergeBaseCache,
    replayer: EventReplayer,
    head_oid: str | None,
    main_branch_oid: str | None,
    branch_oids: Iterable[str],
) -> set[str]:
    """Compute the set of commit ids the tool considers visible.

    Args:
        object_repo: Object repository for parent lookups.
        merge_base_cache: Cached ancestry queries against the main branch.
        replayer: Replayed event log state.
        head_oid: Commit HEAD resolves to, if any.
        main_branch_oid: Tip of the main branch, if it exists.
        branch_oids: Tips of all branches.

    Returns:
        Set of visible commit ids. Commits between a visible root and the
        main branch are included even if they were hidden themselves.
    """
    roots: set[str] = set(branch_oids)
    if head_oid is not None:
        roots.add(head_oid)
    for oid in replayer.active_commits():
        # Active commits may have been purged from the object store
        if object_repo.exists(oid):
            roots.add(oid)

    visible: set[str] = set()
    if main_branch_oid is not None:
        visible.add(main_branch_oid)
        roots.discard(main_branch_oid)

    on_main: dict[str, bool] = {}

    def _is_on_main(oid: str) -> bool:
        if main_branch_oid is None:
            return False
        if oid not in on_main:
            on_main[oid] = merge_base_cache.is_ancestor(oid, main_branch_oid)
        return on_main[oid]

    queue: deque[str] = deque(sorted(roots))
    while queue:
        current = queue.popleft()
        if current in visible:
            continue
        visible.add(current)
        if _is_on_main(current):
            continue
        for parent in object_repo.get_parents(current):
            if parent not in visible:
                queue.append(parent)

    logger.debug(
        "Visibility graph: %d roots, %d visible commits", len(roots), len(visible)
    )
    return visible
