"""Merge-base computation with a persistent cache.

Walks the commit DAG following all parents. Results, including the
"no common ancestor" case, are stored in the merge_base_cache table
keyed by the sorted pair of commit ids.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from branchkeep.storage.repositories import MergeBaseCacheRepository, ObjectRepository


def walk_ancestors(
    start: str,
    object_repo: ObjectRepository,
    *,
    stop_at: set[str] | None = None,
) -> Iterator[str]:
    """BFS walk from a start id, yielding each visited commit id once.

    Args:
        start: Starting commit id.
        object_repo: Object repository for parent lookups.
        stop_at: Commits in this set are yielded but their parents
            are not enqueued.
    """
    visited: set[str] = set()
    queue: deque[str] = deque([start])
    while queue:
        current = queue.popleft()
        if current in visited:
            continue
        visited.add(current)
        yield current
        if stop_at is not None and current in stop_at:
            continue
        for parent in object_repo.get_parents(current):
            if parent not in visited:
                queue.append(parent)


class MergeBaseCache:
    """Merge-base lookups backed by a cache repository."""

    def __init__(
        self,
        object_repo: ObjectRepository,
        cache_repo: MergeBaseCacheRepository,
    ) -> None:
        self._object_repo = object_repo
        self._cache_repo = cache_repo

    def get_merge_base(self, oid_a: str, oid_b: str) -> str | None:
        """Find a common ancestor of two commits, or None.

        Walks the ancestors of one side and returns the first BFS hit
        from the other side. For linear history this is where the two
        lines diverged. The pair is sorted first so both argument
        orders share one cache entry and one answer.
        """
        if oid_a == oid_b:
            return oid_a
        lhs, rhs = sorted((oid_a, oid_b))
        cached = self._cache_repo.get(lhs, rhs)
        if cached is not None:
            return cached.merge_base_oid

        ancestors_lhs = set(walk_ancestors(lhs, self._object_repo))
        result = None
        for oid in walk_ancestors(rhs, self._object_repo):
            if oid in ancestors_lhs:
                result = oid
                break

        self._cache_repo.set(lhs, rhs, result)
        return result

    def is_ancestor(self, potential_ancestor: str, oid: str) -> bool:
        """Check if potential_ancestor is reachable from oid (inclusive).

        The cached merge base answers the common case. With merge commits
        the first intersection can be an older commit, so a negative
        answer falls back to an early-terminating walk.
        """
        base = self.get_merge_base(potential_ancestor, oid)
        if base == potential_ancestor:
            return True
        if base is None:
            return False
        return any(
            h == potential_ancestor for h in walk_ancestors(oid, self._object_repo)
        )
