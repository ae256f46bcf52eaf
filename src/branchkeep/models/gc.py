"""Garbage collection result model."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class GCResult:
    """Result of a shadow-reference sweep.

    ``deleted`` lists the reserved reference names removed by the pass.
    ``refs_skipped`` counts references that failed to resolve or did not
    peel to a commit.
    """

    refs_scanned: int
    refs_skipped: int
    deleted: tuple[str, ...] = field(default_factory=tuple)
    duration_seconds: float = 0.0

    @property
    def refs_deleted(self) -> int:
        return len(self.deleted)
