"""Reference models for branchkeep."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel


@dataclass(frozen=True)
class Reference:
    """A named pointer read from the reference store.

    Exactly one of ``target`` (a direct object id) or ``symbolic_target``
    (another reference name) is normally set. Rows carrying neither are
    corrupt and fail to resolve.
    """

    name: str
    target: Optional[str] = None
    symbolic_target: Optional[str] = None

    @property
    def is_symbolic(self) -> bool:
        return self.symbolic_target is not None


class GCRefInfo(BaseModel):
    """A reserved GC reference and whether its commit is still visible."""

    ref_name: str
    commit_oid: str
    visible: bool
