"""Event log domain models.

Events record user-facing actions on commits. Replaying them in order
tells the visibility graph which commits the user still considers live.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class EventType(str, enum.Enum):
    """Kinds of recorded events."""

    COMMIT = "commit"
    HIDE = "hide"
    UNHIDE = "unhide"
    REWRITE = "rewrite"
    REF_UPDATE = "ref_update"

    def __str__(self) -> str:
        return self.value


class CommitVisibility(str, enum.Enum):
    """Replayed visibility of a commit."""

    VISIBLE = "visible"
    HIDDEN = "hidden"


class Event(BaseModel):
    """A single event log entry.

    Field usage by type:
    - commit / hide / unhide: ``commit_oid``
    - rewrite: ``old_oid`` -> ``new_oid``
    - ref_update: ``ref_name``, ``old_oid``, ``new_oid``
    """

    event_type: EventType
    timestamp: datetime
    transaction_id: int
    commit_oid: Optional[str] = None
    old_oid: Optional[str] = None
    new_oid: Optional[str] = None
    ref_name: Optional[str] = None
    event_id: Optional[int] = None
