"""Object domain models for branchkeep.

ObjectType discriminates stored objects (commits, blobs, annotated tags).
CommitInfo is the SDK-facing model returned when querying commits.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ObjectType(str, enum.Enum):
    """Kinds of objects held by the object store."""

    COMMIT = "commit"
    BLOB = "blob"
    TAG = "tag"

    def __str__(self) -> str:
        return self.value


class CommitInfo(BaseModel):
    """SDK-facing commit information model.

    Not an ORM model -- used for data transfer only.
    """

    oid: str
    parents: list[str] = []
    message: Optional[str] = None
    created_at: datetime

    def __str__(self) -> str:
        msg = self.message or ""
        if len(msg) > 60:
            msg = msg[:57] + "..."
        return f"{self.oid[:8]} {msg}"
