"""Deterministic hashing utilities for branchkeep.

Provides canonical JSON serialization and SHA-256 object ids. All
hashing is deterministic: same input always produces same output,
regardless of dict key ordering.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(data: Any) -> bytes:
    """Serialize data to canonical JSON bytes.

    Uses sorted keys, compact separators, and UTF-8 encoding
    to ensure deterministic output.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def object_id(object_type: str, payload: dict) -> str:
    """Compute the object id for a typed payload.

    The type is folded into the hashed document so a blob and a commit
    with coincidentally equal payloads never share an id.

    Returns:
        Hex digest of SHA-256 hash.
    """
    data = {"type": object_type, "payload": payload}
    return hashlib.sha256(canonical_json(data)).hexdigest()


def commit_id(
    parents: list[str],
    message: str,
    timestamp_iso: str,
) -> str:
    """Compute the id of a commit object.

    Parent order is significant (first parent first).
    """
    return object_id(
        "commit",
        {
            "parents": list(parents),
            "message": message,
            "timestamp_iso": timestamp_iso,
        },
    )
