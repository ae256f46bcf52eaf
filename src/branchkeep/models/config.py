"""Configuration models for branchkeep.

RepoConfig holds per-repository settings: storage location, the main
branch name, and the reserved GC namespace.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, field_validator

from branchkeep.refs import DEFAULT_GC_REF_PREFIX, check_reference_name

DEFAULT_PIN_MESSAGE = "branchless: marking commit as reachable"
DEFAULT_GC_PROGRESS_MESSAGE = "branchless: collecting garbage"


class RepoConfig(BaseModel):
    """Per-repository configuration."""

    db_path: str = ":memory:"
    db_url: Optional[str] = None
    main_branch: str = "main"
    gc_ref_prefix: str = DEFAULT_GC_REF_PREFIX
    pin_message: str = DEFAULT_PIN_MESSAGE
    gc_progress_message: str = DEFAULT_GC_PROGRESS_MESSAGE
    auto_gc: bool = False

    @field_validator("gc_ref_prefix")
    @classmethod
    def _check_prefix(cls, v: str) -> str:
        v = v.rstrip("/")
        reason = check_reference_name(v)
        if reason is not None:
            raise ValueError(f"invalid GC ref prefix {v!r}: {reason}")
        if not v.startswith("refs/"):
            raise ValueError(f"GC ref prefix must live under 'refs/': {v!r}")
        return v
