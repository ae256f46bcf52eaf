"""branchkeep: keep user-visible commits alive across native garbage collection.

Commits the user can still see, but that no branch points at, are pinned
under ``refs/branchless/<oid>``. A sweep later releases the pins whose
commits have left the visible set.
"""

__version__ = "0.1.0"

# Core entry point
from branchkeep.repo import Repository

# Garbage collection primitives
from branchkeep.operations.gc import (
    VisibilityProvider,
    collect_garbage,
    find_dangling_references,
    mark_commit_reachable,
)
from branchkeep.refs import (
    DEFAULT_GC_REF_PREFIX,
    gc_ref_name,
    is_gc_ref,
    is_valid_reference_name,
)

# Models
from branchkeep.models.config import RepoConfig
from branchkeep.models.events import CommitVisibility, Event, EventType
from branchkeep.models.gc import GCResult
from branchkeep.models.objects import CommitInfo, ObjectType
from branchkeep.models.refs import GCRefInfo, Reference

# Storage contracts
from branchkeep.storage.repositories import ReferenceStore, RefRepository

# Exceptions
from branchkeep.exceptions import (
    AmbiguousPrefixError,
    BranchExistsError,
    BranchkeepError,
    BranchNotFoundError,
    EventLogError,
    GCError,
    InvalidBranchNameError,
    InvalidRefNameError,
    ObjectNotFoundError,
    RefResolutionError,
    StoreAccessError,
    VisibilityError,
)

__all__ = [
    "__version__",
    "Repository",
    "VisibilityProvider",
    "collect_garbage",
    "find_dangling_references",
    "mark_commit_reachable",
    "DEFAULT_GC_REF_PREFIX",
    "gc_ref_name",
    "is_gc_ref",
    "is_valid_reference_name",
    "RepoConfig",
    "CommitVisibility",
    "Event",
    "EventType",
    "GCResult",
    "CommitInfo",
    "ObjectType",
    "GCRefInfo",
    "Reference",
    "ReferenceStore",
    "RefRepository",
    "AmbiguousPrefixError",
    "BranchExistsError",
    "BranchkeepError",
    "BranchNotFoundError",
    "EventLogError",
    "GCError",
    "InvalidBranchNameError",
    "InvalidRefNameError",
    "ObjectNotFoundError",
    "RefResolutionError",
    "StoreAccessError",
    "VisibilityError",
]
