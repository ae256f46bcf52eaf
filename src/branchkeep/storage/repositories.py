"""Abstract repository interfaces for branchkeep storage.

Defines ABC interfaces for all database operations. No SQLAlchemy
imports here -- pure abstract contracts.

Concrete implementations are in sqlite.py.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

from branchkeep.refs import is_valid_reference_name

if TYPE_CHECKING:
    from branchkeep.models.refs import Reference
    from branchkeep.storage.schema import (
        EventRow,
        MergeBaseCacheRow,
        ObjectRow,
        RefLogRow,
    )


class ReferenceStore(ABC):
    """The slice of the reference namespace the garbage collector consumes.

    Implementations must treat each create/update/delete as an atomic
    single-reference write; callers add no locking of their own.
    """

    @abstractmethod
    def list_references(self) -> Sequence[Reference]:
        """Enumerate every reference in the store.

        Raises StoreAccessError if the namespace cannot be read.
        """
        ...

    @abstractmethod
    def resolve(self, reference: Reference) -> str:
        """Follow symbolic indirection and return the target object id.

        Raises RefResolutionError for dangling, cyclic, or empty entries.
        """
        ...

    @abstractmethod
    def peel_to_commit(self, oid: str) -> str | None:
        """Peel an object id through annotated tags to a commit id.

        Returns None if the object is not (and does not peel to) a commit.
        Raises ObjectNotFoundError if the object does not exist.
        """
        ...

    @abstractmethod
    def create_or_update_reference(self, name: str, oid: str, message: str) -> None:
        """Point *name* directly at *oid*, creating it if needed.

        *message* is recorded as the provenance of the write.
        Raises ObjectNotFoundError if *oid* is not in the store and
        StoreAccessError if the write fails.
        """
        ...

    @abstractmethod
    def delete_reference(self, reference: Reference) -> None:
        """Delete a reference. No-op if it is already gone.

        Raises StoreAccessError if the delete fails.
        """
        ...

    def is_valid_reference_name(self, name: str) -> bool:
        """Check *name* against the store's naming rules."""
        return is_valid_reference_name(name)


class RefRepository(ReferenceStore):
    """Full ref interface: the GC slice plus HEAD and branch handling."""

    @abstractmethod
    def get_ref(self, ref_name: str) -> Reference | None:
        """Get a reference by name. Returns None if not found."""
        ...

    @abstractmethod
    def delete_ref(self, ref_name: str, message: str | None = None) -> None:
        """Delete a named ref. No-op if ref doesn't exist."""
        ...

    @abstractmethod
    def set_symbolic_ref(self, ref_name: str, symbolic_target: str) -> None:
        """Set a ref to point at another ref symbolically."""
        ...

    @abstractmethod
    def get_head(self) -> str | None:
        """Get the HEAD object id, resolving symbolic refs. None if unborn."""
        ...

    @abstractmethod
    def update_head(self, oid: str, message: str) -> None:
        """Advance HEAD (the attached branch, or HEAD itself if detached)."""
        ...

    @abstractmethod
    def get_branch(self, branch_name: str) -> str | None:
        """Get the object id for a named branch. Returns None if not found."""
        ...

    @abstractmethod
    def set_branch(self, branch_name: str, oid: str, message: str) -> None:
        """Set or update a named branch to point at a commit."""
        ...

    @abstractmethod
    def list_branches(self) -> list[str]:
        """List all branch names."""
        ...

    @abstractmethod
    def is_detached(self) -> bool:
        """Check if HEAD points directly at a commit."""
        ...

    @abstractmethod
    def attach_head(self, branch_name: str) -> None:
        """Attach HEAD to a branch (HEAD -> refs/heads/{branch_name})."""
        ...

    @abstractmethod
    def detach_head(self, oid: str) -> None:
        """Detach HEAD to point directly at a commit."""
        ...

    @abstractmethod
    def get_current_branch(self) -> str | None:
        """Get the current branch name if HEAD is attached."""
        ...

    @abstractmethod
    def get_reflog(self, ref_name: str) -> Sequence[RefLogRow]:
        """Get the update history of a ref, oldest first."""
        ...


class ObjectRepository(ABC):
    """Abstract interface for object storage operations."""

    @abstractmethod
    def get(self, oid: str) -> ObjectRow | None:
        """Get an object by id. Returns None if not found."""
        ...

    @abstractmethod
    def save(self, obj: ObjectRow) -> None:
        """Save an object. Content addressing makes re-saving a no-op."""
        ...

    @abstractmethod
    def add_parents(self, commit_oid: str, parent_oids: list[str]) -> None:
        """Record the full ordered parent list of a merge commit."""
        ...

    @abstractmethod
    def get_parents(self, oid: str) -> list[str]:
        """Get all parent ids of a commit, first parent first."""
        ...

    @abstractmethod
    def get_by_prefix(self, prefix: str) -> ObjectRow | None:
        """Find an object by id prefix (min 4 chars).

        Raises AmbiguousPrefixError if multiple match.
        """
        ...

    def exists(self, oid: str) -> bool:
        return self.get(oid) is not None


class EventLogRepository(ABC):
    """Abstract interface for event log storage."""

    @abstractmethod
    def new_transaction(self, message: str | None = None) -> int:
        """Open a new event transaction and return its id."""
        ...

    @abstractmethod
    def add_event(self, row: EventRow) -> None:
        """Append an event row."""
        ...

    @abstractmethod
    def get_events(self) -> Sequence[EventRow]:
        """Get all events in insertion order."""
        ...


class MergeBaseCacheRepository(ABC):
    """Abstract interface for the merge-base cache."""

    @abstractmethod
    def get(self, lhs_oid: str, rhs_oid: str) -> MergeBaseCacheRow | None:
        """Get a cached entry, or None on cache miss."""
        ...

    @abstractmethod
    def set(self, lhs_oid: str, rhs_oid: str, merge_base_oid: str | None) -> None:
        """Store a merge base (None for no common ancestor)."""
        ...
