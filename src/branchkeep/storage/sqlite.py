"""SQLite implementations of repository interfaces.

All repositories use SQLAlchemy 2.0-style queries (select() + session.execute()).
Each repository takes a Session in its constructor.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from branchkeep.exceptions import (
    AmbiguousPrefixError,
    InvalidRefNameError,
    ObjectNotFoundError,
    RefResolutionError,
    StoreAccessError,
)
from branchkeep.models.objects import ObjectType
from branchkeep.models.refs import Reference
from branchkeep.refs import BRANCH_PREFIX, HEAD_REF, check_reference_name
from branchkeep.storage.repositories import (
    EventLogRepository,
    MergeBaseCacheRepository,
    ObjectRepository,
    RefRepository,
)
from branchkeep.storage.schema import (
    CommitParentRow,
    EventRow,
    EventTransactionRow,
    MergeBaseCacheRow,
    ObjectRow,
    RefLogRow,
    RefRow,
)

# Symbolic chains longer than this are treated as broken
_MAX_SYMREF_DEPTH = 5


def _now() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def _store_access(operation: str, ref_name: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy failures into StoreAccessError."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreAccessError(operation, ref_name, str(exc)) from exc


class SqliteObjectRepository(ObjectRepository):
    """SQLite implementation of object repository."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, oid: str) -> ObjectRow | None:
        return self._session.get(ObjectRow, oid)

    def save(self, obj: ObjectRow) -> None:
        if self._session.get(ObjectRow, obj.oid) is None:
            self._session.add(obj)
            self._session.flush()

    def add_parents(self, commit_oid: str, parent_oids: list[str]) -> None:
        for position, parent_oid in enumerate(parent_oids):
            self._session.add(
                CommitParentRow(
                    commit_oid=commit_oid, parent_oid=parent_oid, position=position
                )
            )
        self._session.flush()

    def get_parents(self, oid: str) -> list[str]:
        stmt = (
            select(CommitParentRow.parent_oid)
            .where(CommitParentRow.commit_oid == oid)
            .order_by(CommitParentRow.position)
        )
        parents = list(self._session.execute(stmt).scalars().all())
        if parents:
            return parents
        obj = self.get(oid)
        if obj is not None and obj.parent_oid is not None:
            return [obj.parent_oid]
        return []

    def get_by_prefix(self, prefix: str) -> ObjectRow | None:
        if len(prefix) < 4:
            raise ValueError(f"Prefix must be at least 4 characters, got {len(prefix)}")
        stmt = select(ObjectRow).where(ObjectRow.oid.startswith(prefix)).limit(6)
        matches = list(self._session.execute(stmt).scalars().all())
        if len(matches) > 1:
            raise AmbiguousPrefixError(prefix, [m.oid for m in matches])
        return matches[0] if matches else None


class SqliteRefRepository(RefRepository):
    """SQLite implementation of ref repository.

    HEAD is stored as ref_name="HEAD".  When attached, HEAD has a
    symbolic_target (e.g. "refs/heads/main") and the branch ref stores
    the actual object id.  When detached, HEAD stores target_oid
    directly with symbolic_target=None.

    Branches are stored as ref_name="refs/heads/{name}".  Every write
    appends a reflog row.
    """

    def __init__(self, session: Session, *, default_branch: str = "main") -> None:
        self._session = session
        self._default_branch = default_branch

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_ref_row(self, ref_name: str) -> RefRow | None:
        return self._session.get(RefRow, ref_name)

    def _log(self, ref_name: str, old_oid: str | None, new_oid: str | None, message: str | None) -> None:
        self._session.add(
            RefLogRow(
                ref_name=ref_name,
                old_oid=old_oid,
                new_oid=new_oid,
                message=message,
                created_at=_now(),
            )
        )

    def _write_direct(self, ref_name: str, oid: str, message: str | None) -> None:
        ref = self._get_ref_row(ref_name)
        if ref is None:
            self._session.add(RefRow(ref_name=ref_name, target_oid=oid))
            self._log(ref_name, None, oid, message)
        else:
            old = ref.target_oid
            ref.target_oid = oid
            ref.symbolic_target = None
            self._log(ref_name, old, oid, message)
        self._session.flush()

    @staticmethod
    def _to_reference(row: RefRow) -> Reference:
        return Reference(
            name=row.ref_name,
            target=row.target_oid,
            symbolic_target=row.symbolic_target,
        )

    # ------------------------------------------------------------------
    # ReferenceStore
    # ------------------------------------------------------------------

    def list_references(self) -> list[Reference]:
        with _store_access("list references"):
            rows = self._session.execute(
                select(RefRow).order_by(RefRow.ref_name)
            ).scalars().all()
        return [self._to_reference(row) for row in rows]

    def resolve(self, reference: Reference) -> str:
        seen = {reference.name}
        current = reference
        for _ in range(_MAX_SYMREF_DEPTH):
            if current.target is not None:
                return current.target
            if current.symbolic_target is None:
                raise RefResolutionError(reference.name, "reference has no target")
            nxt = self.get_ref(current.symbolic_target)
            if nxt is None:
                raise RefResolutionError(
                    reference.name,
                    f"symbolic target '{current.symbolic_target}' does not exist",
                )
            if nxt.name in seen:
                raise RefResolutionError(reference.name, "symbolic reference cycle")
            seen.add(nxt.name)
            current = nxt
        raise RefResolutionError(reference.name, "symbolic reference chain too deep")

    def peel_to_commit(self, oid: str) -> str | None:
        current: str | None = oid
        with _store_access("peel reference", oid):
            while current is not None:
                obj = self._session.get(ObjectRow, current)
                if obj is None:
                    raise ObjectNotFoundError(current)
                if obj.object_type == ObjectType.COMMIT:
                    return obj.oid
                if obj.object_type != ObjectType.TAG:
                    return None
                current = obj.target_oid
        return None

    def create_or_update_reference(self, name: str, oid: str, message: str) -> None:
        reason = check_reference_name(name)
        if reason is not None:
            raise InvalidRefNameError(name, reason)
        with _store_access("create reference", name):
            if self._session.get(ObjectRow, oid) is None:
                raise ObjectNotFoundError(oid)
            self._write_direct(name, oid, message)

    def delete_reference(self, reference: Reference) -> None:
        self.delete_ref(reference.name)

    # ------------------------------------------------------------------
    # Named refs
    # ------------------------------------------------------------------

    def get_ref(self, ref_name: str) -> Reference | None:
        with _store_access("read reference", ref_name):
            row = self._get_ref_row(ref_name)
        return self._to_reference(row) if row is not None else None

    def delete_ref(self, ref_name: str, message: str | None = None) -> None:
        with _store_access("delete reference", ref_name):
            ref = self._get_ref_row(ref_name)
            if ref is not None:
                self._log(ref_name, ref.target_oid, None, message)
                self._session.delete(ref)
                self._session.flush()

    def set_symbolic_ref(self, ref_name: str, symbolic_target: str) -> None:
        with _store_access("set symbolic reference", ref_name):
            ref = self._get_ref_row(ref_name)
            if ref is None:
                self._session.add(
                    RefRow(
                        ref_name=ref_name,
                        target_oid=None,
                        symbolic_target=symbolic_target,
                    )
                )
            else:
                ref.target_oid = None
                ref.symbolic_target = symbolic_target
            self._session.flush()

    def get_reflog(self, ref_name: str) -> Sequence[RefLogRow]:
        stmt = (
            select(RefLogRow)
            .where(RefLogRow.ref_name == ref_name)
            .order_by(RefLogRow.id)
        )
        with _store_access("read reflog", ref_name):
            return self._session.execute(stmt).scalars().all()

    # ------------------------------------------------------------------
    # HEAD and branches
    # ------------------------------------------------------------------

    def get_head(self) -> str | None:
        with _store_access("read reference", HEAD_REF):
            head_ref = self._get_ref_row(HEAD_REF)
            if head_ref is None:
                return None

            # Attached HEAD: resolve through branch ref (unborn branch -> None)
            if head_ref.symbolic_target:
                branch_ref = self._get_ref_row(head_ref.symbolic_target)
                return branch_ref.target_oid if branch_ref else None

        return head_ref.target_oid

    def update_head(self, oid: str, message: str) -> None:
        """Update HEAD to point at a new commit.

        - No HEAD exists: create symbolic HEAD -> default branch + branch ref
        - Attached HEAD: update the target branch ref
        - Detached HEAD: update HEAD directly
        """
        with _store_access("update reference", HEAD_REF):
            head_ref = self._get_ref_row(HEAD_REF)
            if head_ref is None:
                branch_ref_name = f"{BRANCH_PREFIX}{self._default_branch}"
                self._session.add(
                    RefRow(
                        ref_name=HEAD_REF,
                        target_oid=None,
                        symbolic_target=branch_ref_name,
                    )
                )
                self._write_direct(branch_ref_name, oid, message)
            elif head_ref.symbolic_target:
                self._write_direct(head_ref.symbolic_target, oid, message)
            else:
                self._write_direct(HEAD_REF, oid, message)

    def get_branch(self, branch_name: str) -> str | None:
        ref = self.get_ref(f"{BRANCH_PREFIX}{branch_name}")
        return ref.target if ref else None

    def set_branch(self, branch_name: str, oid: str, message: str) -> None:
        ref_name = f"{BRANCH_PREFIX}{branch_name}"
        with _store_access("update reference", ref_name):
            self._write_direct(ref_name, oid, message)

    def list_branches(self) -> list[str]:
        stmt = select(RefRow.ref_name).where(RefRow.ref_name.startswith(BRANCH_PREFIX))
        with _store_access("list branches"):
            names = self._session.execute(stmt).scalars().all()
        return sorted(name[len(BRANCH_PREFIX):] for name in names)

    def is_detached(self) -> bool:
        head_ref = self.get_ref(HEAD_REF)
        if head_ref is None:
            return False  # No HEAD yet = not detached
        return head_ref.symbolic_target is None

    def attach_head(self, branch_name: str) -> None:
        self.set_symbolic_ref(HEAD_REF, f"{BRANCH_PREFIX}{branch_name}")

    def detach_head(self, oid: str) -> None:
        with _store_access("update reference", HEAD_REF):
            self._write_direct(HEAD_REF, oid, f"checkout: moving to {oid}")

    def get_current_branch(self) -> str | None:
        head_ref = self.get_ref(HEAD_REF)
        if head_ref is None or head_ref.symbolic_target is None:
            return None
        if head_ref.symbolic_target.startswith(BRANCH_PREFIX):
            return head_ref.symbolic_target[len(BRANCH_PREFIX):]
        return None


class SqliteEventLogRepository(EventLogRepository):
    """SQLite implementation of the event log."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def new_transaction(self, message: str | None = None) -> int:
        row = EventTransactionRow(message=message, created_at=_now())
        self._session.add(row)
        self._session.flush()
        return row.transaction_id

    def add_event(self, row: EventRow) -> None:
        self._session.add(row)
        self._session.flush()

    def get_events(self) -> Sequence[EventRow]:
        return self._session.execute(
            select(EventRow).order_by(EventRow.event_id)
        ).scalars().all()


class SqliteMergeBaseCacheRepository(MergeBaseCacheRepository):
    """SQLite implementation of the merge-base cache."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, lhs_oid: str, rhs_oid: str) -> MergeBaseCacheRow | None:
        return self._session.get(MergeBaseCacheRow, (lhs_oid, rhs_oid))

    def set(self, lhs_oid: str, rhs_oid: str, merge_base_oid: str | None) -> None:
        row = self.get(lhs_oid, rhs_oid)
        if row is None:
            self._session.add(
                MergeBaseCacheRow(
                    lhs_oid=lhs_oid, rhs_oid=rhs_oid, merge_base_oid=merge_base_oid
                )
            )
        else:
            row.merge_base_oid = merge_base_oid
        self._session.flush()

