"""Repository -- the public SDK entry point for branchkeep.

Ties together the object store, references, event log, visibility graph
and shadow-reference garbage collector into a user-facing API. Users
interact with ``Repository.open()``, ``repo.commit()``, ``repo.hide()``,
``repo.collect_garbage()``, etc.

Not thread-safe.  Each thread should open its own ``Repository``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, TextIO

from branchkeep.engine.hashing import commit_id, object_id
from branchkeep.exceptions import (
    BranchkeepError,
    BranchNotFoundError,
    ObjectNotFoundError,
    RefResolutionError,
)
from branchkeep.models.config import RepoConfig
from branchkeep.models.events import EventType
from branchkeep.models.objects import CommitInfo, ObjectType
from branchkeep.models.refs import GCRefInfo
from branchkeep.operations import branch as branch_ops
from branchkeep.operations.eventlog import EventLog, EventReplayer
from branchkeep.operations.gc import collect_garbage, mark_commit_reachable
from branchkeep.operations.graph import compute_visible_commits
from branchkeep.operations.mergebase import MergeBaseCache
from branchkeep.refs import BRANCH_PREFIX, TAG_PREFIX, is_gc_ref
from branchkeep.storage.engine import create_session_factory, create_store_engine, init_db
from branchkeep.storage.schema import ObjectRow
from branchkeep.storage.sqlite import (
    SqliteEventLogRepository,
    SqliteMergeBaseCacheRepository,
    SqliteObjectRepository,
    SqliteRefRepository,
)

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.orm import Session

    from branchkeep.models.events import Event
    from branchkeep.models.gc import GCResult

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Repository:
    """A commit store whose hidden-but-visible commits survive native GC.

    Create a repository via :meth:`Repository.open` (recommended) or
    :meth:`Repository.from_components` (testing / DI).

    Example::

        with Repository.open() as repo:
            c1 = repo.commit("initial")
            c2 = repo.commit("work in progress")
            repo.hide(c2.oid)
            repo.collect_garbage()
    """

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        *,
        engine: Engine | None,
        session: Session,
        config: RepoConfig,
        object_repo: SqliteObjectRepository,
        ref_repo: SqliteRefRepository,
        event_repo: SqliteEventLogRepository,
        merge_base_repo: SqliteMergeBaseCacheRepository,
    ) -> None:
        self._engine = engine
        self._session = session
        self._config = config
        self._object_repo = object_repo
        self._ref_repo = ref_repo
        self._event_log = EventLog(event_repo)
        self._merge_base_cache = MergeBaseCache(object_repo, merge_base_repo)
        self._closed = False

    @classmethod
    def open(
        cls,
        path: str = ":memory:",
        *,
        config: RepoConfig | None = None,
    ) -> Repository:
        """Open (or create) a repository.

        Args:
            path: SQLite path.  ``":memory:"`` for in-memory (default).
                Ignored when ``config.db_url`` is set.
            config: Repository configuration.  Defaults created if *None*.
        """
        if config is None:
            config = RepoConfig(db_path=path)

        engine = create_store_engine(path, url=config.db_url)
        init_db(engine)
        session = create_session_factory(engine)()

        return cls.from_components(engine=engine, session=session, config=config)

    @classmethod
    def from_components(
        cls,
        *,
        session: Session,
        engine: Engine | None = None,
        config: RepoConfig | None = None,
    ) -> Repository:
        """Create a ``Repository`` over an existing session.

        Skips engine creation.  Useful for testing and DI.
        """
        if config is None:
            config = RepoConfig()

        return cls(
            engine=engine,
            session=session,
            config=config,
            object_repo=SqliteObjectRepository(session),
            ref_repo=SqliteRefRepository(session, default_branch=config.main_branch),
            event_repo=SqliteEventLogRepository(session),
            merge_base_repo=SqliteMergeBaseCacheRepository(session),
        )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> RepoConfig:
        return self._config

    @property
    def head(self) -> str | None:
        """Current HEAD commit id, or *None* if no commits yet."""
        return self._ref_repo.get_head()

    @property
    def current_branch(self) -> str | None:
        return self._ref_repo.get_current_branch()

    @property
    def is_detached(self) -> bool:
        return self._ref_repo.is_detached()

    @property
    def ref_store(self) -> SqliteRefRepository:
        """The underlying reference store."""
        return self._ref_repo

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def commit(
        self,
        message: str,
        *,
        parents: list[str] | None = None,
    ) -> CommitInfo:
        """Create a commit and advance HEAD to it.

        The commit is recorded in the event log and pinned, so it stays
        alive even if HEAD later moves away from it.

        Args:
            message: Commit message.
            parents: Parent commit ids, first parent first. Defaults to
                the current HEAD (or no parents for the first commit).
        """
        if parents is None:
            head = self.head
            parents = [head] if head is not None else []
        for parent in parents:
            row = self._object_repo.get(parent)
            if row is None or row.object_type != ObjectType.COMMIT:
                raise ObjectNotFoundError(parent)

        created_at = _now()
        oid = commit_id(parents, message, created_at.isoformat())
        self._object_repo.save(
            ObjectRow(
                oid=oid,
                object_type=ObjectType.COMMIT,
                parent_oid=parents[0] if parents else None,
                message=message,
                created_at=created_at,
            )
        )
        if len(parents) > 1:
            self._object_repo.add_parents(oid, parents)

        old_head = self.head
        self._ref_repo.update_head(oid, f"commit: {message}")

        txn = self._event_log.new_transaction("commit")
        self._event_log.add_event(EventType.COMMIT, txn, commit_oid=oid)
        self._event_log.add_event(
            EventType.REF_UPDATE, txn, ref_name="HEAD", old_oid=old_head, new_oid=oid
        )
        mark_commit_reachable(
            self._ref_repo,
            oid,
            prefix=self._config.gc_ref_prefix,
            message=self._config.pin_message,
        )
        self._session.commit()
        return CommitInfo(oid=oid, parents=list(parents), message=message, created_at=created_at)

    def create_blob(self, data: str) -> str:
        """Store a blob and return its id."""
        payload = {"data": data}
        oid = object_id(ObjectType.BLOB.value, payload)
        self._object_repo.save(
            ObjectRow(
                oid=oid,
                object_type=ObjectType.BLOB,
                payload_json=json.dumps(payload),
                created_at=_now(),
            )
        )
        self._session.commit()
        return oid

    def create_tag(self, name: str, target: str, *, message: str | None = None) -> str:
        """Create an annotated tag object and ``refs/tags/<name>``.

        The target may be any object (a commit, a blob, another tag).

        Returns:
            The tag object id.
        """
        if not self._object_repo.exists(target):
            raise ObjectNotFoundError(target)
        payload = {"name": name, "target": target, "message": message}
        oid = object_id(ObjectType.TAG.value, payload)
        self._object_repo.save(
            ObjectRow(
                oid=oid,
                object_type=ObjectType.TAG,
                target_oid=target,
                payload_json=json.dumps(payload),
                message=message,
                created_at=_now(),
            )
        )
        self._ref_repo.create_or_update_reference(
            f"{TAG_PREFIX}{name}", oid, f"tag: {name}"
        )
        self._session.commit()
        return oid

    def get_commit(self, oid: str) -> CommitInfo | None:
        """Get a commit by id. Returns None if absent or not a commit."""
        row = self._object_repo.get(oid)
        if row is None or row.object_type != ObjectType.COMMIT:
            return None
        return CommitInfo(
            oid=row.oid,
            parents=self._object_repo.get_parents(row.oid),
            message=row.message,
            created_at=row.created_at,
        )

    def log(self, limit: int | None = None) -> list[CommitInfo]:
        """First-parent history from HEAD, newest first."""
        entries: list[CommitInfo] = []
        current = self.head
        while current is not None and (limit is None or len(entries) < limit):
            info = self.get_commit(current)
            if info is None:
                break
            entries.append(info)
            current = info.parents[0] if info.parents else None
        return entries

    def resolve_commit(self, ref_or_prefix: str) -> str:
        """Resolve a branch name, full ref name, or id prefix to a commit id."""
        oid = self._ref_repo.get_branch(ref_or_prefix)
        if oid is None:
            ref = self._ref_repo.get_ref(ref_or_prefix)
            if ref is not None:
                oid = self._ref_repo.resolve(ref)
        if oid is None:
            if len(ref_or_prefix) < 4:
                raise ObjectNotFoundError(ref_or_prefix)
            row = self._object_repo.get_by_prefix(ref_or_prefix)
            if row is None:
                raise ObjectNotFoundError(ref_or_prefix)
            oid = row.oid
        commit = self._ref_repo.peel_to_commit(oid)
        if commit is None:
            raise BranchkeepError(f"'{ref_or_prefix}' does not point to a commit")
        return commit

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def create_branch(self, name: str, source: str | None = None, *, switch: bool = False) -> str:
        oid = branch_ops.create_branch(
            name, self._ref_repo, self._object_repo, source=source, switch=switch
        )
        self._session.commit()
        return oid

    def delete_branch(self, name: str) -> str:
        """Delete a branch. Its commits stay pinned until the next sweep."""
        oid = branch_ops.delete_branch(name, self._ref_repo)
        txn = self._event_log.new_transaction("branch delete")
        self._event_log.add_event(
            EventType.REF_UPDATE,
            txn,
            ref_name=f"{BRANCH_PREFIX}{name}",
            old_oid=oid,
        )
        self._session.commit()
        return oid

    def list_branches(self) -> list[str]:
        return self._ref_repo.list_branches()

    def checkout(self, target: str) -> str:
        """Attach HEAD to a branch, or detach it at a commit."""
        oid = self._ref_repo.get_branch(target)
        if oid is not None:
            self._ref_repo.attach_head(target)
        else:
            try:
                oid = self.resolve_commit(target)
            except ObjectNotFoundError:
                raise BranchNotFoundError(target) from None
            self._ref_repo.detach_head(oid)
        self._session.commit()
        return oid

    # ------------------------------------------------------------------
    # Visibility events
    # ------------------------------------------------------------------

    def hide(self, oid: str) -> None:
        """Mark a commit hidden. It is released by the next sweep."""
        self._require_commit(oid)
        txn = self._event_log.new_transaction("hide")
        self._event_log.add_event(EventType.HIDE, txn, commit_oid=oid)
        self._session.commit()
        if self._config.auto_gc:
            self.collect_garbage()

    def unhide(self, oid: str) -> None:
        """Make a hidden commit visible again and re-pin it."""
        self._require_commit(oid)
        txn = self._event_log.new_transaction("unhide")
        self._event_log.add_event(EventType.UNHIDE, txn, commit_oid=oid)
        self.mark_commit_reachable(oid)

    def rewrite(self, old_oid: str, new_oid: str) -> None:
        """Record that *old_oid* was rewritten into *new_oid*."""
        self._require_commit(old_oid)
        self._require_commit(new_oid)
        txn = self._event_log.new_transaction("rewrite")
        self._event_log.add_event(
            EventType.REWRITE, txn, old_oid=old_oid, new_oid=new_oid
        )
        self.mark_commit_reachable(new_oid)

    def events(self) -> list[Event]:
        return self._event_log.get_events()

    def _require_commit(self, oid: str) -> None:
        if self.get_commit(oid) is None:
            raise ObjectNotFoundError(oid)

    # ------------------------------------------------------------------
    # Garbage collection
    # ------------------------------------------------------------------

    def compute_visible_commits(self) -> set[str]:
        """Compute the commits currently considered visible."""
        replayer = EventReplayer.from_event_log(self._event_log)
        branch_oids = []
        for name in self._ref_repo.list_branches():
            oid = self._ref_repo.get_branch(name)
            if oid is not None:
                branch_oids.append(oid)
        return compute_visible_commits(
            self._object_repo,
            self._merge_base_cache,
            replayer,
            head_oid=self.head,
            main_branch_oid=self._ref_repo.get_branch(self._config.main_branch),
            branch_oids=branch_oids,
        )

    def mark_commit_reachable(self, oid: str) -> str:
        """Pin a commit against native collection. Returns the ref name."""
        ref_name = mark_commit_reachable(
            self._ref_repo,
            oid,
            prefix=self._config.gc_ref_prefix,
            message=self._config.pin_message,
        )
        self._session.commit()
        return ref_name

    def collect_garbage(self, out: TextIO | None = None) -> GCResult:
        """Release pinned commits that are no longer visible.

        Writes one progress line to *out* (if given) and returns a
        :class:`GCResult`. On failure the session is rolled back, so
        nothing from the failed pass is persisted.
        """
        try:
            result = collect_garbage(
                self._ref_repo,
                self.compute_visible_commits,
                out,
                prefix=self._config.gc_ref_prefix,
                progress_message=self._config.gc_progress_message,
            )
        except Exception as exc:
            logger.warning("Garbage collection aborted: %s", exc)
            self._session.rollback()
            raise
        self._session.commit()
        return result

    def list_gc_refs(self) -> list[GCRefInfo]:
        """List reserved references with their current visibility."""
        visible = self.compute_visible_commits()
        infos = []
        for ref in self._ref_repo.list_references():
            if not is_gc_ref(ref.name, self._config.gc_ref_prefix):
                continue
            # Visibility belongs to the peeled commit, not the oid in the name
            try:
                commit = self._ref_repo.peel_to_commit(self._ref_repo.resolve(ref))
            except (RefResolutionError, ObjectNotFoundError):
                continue
            if commit is None:
                continue
            infos.append(GCRefInfo(ref_name=ref.name, commit_oid=commit, visible=commit in visible))
        return infos

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the session and dispose the engine."""
        if self._closed:
            return
        self._closed = True
        self._session.close()
        if self._engine is not None:
            self._engine.dispose()

    def __enter__(self) -> Repository:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._closed:
            return "Repository(closed=True)"
        return f"Repository(head='{self.head}')"
