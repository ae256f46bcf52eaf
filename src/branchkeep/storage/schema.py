"""SQLAlchemy ORM schema for branchkeep.

Defines all database tables: objects, commit_parents, refs, reflog,
events, event_transactions, merge_base_cache, _branchkeep_meta.

IMPORTANT: ObjectType is imported from the domain models -- it is NOT
redefined here. The ORM uses the same Python enum.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from branchkeep.models.objects import ObjectType


class Base(DeclarativeBase):
    """Base class for all branchkeep ORM models."""

    pass


class ObjectRow(Base):
    """A content-addressed object: commit, blob, or annotated tag."""

    __tablename__ = "objects"

    oid: Mapped[str] = mapped_column(String(64), primary_key=True)
    object_type: Mapped[ObjectType] = mapped_column(nullable=False)
    parent_oid: Mapped[Optional[str]] = mapped_column(
        String(64),
        ForeignKey("objects.oid"),
        nullable=True,
    )
    # Annotated tags only: the tagged object
    target_oid: Mapped[Optional[str]] = mapped_column(
        String(64),
        ForeignKey("objects.oid"),
        nullable=True,
    )
    payload_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_objects_type", "object_type"),
        Index("ix_objects_parent", "parent_oid"),
    )


class CommitParentRow(Base):
    """Association table for multi-parent commits (merge commits).

    For non-merge commits, only ObjectRow.parent_oid is used (single parent).
    For merge commits, this table stores ALL parents (including the first).
    The 'position' column preserves parent ordering.
    """

    __tablename__ = "commit_parents"

    commit_oid: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("objects.oid"),
        primary_key=True,
    )
    parent_oid: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("objects.oid"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_commit_parents_commit", "commit_oid"),
    )


class RefRow(Base):
    """Mutable named pointer to an object or to another ref.

    ``target_oid`` carries no foreign key: the reference table must be able
    to hold entries whose object has gone missing, which readers then skip.
    """

    __tablename__ = "refs"

    ref_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    target_oid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    symbolic_target: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class RefLogRow(Base):
    """Append-only history of reference updates."""

    __tablename__ = "reflog"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ref_name: Mapped[str] = mapped_column(String(255), nullable=False)
    old_oid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    new_oid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_reflog_ref_name", "ref_name"),
    )


class EventTransactionRow(Base):
    """Groups events recorded by one user action."""

    __tablename__ = "event_transactions"

    transaction_id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class EventRow(Base):
    """A recorded event.

    ``event_type`` is stored as plain text so rows written by newer
    versions stay readable; replay rejects types it does not know.
    """

    __tablename__ = "events"

    event_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    transaction_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("event_transactions.transaction_id"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(30), nullable=False)
    commit_oid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    old_oid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    new_oid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    ref_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_events_transaction", "transaction_id"),
    )


class MergeBaseCacheRow(Base):
    """Cached merge base for an (ordered) pair of commits.

    ``merge_base_oid`` is NULL when the pair has no common ancestor.
    """

    __tablename__ = "merge_base_cache"

    lhs_oid: Mapped[str] = mapped_column(String(64), primary_key=True)
    rhs_oid: Mapped[str] = mapped_column(String(64), primary_key=True)
    merge_base_oid: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class BranchkeepMetaRow(Base):
    """Key-value metadata for the database itself (e.g., schema version)."""

    __tablename__ = "_branchkeep_meta"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
