"""Shared test fixtures for branchkeep.

Provides in-memory SQLite engine, session, and repository fixtures.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import Session, sessionmaker

from branchkeep.models.objects import ObjectType
from branchkeep.storage.engine import create_store_engine, init_db
from branchkeep.storage.schema import ObjectRow
from branchkeep.storage.sqlite import (
    SqliteEventLogRepository,
    SqliteMergeBaseCacheRepository,
    SqliteObjectRepository,
    SqliteRefRepository,
)


@pytest.fixture
def engine():
    """In-memory SQLite engine with all tables created."""
    eng = create_store_engine(":memory:")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    """Session with automatic rollback after each test."""
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    sess = SessionLocal()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def object_repo(session: Session) -> SqliteObjectRepository:
    return SqliteObjectRepository(session)


@pytest.fixture
def ref_repo(session: Session) -> SqliteRefRepository:
    return SqliteRefRepository(session)


@pytest.fixture
def event_repo(session: Session) -> SqliteEventLogRepository:
    return SqliteEventLogRepository(session)


@pytest.fixture
def merge_base_repo(session: Session) -> SqliteMergeBaseCacheRepository:
    return SqliteMergeBaseCacheRepository(session)


# ------------------------------------------------------------------
# Shared test helpers
# ------------------------------------------------------------------

def oid(n: int) -> str:
    """A deterministic 64-char hex id."""
    return f"{n:064x}"


def save_commit(object_repo, commit_oid: str, *parents: str) -> str:
    """Store a commit row with the given parents and return its id."""
    object_repo.save(
        ObjectRow(
            oid=commit_oid,
            object_type=ObjectType.COMMIT,
            parent_oid=parents[0] if parents else None,
            message=f"commit {commit_oid[-4:]}",
            created_at=datetime.now(timezone.utc),
        )
    )
    if len(parents) > 1:
        object_repo.add_parents(commit_oid, list(parents))
    return commit_oid


def save_blob(object_repo, blob_oid: str) -> str:
    object_repo.save(
        ObjectRow(
            oid=blob_oid,
            object_type=ObjectType.BLOB,
            payload_json='{"data": "x"}',
            created_at=datetime.now(timezone.utc),
        )
    )
    return blob_oid


def save_tag(object_repo, tag_oid: str, target: str) -> str:
    object_repo.save(
        ObjectRow(
            oid=tag_oid,
            object_type=ObjectType.TAG,
            target_oid=target,
            created_at=datetime.now(timezone.utc),
        )
    )
    return tag_oid


def make_repo(**config_kwargs):
    """Create an in-memory Repository for testing."""
    from branchkeep import RepoConfig, Repository

    return Repository.open(":memory:", config=RepoConfig(**config_kwargs))


def make_repo_with_commits(n_commits: int = 3, **config_kwargs):
    """Create a Repository with a linear chain on main. Returns (repo, oids)."""
    repo = make_repo(**config_kwargs)
    oids = [repo.commit(f"Commit {i + 1}").oid for i in range(n_commits)]
    return repo, oids
