"""Database setup for a branchkeep store.

A store is one SQLite file (or an in-memory database) holding objects,
references and the event log. Other SQLAlchemy URLs work too; the
pragmas below only apply to SQLite.
"""

from __future__ import annotations

from sqlalchemy import Engine, create_engine, event, select
from sqlalchemy.orm import Session, sessionmaker

from branchkeep.exceptions import StoreAccessError
from branchkeep.storage.schema import Base, BranchkeepMetaRow

SCHEMA_VERSION = "1"

# busy_timeout makes a writer wait for another process's reference update
# instead of failing immediately.
_SQLITE_PRAGMAS = (
    "journal_mode=WAL",
    "busy_timeout=5000",
    "synchronous=NORMAL",
    "foreign_keys=ON",
)


def _apply_sqlite_pragmas(dbapi_conn, connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_conn.cursor()
    for pragma in _SQLITE_PRAGMAS:
        cursor.execute(f"PRAGMA {pragma}")
    cursor.close()


def create_store_engine(db_path: str = ":memory:", *, url: str | None = None) -> Engine:
    """Create the engine for a store at *db_path*, or at *url* if given."""
    if url is None:
        url = "sqlite://" if db_path == ":memory:" else f"sqlite:///{db_path}"
    engine = create_engine(url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _apply_sqlite_pragmas)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create missing tables and stamp or check the schema version.

    Raises:
        StoreAccessError: If the store was written by a newer schema.
    """
    Base.metadata.create_all(engine)

    with create_session_factory(engine)() as session:
        row = session.execute(
            select(BranchkeepMetaRow).where(BranchkeepMetaRow.key == "schema_version")
        ).scalar_one_or_none()
        if row is None:
            session.add(BranchkeepMetaRow(key="schema_version", value=SCHEMA_VERSION))
            session.commit()
        elif int(row.value) > int(SCHEMA_VERSION):
            raise StoreAccessError(
                "open store",
                None,
                f"schema version {row.value} is newer than supported {SCHEMA_VERSION}",
            )
