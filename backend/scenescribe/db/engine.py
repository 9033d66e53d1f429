"""
Database engine configuration for SceneScribe.

Builds an async SQLAlchemy engine and session factory for a given URL.
SQLite connections get WAL mode and a busy timeout.
"""
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


def configure_sqlite_pragmas(dbapi_conn, connection_record):
    """
    Configure SQLite PRAGMA settings.

    - WAL mode: readers do not block the single writer
    - Busy timeout: wait up to 5s for locks
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def create_engine_and_sessionmaker(
    database_url: str,
) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    engine = create_async_engine(database_url, echo=False)

    if engine.dialect.name == "sqlite":
        # aiosqlite needs the listener on the sync engine
        event.listens_for(engine.sync_engine, "connect")(configure_sqlite_pragmas)

    # expire_on_commit=False: rows are read after commit outside a greenlet
    session_factory = async_sessionmaker(
        engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
    return engine, session_factory
