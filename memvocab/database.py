from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from memvocab.config import settings


class Base(DeclarativeBase):
    pass


def create_engine(
    url: str | None = None,
    echo: bool | None = None,
    busy_timeout: float | None = None,
) -> AsyncEngine:
    """Create an async engine for the local SQLite file.

    pysqlite only emits BEGIN before DML, so DDL would autocommit and a
    failed migration step could not be rolled back. The driver's own
    transaction handling is switched off and SQLAlchemy emits BEGIN itself,
    which makes schema changes transactional as well.
    """
    url = url or settings.DATABASE_URL
    engine = create_async_engine(
        url,
        echo=settings.DATABASE_ECHO if echo is None else echo,
        connect_args={
            "timeout": settings.DATABASE_BUSY_TIMEOUT_SECONDS
            if busy_timeout is None
            else busy_timeout,
        },
    )

    if engine.dialect.name == "sqlite":
        _install_sqlite_listeners(engine)
    return engine


def _install_sqlite_listeners(engine: AsyncEngine) -> None:
    in_memory = engine.url.database in (None, "", ":memory:")

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        if not in_memory:
            cursor = dbapi_connection.cursor()
            # Readers keep seeing the last committed snapshot during a write
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
