import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.util import CommandError
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncConnection,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from memvocab.config import settings
from memvocab.core.exceptions import MigrationError, StoreNotOpenError
from memvocab.database import create_engine, create_session_factory

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

# Schema version -> alembic revision. Version 0 is an empty file.
SCHEMA_REVISIONS: dict[int, str | None] = {
    0: None,
    1: "5c0f1e7a2b91",
    2: "9d3e4b6a8c20",
}
LATEST_VERSION = max(SCHEMA_REVISIONS)


def _alembic_config(connection: Connection) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.attributes["connection"] = connection
    config.attributes["configure_logger"] = False
    return config


def _current_revision(connection: Connection) -> str | None:
    return MigrationContext.configure(connection).get_current_revision()


def _upgrade(connection: Connection, revision: str) -> None:
    command.upgrade(_alembic_config(connection), revision)


class Store:
    """Embedded, versioned document store holding the decks and cards tables.

    Reads run concurrently; writes through one store are serialised so a
    write transaction never has to wait for another writer's lock inside
    SQLite.
    """

    def __init__(self, url: str | None = None, echo: bool | None = None) -> None:
        self.url = url or settings.DATABASE_URL
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._write_lock = asyncio.Lock()
        self._watch_connection: AsyncConnection | None = None
        self._is_open = False

    @property
    def is_open(self) -> bool:
        return self._is_open

    def _ensure_engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_engine(self.url, echo=self._echo)
            self._session_factory = create_session_factory(self._engine)
        return self._engine

    def _require_open(self) -> async_sessionmaker[AsyncSession]:
        if not self._is_open or self._session_factory is None:
            raise StoreNotOpenError()
        return self._session_factory

    # --- Schema ---

    async def current_version(self) -> int:
        engine = self._ensure_engine()
        try:
            async with engine.connect() as connection:
                revision = await connection.run_sync(_current_revision)
        except SQLAlchemyError as exc:
            logger.exception("Failed to read schema version of %s", self.url)
            raise MigrationError("Failed to read local storage version") from exc

        for version, known in SCHEMA_REVISIONS.items():
            if known == revision:
                return version
        raise MigrationError(f"Unknown local storage revision {revision!r}")

    async def open(self) -> None:
        """Bring the file to the latest schema version and allow sessions.

        Calling it on an open store does nothing.
        """
        async with self._write_lock:
            if self._is_open:
                return
            current = await self.current_version()
            if current < LATEST_VERSION:
                await self._run_upgrade(current, LATEST_VERSION)
            self._is_open = True
        logger.info("Opened local storage %s at schema version %d", self.url, LATEST_VERSION)

    async def migrate(self, from_version: int, to_version: int) -> int:
        """Upgrade from ``from_version`` to ``to_version``, one transaction per step."""
        if from_version not in SCHEMA_REVISIONS or to_version not in SCHEMA_REVISIONS:
            raise MigrationError(
                f"Unknown schema version (known: {sorted(SCHEMA_REVISIONS)})"
            )
        if to_version < from_version:
            raise MigrationError("Schema migrations are forward-only")

        async with self._write_lock:
            current = await self.current_version()
            if current != from_version:
                raise MigrationError(
                    f"Local storage is at version {current}, not {from_version}"
                )
            if to_version == from_version:
                return current

            was_open = self._is_open
            self._is_open = False
            await self._run_upgrade(from_version, to_version)
            self._is_open = was_open and to_version == LATEST_VERSION
        return to_version

    async def _run_upgrade(self, from_version: int, to_version: int) -> None:
        engine = self._ensure_engine()
        revision = SCHEMA_REVISIONS[to_version]
        logger.info("Migrating local storage from version %d to %d", from_version, to_version)
        try:
            async with engine.connect() as connection:
                await connection.run_sync(_upgrade, revision)
                await connection.commit()
        except (SQLAlchemyError, CommandError) as exc:
            logger.exception("Migration to schema version %d failed", to_version)
            raise MigrationError(
                f"Failed to migrate local storage to version {to_version}"
            ) from exc

    # --- Sessions ---

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        factory = self._require_open()
        async with factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """Write session: commits on success, rolls back on any exception."""
        factory = self._require_open()
        async with self._write_lock:
            async with factory() as session:
                async with session.begin():
                    yield session

    async def data_version(self) -> int:
        """SQLite's change counter; moves when another connection commits."""
        self._require_open()
        if self._watch_connection is None:
            self._watch_connection = await self._ensure_engine().connect()
        result = await self._watch_connection.exec_driver_sql("PRAGMA data_version")
        version = result.scalar_one()
        await self._watch_connection.rollback()
        return version

    async def close(self) -> None:
        self._is_open = False
        if self._watch_connection is not None:
            await self._watch_connection.close()
            self._watch_connection = None
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
