import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.engine import Connection

from memvocab.config import settings
from memvocab.database import Base, create_engine
from memvocab.models import Card, Deck  # noqa: F401  (register tables)

config = context.config

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def do_run_migrations(connection: Connection) -> None:
    # One transaction per revision: a failing step leaves the previous
    # version intact. render_as_batch lets SQLite drop columns by copying
    # the table.
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        transaction_per_migration=True,
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    url = config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL
    engine = create_engine(url)
    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)
        await connection.commit()
    await engine.dispose()


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is None:
        # Invoked from the alembic command line
        asyncio.run(run_async_migrations())
    else:
        # Invoked by Store.migrate on a connection it already holds
        do_run_migrations(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
