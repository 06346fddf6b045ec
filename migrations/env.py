"""
Alembic environment

Runs revisions one transaction each. Three ways in:
- offline (alembic upgrade --sql): emit SQL only
- an existing connection passed as config.attributes["connection"]
  (bookstore.db.migrate, tests)
- online: async engine built from DATABASE_URL
"""
import asyncio
from contextlib import contextmanager
from logging.config import fileConfig

from alembic import context
from sqlalchemy import event, pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from bookstore.core.config import settings
from bookstore.core.database import Base
import bookstore.models  # noqa: F401

config = context.config

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def get_url() -> str:
    return config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        transaction_per_migration=True,
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(
        url=get_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=get_url().startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def _emit_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


@contextmanager
def sqlite_transactional_ddl(connection: Connection):
    """
    Make DDL on a SQLite connection roll back with its revision.

    The sqlite3 driver only opens a transaction before DML, so CREATE, ALTER
    and DROP would otherwise autocommit. Driver-level transaction handling is
    switched off and every SQLAlchemy begin emits an explicit BEGIN.
    """
    if connection.dialect.name != "sqlite" or connection.in_transaction():
        yield
        return

    dbapi_connection = connection.connection.dbapi_connection
    previous = dbapi_connection.isolation_level
    dbapi_connection.isolation_level = None
    event.listen(connection, "begin", _emit_begin)
    try:
        yield
    finally:
        event.remove(connection, "begin", _emit_begin)
        dbapi_connection.isolation_level = previous


def do_run_migrations(connection: Connection) -> None:
    _configure(
        connection=connection,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with sqlite_transactional_ddl(connection):
        with context.begin_transaction():
            context.run_migrations()


async def run_async_migrations() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = get_url()

    connectable = async_engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        do_run_migrations(connection)
        return

    asyncio.run(run_async_migrations())


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
