"""Alembic environment for the poll database (async SQLAlchemy)."""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, text
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import async_engine_from_config

from poll_api.core.config import get_settings
from poll_api.models import Ballot, Identity, Poll  # noqa: F401
from poll_api.models.base import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _target() -> tuple[str, str | None]:
    """Return (url, schema).  A URL set on the Alembic config wins over settings."""
    settings = get_settings()
    url = config.get_main_option("sqlalchemy.url") or settings.database_url
    return url, settings.database_schema


def _configure(schema: str | None, *, sqlite: bool, **kwargs: object) -> None:
    options: dict[str, object] = {
        "target_metadata": target_metadata,
        "compare_type": True,
        # SQLite cannot ALTER constraints in place
        "render_as_batch": sqlite,
        **kwargs,
    }
    if schema is not None:
        options["version_table_schema"] = schema
    context.configure(**options)


def run_migrations_offline() -> None:
    """Emit migration SQL without connecting."""
    url, schema = _target()
    _configure(
        schema,
        sqlite=url.startswith("sqlite"),
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection, schema: str | None) -> None:
    if schema is not None:
        connection.execute(text(f'SET search_path TO "{schema}", public'))
    _configure(schema, sqlite=connection.dialect.name == "sqlite", connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    url, schema = _target()
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = url
    engine = async_engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    async with engine.connect() as connection:
        if schema is not None:
            await connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
            await connection.commit()
        await connection.run_sync(do_run_migrations, schema)

    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
