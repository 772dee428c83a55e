"""Database schema CLI commands.

Migrations run through Alembic programmatically against the database URL
from application settings, so ``alembic.ini`` never needs a URL of its own.
"""

import asyncio
from typing import TYPE_CHECKING

import typer
from loguru import logger

if TYPE_CHECKING:
    from alembic.config import Config

db_app = typer.Typer()


def _alembic_config() -> "Config":
    from alembic.config import Config

    from poll_api.core.config import get_settings

    config = Config("alembic.ini")
    # configparser interpolation treats a bare % as a reference
    config.set_main_option("sqlalchemy.url", get_settings().database_url.replace("%", "%%"))
    return config


@db_app.command()
def upgrade(
    revision: str = typer.Argument("head", help="Target revision"),
) -> None:
    """Apply migrations up to the target revision."""
    from alembic import command

    logger.info(f"Upgrading poll database to {revision}")
    command.upgrade(_alembic_config(), revision)
    logger.info("Poll database is up to date")


@db_app.command()
def downgrade(
    revision: str = typer.Argument("-1", help="Target revision"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Roll migrations back to the target revision.  Dropping tables deletes ballots."""
    from alembic import command

    if not yes:
        typer.confirm(f"Downgrade the poll database to {revision}? Data in dropped tables is lost.", abort=True)
    logger.info(f"Downgrading poll database to {revision}")
    command.downgrade(_alembic_config(), revision)


@db_app.command()
def current() -> None:
    """Show the applied migration revision."""
    from alembic import command

    command.current(_alembic_config(), verbose=True)


@db_app.command("init")
def init_schema() -> None:
    """Create any missing tables directly from the models, without Alembic.

    Meant for throwaway SQLite databases in development; production
    databases should be managed with ``upgrade``.
    """
    from poll_api.core.config import get_settings
    from poll_api.core.database import Database
    from poll_api.models.base import Base

    settings = get_settings()

    async def _create() -> None:
        database = Database.open(settings.database_url, schema=settings.database_schema)
        try:
            async with database.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        finally:
            await database.dispose()

    asyncio.run(_create())
    typer.echo("Created identities, polls and ballots tables")
