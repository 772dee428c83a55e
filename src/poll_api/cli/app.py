"""Typer CLI root: logging setup, ``serve``, ``info``, and the db/poll groups."""

import typer
from sqlalchemy.engine import make_url

from poll_api import __version__
from poll_api.core.config import get_settings
from poll_api.core.logging import setup_logging

app = typer.Typer(name="poll-api", help="School polling platform CLI")


@app.callback()
def _main_callback(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL for this command"),
) -> None:
    """Initialize logging for all CLI commands."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level, log_dir=settings.log_dir)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development"),
    host: str = typer.Option("0.0.0.0", "--host", help="Bind host"),  # noqa: S104
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    """Start the API server."""
    import uvicorn

    uvicorn.run("poll_api.main:create_app", factory=True, host=host, port=port, reload=reload)


@app.command()
def info() -> None:
    """Print version and the effective configuration, without secrets."""
    settings = get_settings()
    typer.echo(f"poll-api {__version__} ({settings.environment})")
    typer.echo(f"database:     {make_url(settings.database_url).render_as_string(hide_password=True)}")
    typer.echo(f"api prefix:   {settings.api_prefix}")
    typer.echo(f"email domain: {settings.allowed_email_domain or 'any'}")
    typer.echo(f"notifier:     {'smtp' if settings.smtp_configured else 'console'}")
    typer.echo(f"admin code:   {'set' if settings.admin_code else 'NOT SET'}")


def _register_subcommands() -> None:
    from poll_api.cli.db_cmd import db_app
    from poll_api.cli.poll_cmd import poll_app

    app.add_typer(db_app, name="db", help="Database schema commands")
    app.add_typer(poll_app, name="poll", help="Poll administration commands")


_register_subcommands()
