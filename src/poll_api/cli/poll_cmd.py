"""Poll administration CLI commands."""

import asyncio
import uuid
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from sqlalchemy.ext.asyncio import AsyncSession

from poll_api.core.errors import PollApiError

poll_app = typer.Typer()

T = TypeVar("T")


async def _with_session(work: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """Open the configured database, run ``work`` in one session, and dispose."""
    from poll_api.core.config import get_settings
    from poll_api.core.database import Database

    settings = get_settings()
    database = Database.open(settings.database_url, schema=settings.database_schema)
    try:
        async with database.session() as session:
            return await work(session)
    finally:
        await database.dispose()


def _run(work: Callable[[AsyncSession], Awaitable[T]]) -> T:
    try:
        return asyncio.run(_with_session(work))
    except PollApiError as e:
        typer.echo(f"Error: {e.message}", err=True)
        raise typer.Exit(code=1) from e


def _poll_id(value: str) -> uuid.UUID:
    from poll_api.services.poll_service import parse_poll_id

    parsed = parse_poll_id(value)
    if parsed is None:
        typer.echo(f"Error: '{value}' is not a valid poll id", err=True)
        raise typer.Exit(code=1)
    return parsed


@poll_app.command("create")
def create(
    title: str = typer.Argument(..., help="Poll title"),
    question: str | None = typer.Option(None, "--question", help="Optional descriptive question"),
) -> None:
    """Create a new open poll."""
    from poll_api.services.poll_service import create_poll

    poll = _run(lambda session: create_poll(session, title, question))
    typer.echo(f"Created poll {poll.id}: {poll.title}")


@poll_app.command("list")
def list_all() -> None:
    """List all polls, newest first."""
    from poll_api.services.poll_service import list_polls

    polls = _run(list_polls)
    typer.echo(f"{'ID':<38} {'Active':<8} {'Title'}")
    typer.echo("-" * 72)
    for poll in polls:
        typer.echo(f"{poll.id!s:<38} {poll.active!s:<8} {poll.title}")
    typer.echo(f"\nTotal: {len(polls)}")


@poll_app.command("results")
def results(poll_id: str = typer.Argument(..., help="Poll id")) -> None:
    """Show the tally of a poll."""
    from poll_api.services.results_service import get_results

    parsed = _poll_id(poll_id)
    res = _run(lambda session: get_results(session, parsed))
    typer.echo(f"{res.title}")
    typer.echo(f"  yes:   {res.yes} ({res.yes_percent}%)")
    typer.echo(f"  no:    {res.no} ({res.no_percent}%)")
    typer.echo(f"  total: {res.total}")


@poll_app.command("open")
def open_poll(poll_id: str = typer.Argument(..., help="Poll id")) -> None:
    """Open a poll for voting."""
    from poll_api.services.poll_service import set_active

    parsed = _poll_id(poll_id)
    _run(lambda session: set_active(session, parsed, True))
    typer.echo(f"Poll {parsed} opened")


@poll_app.command("close")
def close_poll(poll_id: str = typer.Argument(..., help="Poll id")) -> None:
    """Close a poll; existing ballots are kept."""
    from poll_api.services.poll_service import set_active

    parsed = _poll_id(poll_id)
    _run(lambda session: set_active(session, parsed, False))
    typer.echo(f"Poll {parsed} closed")


@poll_app.command("reset")
def reset(
    poll_id: str = typer.Argument(..., help="Poll id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete every ballot of a poll."""
    from poll_api.services.ballot_service import reset_ballots
    from poll_api.services.poll_service import get_poll

    parsed = _poll_id(poll_id)
    if not yes:
        typer.confirm(f"Delete all votes of poll {parsed}?", abort=True)

    async def _reset(session: AsyncSession) -> int | None:
        if await get_poll(session, parsed) is None:
            return None
        return await reset_ballots(session, parsed)

    deleted = _run(_reset)
    if deleted is None:
        typer.echo(f"Error: poll {parsed} does not exist", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Removed {deleted} ballots from poll {parsed}")


@poll_app.command("delete")
def delete(
    poll_id: str = typer.Argument(..., help="Poll id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete a poll together with its ballots."""
    from poll_api.services.poll_service import delete_poll

    parsed = _poll_id(poll_id)
    if not yes:
        typer.confirm(f"Delete poll {parsed} and all of its votes?", abort=True)
    _run(lambda session: delete_poll(session, parsed))
    typer.echo(f"Deleted poll {parsed}")
