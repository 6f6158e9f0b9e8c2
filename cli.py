"""CLI commands for SK event management."""

import asyncio
import uuid
from datetime import timedelta
from uuid import UUID

import typer

from src.auth.identity import Identity, Role, create_access_token
from src.events.errors import EventsError
from src.events.features.manage_events.write_model import SqlEventWriteModel
from src.events.features.statistics.read_model import SqlStatisticsReadModel

app = typer.Typer(help="CLI commands for SK event management")

# Identity the CLI acts as for staff-only operations
SYSTEM_IDENTITY = Identity.with_roles(UUID(int=0), [Role.SYSTEM_ADMIN])


@app.command()
def issue_token(
    user_id: str = typer.Option(
        None,
        "--user-id",
        "-u",
        help="User UUID (a random one when omitted)",
    ),
    roles: list[str] = typer.Option(
        ["RESIDENT"],
        "--role",
        "-r",
        help="Role tag, repeatable (RESIDENT, SK_OFFICER, SK_CHAIRMAN, SYSTEM_ADMIN)",
    ),
    minutes: int = typer.Option(
        None,
        "--minutes",
        "-m",
        help="Token lifetime in minutes",
    ),
):
    """Mint a bearer token for local development."""
    subject = UUID(user_id) if user_id else uuid.uuid4()
    expires = timedelta(minutes=minutes) if minutes else None
    token = create_access_token(subject, roles, expires_delta=expires)

    typer.secho("Token issued!", fg=typer.colors.GREEN)
    typer.secho(f"  User ID: {subject}", fg=typer.colors.BLUE)
    typer.secho(f"  Roles: {', '.join(roles)}", fg=typer.colors.BLUE)
    typer.secho(f"  Authorization: Bearer {token}", fg=typer.colors.CYAN)


@app.command()
def complete_past_events():
    """Mark every published event whose date has passed as completed."""
    event_ids = asyncio.run(SqlEventWriteModel().complete_elapsed_events(actor=SYSTEM_IDENTITY))

    if not event_ids:
        typer.secho("No elapsed events to complete", fg=typer.colors.YELLOW)
        return
    typer.secho(f"Completed {len(event_ids)} event(s):", fg=typer.colors.GREEN)
    for event_id in event_ids:
        typer.secho(f"  - {event_id}", fg=typer.colors.BLUE)


@app.command()
def event_stats(
    event_id: str = typer.Argument(
        ...,
        help="Event UUID",
    ),
):
    """Show registration and attendance figures for one event."""
    try:
        stats = asyncio.run(
            SqlStatisticsReadModel().event_stats(UUID(event_id), actor=SYSTEM_IDENTITY)
        )
    except (ValueError, EventsError) as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)

    typer.secho(f"Event: {stats.title or stats.event_id}", fg=typer.colors.GREEN)
    typer.secho(f"  Approved registrations: {stats.total_registrations}", fg=typer.colors.BLUE)
    typer.secho(f"  Pending registrations: {stats.pending}", fg=typer.colors.BLUE)
    typer.secho(
        f"  Present / Late / Absent: {stats.present} / {stats.late} / {stats.absent}",
        fg=typer.colors.BLUE,
    )
    typer.secho(f"  Attendance rate: {stats.attendance_rate:.1%}", fg=typer.colors.CYAN)
    if stats.capacity is not None:
        typer.secho(
            f"  Capacity: {stats.capacity} ({stats.spots_remaining} spots left)",
            fg=typer.colors.MAGENTA,
        )


if __name__ == "__main__":
    app()
