"""
CLI commands for the stream predictions backend.

Provides command-line access for running the API server, managing the
database, and inspecting predictions and the points leaderboard.
"""

import asyncio
from functools import wraps
from typing import Any, Callable

import click
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stream11.config.settings import get_settings
from stream11.db.connection import DatabaseConnection
from stream11.db.indexes import ensure_indexes
from stream11.models.prediction import Prediction, PredictionStatus
from stream11.services.errors import ServiceError
from stream11.services.prediction_service import PredictionService
from stream11.services.status_service import StatusService
from stream11.services.user_service import UserService

console = Console()

STATUS_STYLES = {
    PredictionStatus.ACTIVE: "green",
    PredictionStatus.CLOSED: "yellow",
    PredictionStatus.RESOLVED: "cyan",
}


def async_command(f: Callable) -> Callable:
    """Decorator to run async functions in Click commands."""

    @wraps(f)
    def wrapper(*args, **kwargs):
        return asyncio.run(f(*args, **kwargs))

    return wrapper


def with_database(f: Callable) -> Callable:
    """
    Decorator that opens a database connection for the command.

    The Motor database is passed as the first argument and the connection is
    closed when the command finishes. Service errors are printed instead of
    shown as a traceback.
    """

    @wraps(f)
    async def wrapper(*args, **kwargs):
        connection = DatabaseConnection(get_settings().mongo)
        try:
            async with connection as database:
                return await f(database, *args, **kwargs)
        except ServiceError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            raise SystemExit(1) from e
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {e}")
            raise

    return wrapper


def _status_label(status: str) -> str:
    style = STATUS_STYLES.get(PredictionStatus(status), "white")
    return f"[{style}]{status}[/{style}]"


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="stream11")
def cli():
    """stream11 predictions backend - CLI Interface.

    Run the API, manage the database and inspect predictions.
    """
    pass


@cli.command("serve")
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind address")
@click.option("--port", default=8001, show_default=True, type=int, help="Bind port")
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host: str, port: int, reload: bool):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("main:app", host=host, port=port, reload=reload)


# =============================================================================
# Database Commands
# =============================================================================


@cli.group()
def db():
    """Database management commands."""
    pass


@db.command("init")
@async_command
@with_database
async def db_init(database: Any):
    """Initialize database with indexes."""
    console.print("[yellow]Initializing database...[/yellow]")

    results = await ensure_indexes(database)

    table = Table(title="Created Indexes", box=box.ROUNDED)
    table.add_column("Collection", style="cyan")
    table.add_column("Indexes", style="green")

    for collection, indexes in results.items():
        table.add_row(collection, ", ".join(indexes))

    console.print(table)
    console.print("[green]Database initialized successfully![/green]")


@db.command("status")
@async_command
async def db_status():
    """Check database connection status."""
    connection = DatabaseConnection(get_settings().mongo)
    try:
        await connection.connect()
        health = await connection.health_check()
    except Exception as e:
        health = {"healthy": False, "error": str(e)}
    finally:
        await connection.disconnect()

    if health["healthy"]:
        console.print(
            Panel(
                f"[green]Connected[/green]\n"
                f"Server: MongoDB {health.get('server_version', 'unknown')}\n"
                f"Latency: {health.get('latency_ms', 'N/A')} ms",
                title="Database Status",
                border_style="green",
            )
        )
    else:
        console.print(
            Panel(
                f"[red]Disconnected[/red]\nError: {health.get('error', 'Unknown')}",
                title="Database Status",
                border_style="red",
            )
        )


# =============================================================================
# Prediction Commands
# =============================================================================


@cli.group()
def predictions():
    """Prediction inspection commands."""
    pass


def _predictions_table(title: str, items: list[Prediction]) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Creator")
    table.add_column("Status")
    table.add_column("A / B", justify="right")
    table.add_column("Ends", style="dim")

    for p in items:
        table.add_row(
            str(p.id),
            p.title,
            p.creator_username,
            _status_label(p.status),
            f"{p.votes_a} / {p.votes_b}",
            p.ends_at.strftime("%Y-%m-%d %H:%M"),
        )
    return table


@predictions.command("list")
@click.option(
    "--status",
    "-s",
    type=click.Choice([s.value for s in PredictionStatus]),
    default=None,
    help="Filter by status",
)
@click.option("--limit", "-l", default=20, help="Maximum predictions to show")
@async_command
@with_database
async def predictions_list(database: Any, status: str | None, limit: int):
    """List predictions, newest first."""
    service = PredictionService(database)
    items = await service.list_predictions(
        status=PredictionStatus(status) if status else None,
        limit=limit,
    )
    console.print(_predictions_table(f"Predictions ({len(items)})", items))


@predictions.command("show")
@click.argument("prediction_id")
@async_command
@with_database
async def predictions_show(database: Any, prediction_id: str):
    """Show a prediction with its ballots and payouts."""
    service = PredictionService(database)
    p = await service.get_prediction(prediction_id)

    winner = p.label_for(p.winning_option) if p.winning_option else "-"
    console.print(
        Panel(
            f"[cyan]{p.title}[/cyan] ({p.game_type or 'no game'})\n\n"
            f"Status: {_status_label(p.status)}\n"
            f"Creator: {p.creator_username}\n"
            f"A: {p.option_a} - {p.votes_a} votes ({p.percent_a}%)\n"
            f"B: {p.option_b} - {p.votes_b} votes ({p.percent_b}%)\n"
            f"Ends: {p.ends_at.isoformat()}\n\n"
            f"Winner: {winner}\n"
            f"Points distributed: {p.points_distributed}"
            f"{'' if p.payouts_settled or not p.winning_option else ' (not settled)'}",
            title=f"Prediction {p.id}",
            border_style="cyan",
        )
    )

    if p.payouts:
        table = Table(title="Payouts", box=box.SIMPLE)
        table.add_column("Voter", style="cyan")
        table.add_column("Points", justify="right", style="green")
        for payout in p.payouts:
            table.add_row(payout.voter_username, str(payout.points))
        console.print(table)


@predictions.command("unsettled")
@async_command
@with_database
async def predictions_unsettled(database: Any):
    """List resolved predictions whose payouts were not fully credited."""
    service = PredictionService(database)
    items = await service.list_unsettled()
    if not items:
        console.print("[green]All payouts are settled.[/green]")
        return
    console.print(_predictions_table(f"Unsettled predictions ({len(items)})", items))


# =============================================================================
# User Commands
# =============================================================================


@cli.group()
def users():
    """User inspection commands."""
    pass


@users.command("top")
@click.option("--limit", "-l", default=10, help="Number of users to show")
@async_command
@with_database
async def users_top(database: Any, limit: int):
    """Show the points leaderboard."""
    service = UserService(database)
    leaders = await service.top_users(limit=limit)

    table = Table(title="Top Viewers", box=box.ROUNDED)
    table.add_column("#", justify="right", style="dim")
    table.add_column("User", style="cyan")
    table.add_column("Twitch ID", style="dim")
    table.add_column("Points", justify="right", style="green")

    for rank, u in enumerate(leaders, start=1):
        table.add_row(str(rank), u.effective_display_name, u.twitch_id, str(u.total_points))

    console.print(table)


@users.command("show")
@click.argument("twitch_id")
@async_command
@with_database
async def users_show(database: Any, twitch_id: str):
    """Show a user by Twitch id."""
    service = UserService(database)
    u = await service.get_by_twitch_id(twitch_id)
    last_login = u.last_login.strftime("%Y-%m-%d %H:%M") if u.last_login else "never"
    console.print(
        Panel(
            f"[cyan]{u.effective_display_name}[/cyan] (@{u.username})\n\n"
            f"Twitch ID: {u.twitch_id}\n"
            f"Email: {u.email or '-'}\n"
            f"[green]Points: {u.total_points}[/green]\n"
            f"Last login: {last_login}",
            title="User",
            border_style="cyan",
        )
    )


# =============================================================================
# Status Commands
# =============================================================================


@cli.command("status-log")
@click.option("--limit", "-l", default=50, help="Maximum records to show")
@async_command
@with_database
async def status_log(database: Any, limit: int):
    """Show recorded status checks."""
    service = StatusService(database)
    checks = await service.list_checks(limit=limit)

    table = Table(title=f"Status checks ({len(checks)})", box=box.ROUNDED)
    table.add_column("ID", style="dim")
    table.add_column("Client", style="cyan")
    table.add_column("Timestamp")
    for check in checks:
        table.add_row(check.id, check.client_name, check.timestamp.isoformat())
    console.print(table)


if __name__ == "__main__":
    cli()
