"""
AskDB CLI

Command-line interface for asking questions of registered databases.

Usage:
    askdb init-db                                   # Create system tables
    askdb connections add --engine postgresql ...   # Register a database
    askdb connections list --owner alice            # List registered databases
    askdb ask "Revenue by month" --connection ID    # Ask a question
    askdb conversations list --connection ID --user alice
    askdb conversations show ID --user alice
    askdb conversations delete ID --user alice
"""

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click
import pydantic
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from askdb.config import get_settings
from askdb.errors import AskDBError, is_sql_error
from askdb.models.connection import DEFAULT_PORTS, SUPPORTED_ENGINES
from askdb.models.pipeline import AskRequest, AskResult
from askdb.pipeline.responses import render_error
from askdb.runtime import AppContext

console = Console()

MAX_DISPLAY_ROWS = 100


# ============================================================================
# Helpers
# ============================================================================


def _run(action: Callable[[AppContext], Awaitable[None]]) -> None:
    """Run an async command body inside an application context."""

    async def runner() -> None:
        app = await AppContext.create()
        try:
            await action(app)
        finally:
            await app.close()

    try:
        asyncio.run(runner())
    except AskDBError as e:
        if is_sql_error(e):
            console.print_json(json.dumps(render_error(e), default=str))
        console.print(f"[red]Error: {e.message}[/red]")
        sys.exit(1)
    except pydantic.ValidationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(1)


def _rows_table(rows: list[dict[str, Any]], title: str | None = None) -> Table:
    table = Table(show_header=True, header_style="bold cyan", title=title)
    if not rows:
        return table
    columns = list(rows[0].keys())
    for column in columns:
        table.add_column(str(column))
    for row in rows[:MAX_DISPLAY_ROWS]:
        table.add_row(*["" if row.get(col) is None else str(row.get(col)) for col in columns])
    return table


def format_answer(result: AskResult) -> None:
    """Display SQL, summary and data for an answer."""
    console.print(Panel(result.sql, title="SQL", border_style="cyan", highlight=True))
    console.print(
        Panel(
            result.summary.text or "(no summary)",
            title=f"[bold green]Answer[/bold green] ({result.visual.type})",
        )
    )
    if result.data:
        console.print(_rows_table(result.data))
        if len(result.data) > MAX_DISPLAY_ROWS:
            console.print(f"[dim]Showing {MAX_DISPLAY_ROWS} of {len(result.data)} rows[/dim]")
    if result.conversation_id:
        console.print(f"[dim]Conversation: {result.conversation_id}[/dim]")


# ============================================================================
# Commands
# ============================================================================


@click.group()
@click.version_option(version="0.1.0", prog_name="AskDB")
def cli():
    """AskDB - ask questions of your databases in plain language."""
    try:
        get_settings().logging.configure()
    except pydantic.ValidationError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(1)


@cli.command(name="init-db")
def init_db():
    """Create the system database tables."""

    async def action(app: AppContext) -> None:
        await app.database.initialize()
        console.print("[green]✓ System database initialized[/green]")

    _run(action)


@cli.group()
def connections():
    """Manage registered target databases."""


@connections.command(name="add")
@click.option(
    "--engine",
    required=True,
    type=click.Choice(SUPPORTED_ENGINES, case_sensitive=False),
    help="Database engine.",
)
@click.option("--host", required=True, help="Database host.")
@click.option("--port", type=int, help="Database port (defaults to the engine's port).")
@click.option("--user", required=True, help="Database user.")
@click.option("--password", required=True, prompt=True, hide_input=True, help="Database password.")
@click.option("--database", required=True, help="Database name.")
@click.option("--owner", default=None, help="Owning user id.")
def add_connection(
    engine: str,
    host: str,
    port: int | None,
    user: str,
    password: str,
    database: str,
    owner: str | None,
):
    """Validate, probe and register a database connection."""
    params = {
        "engine": engine,
        "host": host,
        "port": port if port is not None else DEFAULT_PORTS[engine.lower()],
        "user": user,
        "password": password,
        "database": database,
    }

    async def action(app: AppContext) -> None:
        with console.status("[cyan]Probing database...[/cyan]", spinner="dots"):
            connection = await app.registry.register(params, owner_id=owner)
        snapshot = await app.snapshots.retrieve(connection.connection_id)

        console.print("[green]✓ Connection registered[/green]")
        console.print_json(json.dumps(connection.to_public_dict()))
        console.print(
            f"[dim]Schema snapshot: {len(snapshot.tables)} tables, "
            f"{snapshot.column_count()} columns[/dim]"
        )

    _run(action)


@connections.command(name="list")
@click.option("--owner", required=True, help="Owning user id.")
def list_connections(owner: str):
    """List a user's connections, most recently used first."""

    async def action(app: AppContext) -> None:
        items = await app.registry.list_for_owner(owner)
        if not items:
            console.print("[yellow]No connections registered[/yellow]")
            return
        console.print(
            _rows_table([item.to_public_dict() for item in items], title="Connections")
        )

    _run(action)


@cli.command()
@click.argument("question")
@click.option("--connection", "connection_id", required=True, help="Connection id.")
@click.option("--conversation", "conversation_id", default=None, help="Existing conversation id.")
@click.option("--user", "user_id", default=None, help="User id (enables conversation history).")
@click.option("--json", "as_json", is_flag=True, help="Print the raw JSON answer.")
def ask(
    question: str,
    connection_id: str,
    conversation_id: str | None,
    user_id: str | None,
    as_json: bool,
):
    """Ask a single question and exit."""
    request = AskRequest(
        question=question,
        connection_id=connection_id,
        conversation_id=conversation_id,
        user_id=user_id,
    )

    async def action(app: AppContext) -> None:
        with console.status("[cyan]Processing query...[/cyan]", spinner="dots"):
            result = await app.orchestrator.answer(request)
        if as_json:
            console.print_json(result.model_dump_json())
        else:
            format_answer(result)

    _run(action)


@cli.group()
def conversations():
    """Browse and delete conversations."""


@conversations.command(name="list")
@click.option("--connection", "connection_id", required=True, help="Connection id.")
@click.option("--user", "user_id", required=True, help="User id.")
def list_conversations(connection_id: str, user_id: str):
    """List conversations on a connection, newest first."""

    async def action(app: AppContext) -> None:
        items = await app.ledger.list_for_connection(user_id, connection_id)
        if not items:
            console.print("[yellow]No conversations yet[/yellow]")
            return
        console.print(
            _rows_table(
                [
                    {
                        "id": str(item.conversation_id),
                        "title": item.title,
                        "updated_at": item.updated_at.isoformat(),
                    }
                    for item in items
                ],
                title="Conversations",
            )
        )

    _run(action)


@conversations.command(name="show")
@click.argument("conversation_id")
@click.option("--user", "user_id", required=True, help="User id.")
def show_conversation(conversation_id: str, user_id: str):
    """Print the full history of a conversation."""

    async def action(app: AppContext) -> None:
        for message in await app.ledger.messages(conversation_id, user_id):
            style = "bold blue" if message.role == "user" else "bold green"
            console.print(f"[{style}]{message.role}[/{style}]: {message.content}")
            if message.sql_query:
                console.print(f"  [cyan]{message.sql_query}[/cyan] [dim]({message.visual_type})[/dim]")

    _run(action)


@conversations.command(name="delete")
@click.argument("conversation_id")
@click.option("--user", "user_id", required=True, help="User id.")
def delete_conversation(conversation_id: str, user_id: str):
    """Delete a conversation and its messages."""

    async def action(app: AppContext) -> None:
        await app.ledger.delete(conversation_id, user_id)
        console.print(f"[green]✓ Deleted conversation {conversation_id}[/green]")

    _run(action)


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
