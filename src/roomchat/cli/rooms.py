"""CLI: roomchat rooms list|create|join|leave"""

import json

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from roomchat.errors import AuthorizationError

console = Console()


def _get_client():
    from roomchat.cli.main import _get_client
    return _get_client()


def _run(coro):
    from roomchat.cli.main import _run
    return _run(coro)


@click.group()
def rooms():
    """Room management."""


@rooms.command("list")
@click.option("--json-output", "--json", is_flag=True)
def rooms_list(json_output):
    """List rooms you belong to."""

    async def _list():
        client = _get_client()
        try:
            result = await client.list_rooms()
        finally:
            await client.aclose()
        if json_output:
            click.echo(json.dumps([r.model_dump(mode="json", exclude={"password_hash"}) for r in result], indent=2))
            return
        if not result:
            console.print("[dim]No rooms yet. Create one with `roomchat rooms create`.[/dim]")
            return
        table = Table(title=f"Rooms ({len(result)})")
        table.add_column("ID", style="bold")
        table.add_column("Name")
        table.add_column("Members", justify="right")
        table.add_column("Created")
        for r in result:
            created = r.created_at.strftime("%Y-%m-%d %H:%M") if r.created_at else ""
            table.add_row(r.id, escape(r.name), str(r.member_count), created)
        console.print(table)

    _run(_list())


@rooms.command("create")
@click.argument("name")
@click.password_option("--password", prompt="Room password")
def rooms_create(name, password):
    """Create a password-protected room."""

    async def _create():
        client = _get_client()
        try:
            with console.status("Creating room..."):
                room = await client.create_room(name, password)
        except ValueError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            raise SystemExit(1)
        finally:
            await client.aclose()
        console.print(f"[green]Room created: {escape(room.name)}[/green]")
        console.print(f"Share this ID: [bold]{room.id}[/bold]")

    _run(_create())


@rooms.command("join")
@click.argument("room_id")
@click.option("--password", prompt="Room password", hide_input=True)
def rooms_join(room_id, password):
    """Join a room by ID."""

    async def _join():
        client = _get_client()
        try:
            with console.status("Joining..."):
                room = await client.join_room(room_id, password)
        except (AuthorizationError, ValueError) as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            raise SystemExit(1)
        finally:
            await client.aclose()
        console.print(f"[green]Joined {escape(room.name)}.[/green] Open it with `roomchat chat {room.id}`.")

    _run(_join())


@rooms.command("leave")
@click.argument("room_id")
def rooms_leave(room_id):
    """Leave a room."""

    async def _leave():
        client = _get_client()
        try:
            with console.status("Leaving..."):
                await client.leave_room(room_id)
        finally:
            await client.aclose()
        console.print(f"[green]Left room {room_id}.[/green]")

    _run(_leave())
