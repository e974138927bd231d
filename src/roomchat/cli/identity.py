"""CLI: roomchat whoami|name"""

import click
from rich.console import Console
from rich.markup import escape

from roomchat.config import config_path, load_identity, save_username

console = Console()


@click.command("whoami")
def whoami_cmd():
    """Show the local user id and display name."""
    identity = load_identity()
    name = escape(identity.username) if identity.username else "[yellow]not set, run `roomchat name`[/yellow]"
    console.print(f"User ID: [bold]{identity.user_id}[/bold]")
    console.print(f"Name:    {name}")


@click.command("name")
@click.argument("display_name")
def name_cmd(display_name: str):
    """Set the display name shown to other members."""
    display_name = display_name.strip()
    if not display_name:
        raise click.BadParameter("display name cannot be empty")
    identity = save_username(display_name)
    console.print(f"[green]Display name set to {escape(identity.username)}[/green]")
    console.print(f"[dim]Saved to {config_path()}[/dim]")
