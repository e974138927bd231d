"""CLI: roomchat chat"""

import asyncio
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from roomchat.cli.capabilities import ConsoleNotifier, TerminalHaptics
from roomchat.errors import AuthorizationError, ConnectionError, SendError
from roomchat.models.room import Message
from roomchat.reconciler import MembershipDiff, TimelineDiff

console = Console()


def _get_client(**kwargs):
    from roomchat.cli.main import _get_client
    return _get_client(**kwargs)


def _run(coro):
    from roomchat.cli.main import _run
    return _run(coro)


class TimelinePrinter:
    """Prints each message once, however many times the reconciler replaces the timeline."""

    def __init__(self, console: Console, self_user_id: str):
        self._console = console
        self._self_user_id = self_user_id
        self._printed: set[str] = set()
        self._members_known = False

    def on_timeline(self, diff: TimelineDiff) -> None:
        for message in diff.messages:
            if message.id in self._printed:
                continue
            self._printed.add(message.id)
            self._console.print(self.format(message))

    def on_members(self, diff: MembershipDiff) -> None:
        if not self._members_known:
            self._members_known = True
            return
        for member in diff.joined:
            self._console.print(f"[dim]{escape(member.display_name)} joined[/dim]")
        for member in diff.left:
            self._console.print(f"[dim]{escape(member.display_name)} left[/dim]")

    def format(self, message: Message) -> str:
        when = message.created_at.astimezone().strftime("%H:%M")
        if message.author_id == self._self_user_id:
            return f"[dim]{when}[/dim] [bold]you[/bold]: {escape(message.content)}"
        return f"[dim]{when}[/dim] [cyan]{escape(message.author_display_name)}[/cyan]: {escape(message.content)}"


def _read_line() -> Optional[str]:
    try:
        return click.prompt("", prompt_suffix="> ", default="", show_default=False)
    except click.Abort:
        return None


@click.command("chat")
@click.argument("room_id")
@click.option("--no-stream", is_flag=True, help="Poll only; do not connect the event socket.")
@click.option("--notify", is_flag=True, help="Show a notification panel for each new message.")
def chat_cmd(room_id: str, no_stream: bool, notify: bool):
    """Open a room and chat. /members lists members, /quit exits."""

    async def _chat():
        client = _get_client(
            haptics=TerminalHaptics(console),
            notifier=ConsoleNotifier(console),
            is_foreground=lambda: not notify,
        )
        if not no_stream:
            try:
                await client.connect()
            except ConnectionError as e:
                console.print(f"[yellow]Live updates unavailable ({escape(str(e))}); polling only.[/yellow]")

        try:
            session = await client.open_room(room_id)
        except AuthorizationError as e:
            console.print(f"[red]{escape(str(e))}[/red]")
            await client.aclose()
            raise SystemExit(1)

        printer = TimelinePrinter(console, client.identity.user_id)
        session.add_timeline_handler(printer.on_timeline)
        session.add_membership_handler(printer.on_members)
        console.print(f"[bold]{escape(session.room.name)}[/bold] [dim]({escape(session.room.id)})[/dim]")
        console.print("[cyan]Type a message (/members, /quit)[/cyan]\n")

        loop = asyncio.get_running_loop()
        try:
            while True:
                line = await loop.run_in_executor(None, _read_line)
                if line is None or line.strip().lower() in ("/quit", "/exit"):
                    break
                if line.strip().lower() == "/members":
                    for m in session.members:
                        owner = " [dim](owner)[/dim]" if m.is_owner else ""
                        console.print(f"  {escape(m.display_name)}{owner}")
                    continue
                if not line.strip():
                    continue
                try:
                    await session.send(line)
                except SendError as e:
                    console.print(f"[red]{escape(str(e))}[/red] [dim]Unsent: {escape(e.content)}[/dim]")
                except ValueError as e:
                    console.print(f"[yellow]{escape(str(e))}[/yellow]")
        except KeyboardInterrupt:
            pass
        finally:
            await client.aclose()

    _run(_chat())
