"""
roomchat CLI: `roomchat` command.

Commands:
  roomchat whoami               Show the local identity
  roomchat name <display-name>  Set the display name
  roomchat rooms <cmd>          List, create, join and leave rooms
  roomchat chat <room-id>       Interactive room view
"""

import asyncio
import logging

try:
    import click
    from rich.console import Console
except ImportError:
    raise SystemExit("CLI requires extras: pip install roomchat[cli]")

from roomchat.client import AsyncRoomChat
from roomchat.config import load_identity, load_settings

console = Console()


def _get_client(**kwargs) -> AsyncRoomChat:
    settings = load_settings()
    identity = load_identity()
    return AsyncRoomChat.from_settings(settings, identity, **kwargs)


def _run(coro):
    return asyncio.run(coro)


@click.group()
@click.version_option("0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
def main(verbose: bool):
    """roomchat: password-protected chat rooms."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


from roomchat.cli.chat import chat_cmd
from roomchat.cli.identity import name_cmd, whoami_cmd
from roomchat.cli.rooms import rooms

main.add_command(whoami_cmd)
main.add_command(name_cmd)
main.add_command(rooms)
main.add_command(chat_cmd)


if __name__ == "__main__":
    main()
