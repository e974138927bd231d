"""Terminal stand-ins for haptics and notifications."""

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text


class TerminalHaptics:
    """Rings the terminal bell once per haptic action."""

    def __init__(self, console: Console):
        self._console = console

    def vibrate(self, action: str, pattern: Sequence[int]) -> None:
        self._console.bell()


class ConsoleNotifier:
    def __init__(self, console: Console):
        self._console = console

    def show(self, title: str, body: str, tag: str) -> None:
        # title and body are user text, never markup
        self._console.print(Panel(Text(body), title=escape(title), subtitle=escape(tag), expand=False))
