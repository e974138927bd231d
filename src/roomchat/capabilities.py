"""
Platform capabilities used for side effects: haptics and notifications.

Capabilities are plain objects handed to the dispatcher. A platform without
one uses the Null variant, which raises CapabilityUnavailable on use.
"""

from typing import Protocol, Sequence

from roomchat.errors import CapabilityUnavailable

# Vibration patterns in milliseconds (on, off, on, ...)
HAPTIC_PATTERNS: dict[str, tuple[int, ...]] = {
    "light": (5,),
    "medium": (5,),
    "heavy": (5,),
    "success": (5,),
    "warning": (50, 25, 50),
    "error": (100, 50, 100),
    "door_knock": (5,),
}


class Haptics(Protocol):
    """`action` names the HAPTIC_PATTERNS entry; several actions share a pattern."""

    def vibrate(self, action: str, pattern: Sequence[int]) -> None: ...


class Notifier(Protocol):
    def show(self, title: str, body: str, tag: str) -> None: ...


class NullHaptics:
    def vibrate(self, action: str, pattern: Sequence[int]) -> None:
        raise CapabilityUnavailable("haptics")


class NullNotifier:
    def show(self, title: str, body: str, tag: str) -> None:
        raise CapabilityUnavailable("notifications")
