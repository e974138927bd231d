"""
Side-effect dispatcher: haptic and notification actions for chat events.

Nothing raised by a capability leaves this module. A missing capability is
logged once at DEBUG; a failing one is logged at WARNING each time.
"""

import logging
from typing import Callable, Optional

from roomchat.capabilities import HAPTIC_PATTERNS, Haptics, Notifier, NullHaptics, NullNotifier
from roomchat.errors import CapabilityUnavailable
from roomchat.models.room import Message

logger = logging.getLogger(__name__)


def always_foreground() -> bool:
    return True


class SideEffectDispatcher:
    def __init__(
        self,
        haptics: Optional[Haptics] = None,
        notifier: Optional[Notifier] = None,
        is_foreground: Callable[[], bool] = always_foreground,
    ):
        self._haptics = haptics or NullHaptics()
        self._notifier = notifier or NullNotifier()
        self._is_foreground = is_foreground
        self._reported_unavailable: set[str] = set()

    def on_new_remote_message(self, message: Message) -> None:
        """One knock per remote message, plus a notification while in the background."""
        self._vibrate("door_knock")
        try:
            if self._is_foreground():
                return
            self._notifier.show(
                message.author_display_name or "New message",
                message.content,
                f"chat-{message.room_id}",
            )
        except CapabilityUnavailable as e:
            self._unavailable(e.capability)
        except Exception as e:
            logger.warning("Notification for message %s failed: %s", message.id, e)

    def on_send_accepted(self) -> None:
        self._vibrate("success")

    def on_send_failed(self) -> None:
        self._vibrate("error")

    def _vibrate(self, name: str) -> None:
        try:
            self._haptics.vibrate(name, HAPTIC_PATTERNS[name])
        except CapabilityUnavailable as e:
            self._unavailable(e.capability)
        except Exception as e:
            logger.warning("Haptic %s failed: %s", name, e)

    def _unavailable(self, capability: str) -> None:
        if capability in self._reported_unavailable:
            return
        self._reported_unavailable.add(capability)
        logger.debug("%s unavailable; skipping", capability)
