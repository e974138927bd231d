"""
Event stream: per-room "message inserted" pushes.

Delivery is at-least-once with best-effort ordering, and the socket may stop
delivering without telling anyone. Nothing here raises into the caller;
malformed frames are logged and dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Protocol

from pydantic import ValidationError

from roomchat.models.events import S2CEvent
from roomchat.models.room import Message
from roomchat.transport.envelope import parse_envelope

logger = logging.getLogger(__name__)


class StreamSource(Protocol):
    def add_event_handler(self, handler: Callable[[str, dict[str, Any]], None]) -> Callable[[], None]: ...

    def subscribe_room(self, room_id: str) -> None: ...

    def unsubscribe_room(self, room_id: str) -> None: ...


class EventStream:
    def __init__(self, source: StreamSource):
        self._source = source
        self._subscribers: dict[str, int] = {}

    def subscribe(self, room_id: str, on_insert: Callable[[Message], None]) -> Callable[[], None]:
        """Deliver inserted messages for `room_id` to `on_insert`.

        Returns an idempotent unsubscribe function. Frames that arrive after
        unsubscribe are ignored.
        """
        active = True

        def handler(event: str, raw: dict[str, Any]) -> None:
            if not active or event != S2CEvent.MESSAGE_INSERTED:
                return
            envelope = parse_envelope(raw)
            if envelope is None:
                logger.debug("Dropping malformed %s frame", event)
                return
            if envelope.payload.room_id != room_id:
                return
            try:
                message = Message.model_validate(envelope.payload.data)
            except ValidationError as e:
                logger.warning("Dropping invalid message in room %s: %s", room_id, e)
                return
            if message.room_id != room_id:
                return
            on_insert(message)

        remove_handler = self._source.add_event_handler(handler)
        self._subscribers[room_id] = self._subscribers.get(room_id, 0) + 1
        self._source.subscribe_room(room_id)

        def unsubscribe() -> None:
            nonlocal active
            if not active:
                return
            active = False
            remove_handler()
            remaining = self._subscribers.get(room_id, 1) - 1
            if remaining > 0:
                self._subscribers[room_id] = remaining
                return
            self._subscribers.pop(room_id, None)
            self._source.unsubscribe_room(room_id)

        return unsubscribe
