"""
Room session: one open room with its reconciler, poller and stream subscription.

Both update channels feed the same Reconciler. Closing the session
unsubscribes the stream and stops the poller; anything either channel
delivers afterwards is ignored.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Protocol

import httpx
from pydantic import ValidationError

from roomchat.config import Identity
from roomchat.dispatcher import SideEffectDispatcher
from roomchat.errors import RoomChatError, SendError
from roomchat.fetcher import SnapshotFetcher
from roomchat.models.room import Member, Message, Room
from roomchat.reconciler import MembershipHandler, Reconciler, TimelineHandler
from roomchat.scheduler import DEFAULT_POLL_INTERVAL_S, PollingScheduler
from roomchat.stream import EventStream

logger = logging.getLogger(__name__)


class MessageSink(Protocol):
    async def insert_message(self, room_id: str, user_id: str, display_name: str, content: str) -> Message: ...


class RoomSession:
    def __init__(
        self,
        room: Room,
        identity: Identity,
        sink: MessageSink,
        fetcher: SnapshotFetcher,
        stream: EventStream,
        dispatcher: SideEffectDispatcher,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
    ):
        self.room = room
        self.identity = identity
        self._sink = sink
        self._stream = stream
        self._dispatcher = dispatcher
        self._reconciler = Reconciler(room.id, identity.user_id)
        self._scheduler = PollingScheduler(fetcher, self._reconciler, poll_interval_s)
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._active = False
        self._reconciler.add_novelty_handler(dispatcher.on_new_remote_message)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def reconciler(self) -> Reconciler:
        return self._reconciler

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._reconciler.timeline

    @property
    def members(self) -> tuple[Member, ...]:
        return self._reconciler.members

    def add_timeline_handler(self, handler: TimelineHandler) -> Callable[[], None]:
        return self._reconciler.add_timeline_handler(handler)

    def add_membership_handler(self, handler: MembershipHandler) -> Callable[[], None]:
        return self._reconciler.add_membership_handler(handler)

    def open(self) -> None:
        """Subscribe to the stream and start polling. Needs a running event loop."""
        if self._active:
            return
        self._active = True
        self._unsubscribe = self._stream.subscribe(self.room.id, self._on_insert)
        self._scheduler.activate()
        logger.debug("Opened room %s", self.room.id)

    def close(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._scheduler.deactivate()
        logger.debug("Closed room %s", self.room.id)

    def refresh(self) -> Optional[asyncio.Task[None]]:
        return self._scheduler.refresh()

    async def send(self, content: str) -> Message:
        """Send a message as the local user.

        On failure the dispatcher's error action fires and SendError carries
        the original input back for a manual retry.
        """
        text = content.strip()
        if not text:
            raise ValueError("Message content is empty")
        if not self.identity.username:
            raise ValueError("Set a display name before sending messages")

        try:
            message = await self._sink.insert_message(self.room.id, self.identity.user_id,
                                                      self.identity.username, text)
        except (httpx.HTTPError, RoomChatError, ValidationError) as e:
            self._dispatcher.on_send_failed()
            raise SendError(f"Failed to send message: {e}", content=content) from e

        self._dispatcher.on_send_accepted()
        if self._active:
            self._reconciler.apply_stream_event(message)
        return message

    def _on_insert(self, message: Message) -> None:
        if not self._active:
            return
        self._reconciler.apply_stream_event(message)

    async def __aenter__(self) -> "RoomSession":
        self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()
