"""
AsyncRoomChat: the main client.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import httpx

from roomchat.auth import hash_password
from roomchat.capabilities import Haptics, Notifier
from roomchat.config import Identity, Settings
from roomchat.dispatcher import SideEffectDispatcher, always_foreground
from roomchat.fetcher import SnapshotFetcher
from roomchat.models.room import Room, RoomSummary
from roomchat.room import RoomSession
from roomchat.rooms import RoomsAPI
from roomchat.scheduler import DEFAULT_POLL_INTERVAL_S
from roomchat.stream import EventStream
from roomchat.transport.http import DEFAULT_BASE_URL, HttpClient
from roomchat.transport.socketio import SocketIOManager

logger = logging.getLogger(__name__)


class AsyncRoomChat:
    """Async room chat client (primary)."""

    def __init__(
        self,
        identity: Identity,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        device_id: Optional[str] = None,
        transports: Optional[list[str]] = None,
        connect_timeout: float = 10.0,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
        haptics: Optional[Haptics] = None,
        notifier: Optional[Notifier] = None,
        is_foreground: Callable[[], bool] = always_foreground,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.identity = identity
        self._poll_interval_s = poll_interval_s

        self.http = HttpClient(base_url=base_url, token=api_key, transport=http_transport)
        self.rooms = RoomsAPI(self.http)
        self.socket = SocketIOManager(
            base_url=base_url,
            token=api_key,
            user_id=identity.user_id,
            device_id=device_id,
            transports=transports,
            connect_timeout=connect_timeout,
        )
        self.stream = EventStream(self.socket)
        self.fetcher = SnapshotFetcher(self.rooms)
        self.dispatcher = SideEffectDispatcher(haptics, notifier, is_foreground)
        self._sessions: list[RoomSession] = []

    @classmethod
    def from_settings(cls, settings: Settings, identity: Identity, **kwargs: Any) -> "AsyncRoomChat":
        return cls(
            identity,
            base_url=settings.base_url,
            api_key=settings.api_key,
            poll_interval_s=settings.poll_interval_s,
            **kwargs,
        )

    @property
    def connected(self) -> bool:
        return self.socket.connected

    async def connect(self) -> None:
        """Connect the event stream socket. Rooms still work poll-only without it."""
        await self.socket.connect()

    async def disconnect(self) -> None:
        await self.socket.disconnect()

    async def create_room(self, name: str, password: str) -> Room:
        if not name.strip() or not password:
            raise ValueError("Room name and password are required")
        self._require_username()
        return await self.rooms.create_room(
            name.strip(), hash_password(password), self.identity.user_id, self.identity.username,
        )

    async def join_room(self, room_id: str, password: str) -> Room:
        """Join a room. Raises AuthorizationError for an unknown room or a wrong password."""
        self._require_username()
        return await self.rooms.join_room(
            room_id.strip(), hash_password(password), self.identity.user_id, self.identity.username,
        )

    async def list_rooms(self) -> list[RoomSummary]:
        return await self.rooms.list_user_rooms(self.identity.user_id)

    async def leave_room(self, room_id: str) -> None:
        for session in [s for s in self._sessions if s.room.id == room_id]:
            self._close_session(session)
        await self.rooms.leave_room(room_id, self.identity.user_id)

    async def open_room(self, room_id: str) -> RoomSession:
        """Open a room: subscribe to its stream and start polling."""
        room = await self.rooms.get_room(room_id)
        session = RoomSession(
            room,
            self.identity,
            self.rooms,
            self.fetcher,
            self.stream,
            self.dispatcher,
            poll_interval_s=self._poll_interval_s,
        )
        session.open()
        self._sessions.append(session)
        if not self.connected:
            logger.info("Event stream not connected; room %s is poll-only", room_id)
        return session

    def _require_username(self) -> None:
        if not self.identity.username:
            raise ValueError("Set a display name first")

    def _close_session(self, session: RoomSession) -> None:
        session.close()
        if session in self._sessions:
            self._sessions.remove(session)

    async def aclose(self) -> None:
        for session in list(self._sessions):
            self._close_session(session)
        await self.disconnect()
        await self.http.close()
