"""
Socket.IO connection manager for the room event stream.

Connection: {base_url}/socket.io/ with auth={token}. Room subscriptions are
remembered and re-requested whenever the client (re)connects, since the
server forgets them on disconnect.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketIOConnectionError

from roomchat.errors import ConnectionError
from roomchat.models.events import C2SEvent
from roomchat.transport.envelope import build_envelope

SOCKETIO_PATH = "/socket.io/"

logger = logging.getLogger(__name__)

EventHandler = Callable[[str, dict[str, Any]], None]


class SocketIOManager:
    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        user_id: str,
        device_id: Optional[str] = None,
        transports: Optional[list[str]] = None,
        connect_timeout: float = 10.0,
    ):
        self._base_url = base_url
        self._token = token
        self._user_id = user_id
        self._device_id = device_id or str(uuid.uuid4())
        self._transports = transports or ["websocket"]
        self._connect_timeout = connect_timeout
        self._sio: Optional[socketio.AsyncClient] = None
        self._event_handlers: list[EventHandler] = []
        self._rooms: set[str] = set()

    @property
    def connected(self) -> bool:
        return self._sio is not None and self._sio.connected

    @property
    def device_id(self) -> str:
        return self._device_id

    def add_event_handler(self, handler: EventHandler) -> Callable[[], None]:
        """Add an event handler. Returns a cleanup function."""
        self._event_handlers.append(handler)

        def remove() -> None:
            try:
                self._event_handlers.remove(handler)
            except ValueError:
                pass
        return remove

    def dispatch(self, event: str, raw: dict[str, Any]) -> None:
        for handler in list(self._event_handlers):
            try:
                handler(event, raw)
            except Exception:
                logger.exception("Event handler failed for %s", event)

    async def connect(self) -> None:
        if self._sio and self._sio.connected:
            return

        self._sio = sio = socketio.AsyncClient()

        @sio.event
        async def connect() -> None:
            for room_id in sorted(self._rooms):
                self._send(sio, C2SEvent.ROOM_SUBSCRIBE, None, room_id)

        @sio.on("*")
        async def on_any(event: str, data: Any) -> None:
            if isinstance(data, dict):
                self.dispatch(event, data)

        @sio.event
        async def disconnect(*_args: Any) -> None:
            logger.info("Socket disconnected; rooms fall back to polling until reconnect")

        try:
            await sio.connect(
                self._base_url,
                auth={"token": self._token} if self._token else None,
                transports=self._transports,
                socketio_path=SOCKETIO_PATH,
                wait_timeout=self._connect_timeout,
            )
        except SocketIOConnectionError as e:
            self._sio = None
            raise ConnectionError(f"Socket connection failed: {e}") from e

    def subscribe_room(self, room_id: str) -> None:
        self._rooms.add(room_id)
        if self.connected:
            self.emit(C2SEvent.ROOM_SUBSCRIBE, None, room_id)

    def unsubscribe_room(self, room_id: str) -> None:
        if room_id not in self._rooms:
            return
        self._rooms.discard(room_id)
        if self.connected:
            self.emit(C2SEvent.ROOM_UNSUBSCRIBE, None, room_id)

    def emit(self, event_type: str, data: Any, room_id: Optional[str] = None) -> None:
        """Emit an event with envelope wrapping.

        Schedules the async emit on the running event loop. Errors are logged
        rather than raised, since callers never wait on the result.
        """
        if not self._sio or not self._sio.connected:
            raise ConnectionError("Socket.IO not connected")
        self._send(self._sio, event_type, data, room_id)

    def _send(self, sio: socketio.AsyncClient, event_type: str, data: Any, room_id: Optional[str]) -> None:
        envelope = build_envelope(
            event_type, data,
            user_id=self._user_id,
            device_id=self._device_id,
            room_id=room_id,
        )

        async def _do_emit() -> None:
            try:
                await sio.emit(event_type, envelope)
            except Exception as e:
                logger.error("Emit failed for %s: %s", event_type, e)

        asyncio.get_running_loop().create_task(_do_emit())

    async def disconnect(self) -> None:
        if self._sio:
            await self._sio.disconnect()
            self._sio = None
