"""Shared fixtures: message factories, a fake socket and an in-memory backend."""

from __future__ import annotations

import asyncio
import json
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from roomchat.models.events import S2CEvent
from roomchat.models.room import Member, Message
from roomchat.transport.envelope import build_envelope

T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_message(
    msg_id: str,
    seconds: int = 0,
    author: str = "u_other",
    room_id: str = "room-1",
    content: Optional[str] = None,
) -> Message:
    return Message(
        id=msg_id,
        room_id=room_id,
        user_id=author,
        username=author.upper(),
        content=content if content is not None else f"text {msg_id}",
        created_at=T0 + timedelta(seconds=seconds),
    )


def make_member(member_id: str, user_id: Optional[str] = None, room_id: str = "room-1",
                seconds: int = 0, owner: bool = False) -> Member:
    return Member(
        id=member_id,
        room_id=room_id,
        user_id=user_id or f"user-{member_id}",
        username=(user_id or member_id).upper(),
        is_creator=owner,
        joined_at=T0 + timedelta(seconds=seconds),
    )


def insert_frame(message: Message, room_id: Optional[str] = None) -> dict[str, Any]:
    """An S2C room:message_inserted frame as the server would send it."""
    return build_envelope(
        S2CEvent.MESSAGE_INSERTED,
        message.model_dump(mode="json", by_alias=True),
        user_id="server",
        device_id="server",
        room_id=room_id or message.room_id,
    )


async def wait_for(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


class FakeSocket:
    """Stands in for SocketIOManager: records subscriptions, lets tests push frames."""

    def __init__(self, connected: bool = True):
        self.connected = connected
        self.rooms: set[str] = set()
        self.subscribe_calls: list[str] = []
        self.unsubscribe_calls: list[str] = []
        self._handlers: list[Callable[[str, dict[str, Any]], None]] = []

    def add_event_handler(self, handler):
        self._handlers.append(handler)

        def remove() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)
        return remove

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def subscribe_room(self, room_id: str) -> None:
        self.rooms.add(room_id)
        self.subscribe_calls.append(room_id)

    def unsubscribe_room(self, room_id: str) -> None:
        self.rooms.discard(room_id)
        self.unsubscribe_calls.append(room_id)

    def dispatch(self, event: str, raw: dict[str, Any]) -> None:
        for handler in list(self._handlers):
            handler(event, raw)

    def push(self, message: Message) -> None:
        self.dispatch(S2CEvent.MESSAGE_INSERTED, insert_frame(message))

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False


class RecordingHaptics:
    def __init__(self) -> None:
        self.actions: list[str] = []
        self.patterns: list[tuple[int, ...]] = []

    def vibrate(self, action: str, pattern) -> None:
        self.actions.append(action)
        self.patterns.append(tuple(pattern))

    def count(self, action: str) -> int:
        return self.actions.count(action)


class RecordingNotifier:
    def __init__(self) -> None:
        self.shown: list[tuple[str, str, str]] = []

    def show(self, title: str, body: str, tag: str) -> None:
        self.shown.append((title, body, tag))


class InMemoryBackend:
    """Storage backend behind httpx.MockTransport.

    Inserted messages are queued as stream pushes; `flush_pushes()` delivers
    them to every FakeSocket subscribed to the room, so tests decide when the
    stream "arrives" relative to polls.
    """

    def __init__(self) -> None:
        self.rooms: dict[str, dict[str, Any]] = {}
        self.members: list[dict[str, Any]] = []
        self.messages: list[dict[str, Any]] = []
        self.sockets: list[FakeSocket] = []
        self.pending_pushes: list[dict[str, Any]] = []
        self.fail_paths: set[str] = set()
        self.requests: list[httpx.Request] = []
        self._tick = 0

    def _now(self) -> str:
        self._tick += 1
        return (T0 + timedelta(seconds=self._tick)).isoformat()

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def flush_pushes(self) -> int:
        pushes, self.pending_pushes = self.pending_pushes, []
        for row in pushes:
            message = Message.model_validate(row)
            for sock in self.sockets:
                if message.room_id in sock.rooms:
                    sock.push(message)
        return len(pushes)

    @staticmethod
    def _ok(data: Any, status: int = 200) -> httpx.Response:
        return httpx.Response(status, json={"status": "success", "data": data})

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        if path in self.fail_paths:
            return httpx.Response(503, text="backend unavailable")
        parts = [p for p in path.split("/") if p][1:]  # drop "v1"
        query = {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}
        body = json.loads(request.content) if request.content else {}

        if parts[0] == "users" and len(parts) == 3:
            return self._ok(self._user_rooms(parts[1]))
        if parts == ["rooms"] and request.method == "POST":
            room = {"id": str(uuid.uuid4()), "name": body["name"], "password_hash": body["password_hash"],
                    "creator_id": body["creator_id"], "created_at": self._now()}
            self.rooms[room["id"]] = room
            return self._ok(room, 201)

        room_id = parts[1]
        if room_id not in self.rooms:
            return httpx.Response(404, json={"status": "error", "message": "not found"})
        if len(parts) == 2:
            return self._ok(self.rooms[room_id])

        if parts[2] == "members":
            if request.method == "GET":
                rows = [m for m in self.members if m["room_id"] == room_id]
                if "user_id" in query:
                    rows = [m for m in rows if m["user_id"] == query["user_id"]]
                return self._ok(rows)
            if request.method == "POST":
                row = {"id": str(uuid.uuid4()), "room_id": room_id, "user_id": body["user_id"],
                       "username": body["username"], "is_creator": body["is_creator"],
                       "joined_at": self._now()}
                self.members.append(row)
                return self._ok(row, 201)
            if request.method == "DELETE":
                self.members = [m for m in self.members
                                if not (m["room_id"] == room_id and m["user_id"] == parts[3])]
                return httpx.Response(204)

        if parts[2] == "messages":
            if request.method == "GET":
                rows = sorted((m for m in self.messages if m["room_id"] == room_id),
                              key=lambda m: (m["created_at"], m["id"]), reverse=True)
                return self._ok(rows[: int(query.get("limit", 100))])
            row = {"id": str(uuid.uuid4()), "room_id": room_id, "user_id": body["user_id"],
                   "username": body["username"], "content": body["content"], "created_at": self._now()}
            self.messages.append(row)
            self.pending_pushes.append(row)
            return self._ok(row, 201)

        return httpx.Response(400)

    def _user_rooms(self, user_id: str) -> list[dict[str, Any]]:
        room_ids = {m["room_id"] for m in self.members if m["user_id"] == user_id}
        rooms = sorted((self.rooms[r] for r in room_ids), key=lambda r: r["created_at"], reverse=True)
        return [{**r, "member_count": sum(1 for m in self.members if m["room_id"] == r["id"])} for r in rooms]


@pytest.fixture
def backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep tests away from the real ~/.roomchat and any ROOMCHAT_* settings."""
    for var in ["ROOMCHAT_BASE_URL", "ROOMCHAT_API_KEY", "ROOMCHAT_POLL_INTERVAL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("ROOMCHAT_CONFIG", str(tmp_path / "config.json"))
    yield
