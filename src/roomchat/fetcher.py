"""
Snapshot fetcher: full reads of a room's messages and members.

A failed fetch raises TransientFetchError. Callers treat it as "no update
this cycle", never as an empty room.
"""

from __future__ import annotations

from typing import Protocol

import httpx
from pydantic import ValidationError

from roomchat.errors import RoomChatError, TransientFetchError
from roomchat.models.room import Member, Message

MAX_SNAPSHOT_MESSAGES = 100


class SnapshotSource(Protocol):
    async def list_messages(self, room_id: str) -> list[Message]: ...

    async def list_members(self, room_id: str) -> list[Member]: ...


class SnapshotFetcher:
    def __init__(self, source: SnapshotSource, max_messages: int = MAX_SNAPSHOT_MESSAGES):
        self._source = source
        self._max_messages = max_messages

    async def fetch_messages(self, room_id: str) -> list[Message]:
        """Messages ascending by (created_at, id), unique by id, newest `max_messages` only."""
        try:
            messages = await self._source.list_messages(room_id)
        except (httpx.HTTPError, RoomChatError, ValidationError) as e:
            raise TransientFetchError(f"Failed to fetch messages for room {room_id}: {e}",
                                      {"room_id": room_id}) from e

        by_id: dict[str, Message] = {}
        for message in messages:
            by_id.setdefault(message.id, message)
        ordered = sorted(by_id.values(), key=lambda m: m.sort_key)
        return ordered[-self._max_messages:] if self._max_messages else ordered

    async def fetch_members(self, room_id: str) -> list[Member]:
        try:
            members = await self._source.list_members(room_id)
        except (httpx.HTTPError, RoomChatError, ValidationError) as e:
            raise TransientFetchError(f"Failed to fetch members for room {room_id}: {e}",
                                      {"room_id": room_id}) from e
        if any(m.joined_at is None for m in members):
            return list(members)
        return sorted(members, key=lambda m: m.joined_at)
