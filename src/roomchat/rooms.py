"""
Rooms REST API: rooms, members and messages on the storage backend.
"""

from __future__ import annotations

from typing import Any

from roomchat.auth import digest_matches
from roomchat.errors import AuthorizationError, HttpError
from roomchat.models.room import Member, Message, Room, RoomSummary
from roomchat.transport.http import HttpClient

MESSAGE_PAGE_LIMIT = 100


class RoomsAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def create_room(self, name: str, password_hash: str, owner_id: str, display_name: str) -> Room:
        """Create a room and register the creator as its owner."""
        data = await self._http.post("/v1/rooms", {
            "name": name,
            "password_hash": password_hash,
            "creator_id": owner_id,
        })
        room = Room.model_validate(data)
        await self._http.post(f"/v1/rooms/{room.id}/members", {
            "user_id": owner_id,
            "username": display_name,
            "is_creator": True,
        })
        return room

    async def get_room(self, room_id: str) -> Room:
        try:
            data = await self._http.get(f"/v1/rooms/{room_id}")
        except HttpError as e:
            if e.status_code == 404:
                raise AuthorizationError("Room not found", AuthorizationError.ROOM_NOT_FOUND) from e
            raise
        if not data:
            raise AuthorizationError("Room not found", AuthorizationError.ROOM_NOT_FOUND)
        return Room.model_validate(data)

    async def join_room(self, room_id: str, password_hash: str, user_id: str, display_name: str) -> Room:
        """Join a room after checking the password digest.

        Joining a room the user already belongs to returns the room without
        inserting a second membership.
        """
        room = await self.get_room(room_id)
        if not digest_matches(password_hash, room.password_hash):
            raise AuthorizationError("Incorrect password", AuthorizationError.WRONG_PASSWORD)

        existing = await self._http.get(f"/v1/rooms/{room_id}/members", params={"user_id": user_id})
        if existing:
            return room

        await self._http.post(f"/v1/rooms/{room_id}/members", {
            "user_id": user_id,
            "username": display_name,
            "is_creator": False,
        })
        return room

    async def leave_room(self, room_id: str, user_id: str) -> None:
        await self._http.delete(f"/v1/rooms/{room_id}/members/{user_id}")

    async def list_user_rooms(self, user_id: str) -> list[RoomSummary]:
        """Rooms the user belongs to, newest first, with member counts."""
        data = await self._http.get(f"/v1/users/{user_id}/rooms")
        return [RoomSummary.model_validate(r) for r in data or []]

    async def list_messages(self, room_id: str, limit: int = MESSAGE_PAGE_LIMIT) -> list[Message]:
        """The `limit` most recent messages, oldest first."""
        data: list[dict[str, Any]] = await self._http.get(
            f"/v1/rooms/{room_id}/messages", params={"order": "desc", "limit": limit},
        ) or []
        return [Message.model_validate(m) for m in reversed(data)]

    async def list_members(self, room_id: str) -> list[Member]:
        data = await self._http.get(f"/v1/rooms/{room_id}/members") or []
        return [Member.model_validate(m) for m in data]

    async def insert_message(self, room_id: str, user_id: str, display_name: str, content: str) -> Message:
        data = await self._http.post(f"/v1/rooms/{room_id}/messages", {
            "user_id": user_id,
            "username": display_name,
            "content": content,
        })
        return Message.model_validate(data)
