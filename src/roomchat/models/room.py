"""
Room, member and message models.

Field names follow the storage backend's wire format through aliases
(`user_id`/`username` on messages, `username`/`is_creator` on members).
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps without an offset are UTC, so naive and aware values compare."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Room(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    password_hash: str = ""
    creator_id: str = ""
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def created_at_as_utc(cls, value):
        return _as_utc(value)


class RoomSummary(Room):
    member_count: int = 0


class Member(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    room_id: str
    user_id: str
    display_name: str = Field(default="", alias="username")
    is_owner: bool = Field(default=False, alias="is_creator")
    joined_at: Optional[datetime] = None

    @field_validator("joined_at")
    @classmethod
    def joined_at_as_utc(cls, value):
        return _as_utc(value)


class Message(BaseModel):
    """Immutable once created. Timeline order is (created_at, id)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    room_id: str
    author_id: str = Field(alias="user_id")
    author_display_name: str = Field(default="", alias="username")
    content: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def created_at_as_utc(cls, value):
        return _as_utc(value)

    @property
    def sort_key(self) -> tuple[datetime, str]:
        return (self.created_at, self.id)
