"""
Socket frame envelope shared by C2S and S2C events.
"""

from typing import Any, Optional
from pydantic import BaseModel


class Source(BaseModel):
    role: str  # "user" | "system"
    user_id: Optional[str] = None
    device_id: Optional[str] = None


class EnvelopeMetadata(BaseModel):
    event_id: str
    request_id: Optional[str] = None
    timestamp: str
    source: Source


class RoomPayload(BaseModel):
    room_id: Optional[str] = None
    type: Optional[str] = None
    data: Optional[Any] = None


class MessageEnvelope(BaseModel):
    metadata: EnvelopeMetadata
    type: str
    payload: RoomPayload
