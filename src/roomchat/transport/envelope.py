"""
Envelope construction and parsing for socket frames.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from roomchat.models.envelope import EnvelopeMetadata, MessageEnvelope, RoomPayload, Source


def build_envelope(
    event_type: str,
    data: Any,
    user_id: str,
    device_id: str,
    room_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build a C2S envelope as a dict ready for Socket.IO emit."""
    envelope = MessageEnvelope(
        metadata=EnvelopeMetadata(
            event_id=str(uuid.uuid4()),
            request_id=request_id or str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc).isoformat(),
            source=Source(role="user", user_id=user_id, device_id=device_id),
        ),
        type=event_type,
        payload=RoomPayload(room_id=room_id, type=event_type, data=data),
    )
    return envelope.model_dump()


def parse_envelope(raw: dict[str, Any]) -> Optional[MessageEnvelope]:
    """Parse an S2C envelope. Returns None if invalid."""
    try:
        return MessageEnvelope.model_validate(raw)
    except ValidationError:
        return None
