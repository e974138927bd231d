"""Basic unit tests for the roomchat package."""

from roomchat import (
    AsyncRoomChat,
    AuthorizationError,
    CapabilityUnavailable,
    ConnectionError,
    HttpError,
    Message,
    Member,
    RoomChatError,
    SendError,
    TransientFetchError,
    __version__,
)
from roomchat.auth import digest_matches, hash_password
from roomchat.models.events import C2SEvent, S2CEvent
from roomchat.transport.envelope import build_envelope, parse_envelope


def test_version():
    assert __version__ == "0.1.0"


def test_public_exports():
    assert AsyncRoomChat is not None


def test_error_hierarchy():
    for cls in (HttpError, ConnectionError, TransientFetchError, AuthorizationError, SendError,
                CapabilityUnavailable):
        assert issubclass(cls, RoomChatError)


def test_error_attributes():
    err = RoomChatError(code="test_code", message="something broke")
    assert err.code == "test_code"
    assert str(err) == "something broke"
    assert err.details is None

    assert AuthorizationError("nope").code == "room_not_found"
    assert AuthorizationError("nope", AuthorizationError.WRONG_PASSWORD).code == "wrong_password"

    send = SendError("failed", content="hi there")
    assert send.code == "send_failed"
    assert send.content == "hi there"

    http = HttpError(503, "HTTP 503")
    assert http.status_code == 503
    assert http.details == {"status_code": 503}

    cap = CapabilityUnavailable("haptics")
    assert cap.capability == "haptics"


def test_event_constants():
    assert C2SEvent.ROOM_SUBSCRIBE == "room:subscribe"
    assert C2SEvent.ROOM_UNSUBSCRIBE == "room:unsubscribe"
    assert S2CEvent.MESSAGE_INSERTED == "room:message_inserted"


def test_hash_password_is_sha256_hex():
    digest = hash_password("abcd")
    assert digest == "88d4266fd4e6338d13b845fcf289579d209c897823b9217da3e161936f031589"
    assert len(digest) == 64
    assert hash_password("abcd") == digest
    assert hash_password("abce") != digest


def test_digest_matches_ignores_case():
    digest = hash_password("abcd")
    assert digest_matches(digest, digest.upper())
    assert not digest_matches(digest, hash_password("other"))


def test_message_parses_wire_names():
    msg = Message.model_validate({
        "id": "m1",
        "room_id": "r1",
        "user_id": "u1",
        "username": "Alice",
        "content": "hi",
        "created_at": "2024-05-01T12:00:00+00:00",
    })
    assert msg.author_id == "u1"
    assert msg.author_display_name == "Alice"
    assert msg.sort_key[1] == "m1"


def test_member_parses_wire_names():
    member = Member.model_validate({
        "id": "mem1", "room_id": "r1", "user_id": "u1", "username": "Alice",
        "is_creator": True, "joined_at": "2024-05-01T12:00:00Z",
    })
    assert member.display_name == "Alice"
    assert member.is_owner is True


def test_envelope_roundtrip_and_invalid():
    raw = build_envelope(C2SEvent.ROOM_SUBSCRIBE, None, user_id="u1", device_id="d1", room_id="r1")
    envelope = parse_envelope(raw)
    assert envelope is not None
    assert envelope.payload.room_id == "r1"
    assert envelope.metadata.source.user_id == "u1"
    assert parse_envelope({"type": "x"}) is None
