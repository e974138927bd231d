"""
roomchat: a password-protected room chat client.

Keeps one consistent timeline per room from two unreliable channels: a
periodic REST snapshot poll and a Socket.IO insert stream.
"""

from roomchat.client import AsyncRoomChat
from roomchat.config import Identity, Settings
from roomchat.dispatcher import SideEffectDispatcher
from roomchat.errors import (
    AuthorizationError,
    CapabilityUnavailable,
    ConnectionError,
    HttpError,
    RoomChatError,
    SendError,
    TransientFetchError,
)
from roomchat.models.room import Member, Message, Room, RoomSummary
from roomchat.reconciler import MembershipDiff, Reconciler, TimelineDiff
from roomchat.room import RoomSession

__version__ = "0.1.0"
__all__ = [
    "AsyncRoomChat",
    "RoomSession",
    "Reconciler",
    "TimelineDiff",
    "MembershipDiff",
    "SideEffectDispatcher",
    "Identity",
    "Settings",
    "Room",
    "RoomSummary",
    "Member",
    "Message",
    "RoomChatError",
    "HttpError",
    "ConnectionError",
    "TransientFetchError",
    "AuthorizationError",
    "SendError",
    "CapabilityUnavailable",
]
