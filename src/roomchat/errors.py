"""
roomchat error types.

TransientFetchError is retried by the next poll and never shown to the user.
AuthorizationError ends a join attempt. SendError keeps the unsent content so
the user can retry. CapabilityUnavailable never leaves the dispatcher.
"""

from typing import Any, Optional


class RoomChatError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class HttpError(RoomChatError):
    def __init__(self, status_code: int, message: str):
        super().__init__("http_error", message, {"status_code": status_code})
        self.status_code = status_code


class ConnectionError(RoomChatError):
    def __init__(self, message: str):
        super().__init__("connection_error", message)


class TransientFetchError(RoomChatError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("transient_fetch", message, details)


class AuthorizationError(RoomChatError):
    """Wrong room password or unknown room."""

    ROOM_NOT_FOUND = "room_not_found"
    WRONG_PASSWORD = "wrong_password"

    def __init__(self, message: str, code: str = ROOM_NOT_FOUND):
        super().__init__(code, message)


class SendError(RoomChatError):
    def __init__(self, message: str, content: str = ""):
        super().__init__("send_failed", message, {"content": content})
        self.content = content


class CapabilityUnavailable(RoomChatError):
    def __init__(self, capability: str):
        super().__init__("capability_unavailable", f"{capability} not supported on this platform",
                         {"capability": capability})
        self.capability = capability
