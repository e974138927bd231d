"""
Socket event names.
"""


class C2SEvent:
    ROOM_SUBSCRIBE = "room:subscribe"
    ROOM_UNSUBSCRIBE = "room:unsubscribe"


class S2CEvent:
    MESSAGE_INSERTED = "room:message_inserted"
