from vtype.services.realtime.presence import PresenceRegistry
from vtype.services.realtime.rooms import RoomRouter, room_id
from vtype.services.realtime.protocol import (
    ChatProtocol,
    ChatSession,
    ConnectedUser,
    OutgoingEvent
)
from vtype.services.realtime.connections import ConnectionManager

__all__ = [
    "PresenceRegistry",
    "RoomRouter",
    "room_id",
    "ChatProtocol",
    "ChatSession",
    "ConnectedUser",
    "OutgoingEvent",
    "ConnectionManager",
]
