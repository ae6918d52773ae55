"""
Two-party rooms.

A room exists only while at least one connection is a member. Membership is
keyed by connection id, so dropping a connection voids every room it was in.
"""

from typing import Dict, Optional, Set

from vtype.core.logging import logger
from vtype.services.realtime.presence import PresenceRegistry


def room_id(user_a: str, user_b: str) -> str:
    """Canonical, order-independent id for the conversation between two users."""
    return "-".join(sorted([str(user_a), str(user_b)]))


class RoomRouter:
    def __init__(self, presence: PresenceRegistry):
        self.presence = presence
        self._members: Dict[str, Set[str]] = {}
        self._rooms_of: Dict[str, Set[str]] = {}

    def _add(self, connection_id: str, room: str) -> None:
        self._members.setdefault(room, set()).add(connection_id)
        self._rooms_of.setdefault(connection_id, set()).add(room)

    def _remove(self, connection_id: str, room: str) -> None:
        members = self._members.get(room)
        if members is not None:
            members.discard(connection_id)
            if not members:
                del self._members[room]
        rooms = self._rooms_of.get(connection_id)
        if rooms is not None:
            rooms.discard(room)
            if not rooms:
                del self._rooms_of[connection_id]

    def join(self, connection_id: str, identity: str, peer: str) -> Optional[str]:
        """
        Enroll ``connection_id`` in the room shared by ``identity`` and ``peer``.

        If the peer is online and its connection is not yet a member, it is
        enrolled too. Returns the peer's connection id when that happened so
        the caller can tell it the chat was joined.
        """
        room = room_id(identity, peer)
        self._add(connection_id, room)

        peer_connection = self.presence.lookup(peer)
        if peer_connection is None or peer_connection == connection_id:
            return None
        if self.is_member(peer_connection, room):
            return None
        self._add(peer_connection, room)
        logger.debug(
            "Auto-enrolled peer into room",
            extra={"room_id": room, "connection_id": peer_connection}
        )
        return peer_connection

    def leave(self, connection_id: str, room: str) -> None:
        self._remove(connection_id, room)

    def members(self, room: str) -> Set[str]:
        return set(self._members.get(room, ()))

    def is_member(self, connection_id: str, room: str) -> bool:
        return connection_id in self._members.get(room, ())

    def rooms_of(self, connection_id: str) -> Set[str]:
        return set(self._rooms_of.get(connection_id, ()))

    def drop_connection(self, connection_id: str) -> None:
        for room in self.rooms_of(connection_id):
            self._remove(connection_id, room)
