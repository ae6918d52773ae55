"""
In-memory presence bookkeeping.

Maps each online identity to the id of its most recent live connection and
back. All mutations happen on the event loop thread and never await, so no
locking is needed.
"""

from typing import Dict, List, Optional

from vtype.core.logging import logger


class PresenceRegistry:
    """Identity <-> connection id mapping, last connect wins."""

    def __init__(self):
        self._by_identity: Dict[str, str] = {}
        self._by_connection: Dict[str, str] = {}

    def connect(self, identity: str, connection_id: str) -> Optional[str]:
        """
        Record ``connection_id`` as the live connection for ``identity``.

        Returns the connection id it superseded, if any. The superseded
        connection is not closed; it simply stops receiving personal
        deliveries.
        """
        previous = self._by_identity.get(identity)
        self._by_identity[identity] = connection_id
        self._by_connection[connection_id] = identity
        if previous is not None and previous != connection_id:
            logger.info(
                "Presence superseded by newer connection",
                extra={"user_id": identity, "connection_id": connection_id, "previous": previous}
            )
        return previous

    def disconnect(self, connection_id: str) -> Optional[str]:
        """
        Forget ``connection_id``.

        The identity mapping is only removed when it still points at this
        connection. Returns the identity that went offline, or None when the
        connection was stale or unknown.
        """
        identity = self._by_connection.pop(connection_id, None)
        if identity is None:
            return None
        if self._by_identity.get(identity) != connection_id:
            return None
        del self._by_identity[identity]
        return identity

    def lookup(self, identity: str) -> Optional[str]:
        return self._by_identity.get(identity)

    def list_online(self, excluding: Optional[str] = None) -> List[str]:
        return [identity for identity in self._by_identity if identity != excluding]

    def connection_ids(self) -> List[str]:
        """Connection ids currently considered live for some identity."""
        return list(self._by_identity.values())

    def __len__(self) -> int:
        return len(self._by_identity)
