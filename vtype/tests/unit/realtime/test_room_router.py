"""Tests for two-party room membership."""

import pytest

from vtype.services.realtime.presence import PresenceRegistry
from vtype.services.realtime.rooms import RoomRouter, room_id


@pytest.fixture
def presence() -> PresenceRegistry:
    registry = PresenceRegistry()
    registry.connect("alice", "ca")
    registry.connect("bob", "cb")
    return registry


@pytest.fixture
def rooms(presence) -> RoomRouter:
    return RoomRouter(presence)


@pytest.mark.unit
def test_room_id_is_order_independent():
    assert room_id("bob", "alice") == room_id("alice", "bob") == "alice-bob"


@pytest.mark.unit
def test_join_auto_enrolls_online_peer(rooms):
    assert rooms.join("ca", "alice", "bob") == "cb"
    assert rooms.members("alice-bob") == {"ca", "cb"}


@pytest.mark.unit
def test_second_join_does_not_re_announce(rooms):
    rooms.join("ca", "alice", "bob")
    assert rooms.join("cb", "bob", "alice") is None
    assert rooms.members("alice-bob") == {"ca", "cb"}


@pytest.mark.unit
def test_join_with_offline_peer(rooms):
    assert rooms.join("ca", "alice", "carol") is None
    assert rooms.members("alice-carol") == {"ca"}


@pytest.mark.unit
def test_leave_removes_empty_room(rooms):
    rooms.join("ca", "alice", "carol")
    rooms.leave("ca", "alice-carol")
    assert rooms.members("alice-carol") == set()
    assert rooms.rooms_of("ca") == set()


@pytest.mark.unit
def test_drop_connection_voids_all_memberships(rooms):
    rooms.join("ca", "alice", "bob")
    rooms.join("ca", "alice", "carol")

    rooms.drop_connection("ca")

    assert rooms.members("alice-bob") == {"cb"}
    assert rooms.members("alice-carol") == set()
    assert rooms.rooms_of("ca") == set()
