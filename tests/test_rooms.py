"""
Tests for the room relation: key namespaces, idempotent join/leave and
the two indexes staying consistent.
"""

from statuspage.rooms import RoomMembership, org_room, tenant_room


# ─── Tests ────────────────────────────────────────────────────


class TestRoomKeys:
    def test_namespaces_do_not_collide(self):
        assert org_room("acme") == "org:acme"
        assert tenant_room("acme") == "tenant:acme"
        assert org_room("acme") != tenant_room("acme")


class TestRoomMembership:
    def test_join_is_idempotent(self):
        rooms = RoomMembership()
        rooms.join("c1", "org:acme")
        rooms.join("c1", "org:acme")
        assert rooms.members_of("org:acme") == {"c1"}
        assert rooms.rooms_of("c1") == {"org:acme"}

    def test_leave_non_member_is_noop(self):
        rooms = RoomMembership()
        rooms.join("c1", "org:acme")
        rooms.leave("c2", "org:acme")
        rooms.leave("c1", "org:other")
        assert rooms.members_of("org:acme") == {"c1"}

    def test_join_then_leave(self):
        rooms = RoomMembership()
        rooms.join("c1", "org:acme")
        rooms.leave("c1", "org:acme")
        assert rooms.members_of("org:acme") == frozenset()
        assert rooms.rooms_of("c1") == frozenset()
        assert rooms.room_count == 0

    def test_release_drops_every_membership(self):
        rooms = RoomMembership()
        rooms.join("c1", "org:acme")
        rooms.join("c1", "tenant:t1")
        rooms.join("c2", "org:acme")

        left = rooms.release("c1")

        assert left == {"org:acme", "tenant:t1"}
        assert rooms.members_of("org:acme") == {"c2"}
        assert rooms.members_of("tenant:t1") == frozenset()

    def test_members_of_is_a_snapshot(self):
        rooms = RoomMembership()
        rooms.join("c1", "org:acme")
        members = rooms.members_of("org:acme")
        rooms.join("c2", "org:acme")
        assert members == {"c1"}
