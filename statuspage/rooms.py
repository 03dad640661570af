"""
Room Membership Model.

Explicit many-to-many relation between connection ids and namespaced room
keys (``org:<id>`` / ``tenant:<id>``), indexed in both directions so that
join, leave and disconnect can be exercised without a live transport.
"""

from __future__ import annotations

from typing import Dict, FrozenSet, Set

ORG_PREFIX = "org"
TENANT_PREFIX = "tenant"


def make_room(namespace: str, scope_id: str) -> str:
    """Build a room key as ``<namespace>:<id>``."""
    return f"{namespace}:{scope_id}"


def org_room(organization_id: str) -> str:
    return make_room(ORG_PREFIX, organization_id)


def tenant_room(tenant_id: str) -> str:
    return make_room(TENANT_PREFIX, tenant_id)


class RoomMembership:
    """Tracks which connections belong to which rooms."""

    def __init__(self) -> None:
        self._members: Dict[str, Set[str]] = {}  # room -> conn ids
        self._rooms: Dict[str, Set[str]] = {}  # conn id -> rooms

    def join(self, conn_id: str, room: str) -> None:
        """Add a connection to a room. Joining twice is the same as once."""
        self._members.setdefault(room, set()).add(conn_id)
        self._rooms.setdefault(conn_id, set()).add(room)

    def leave(self, conn_id: str, room: str) -> None:
        """Remove a connection from a room. No-op for non-members."""
        members = self._members.get(room)
        if members is not None:
            members.discard(conn_id)
            if not members:
                del self._members[room]

        rooms = self._rooms.get(conn_id)
        if rooms is not None:
            rooms.discard(room)
            if not rooms:
                del self._rooms[conn_id]

    def release(self, conn_id: str) -> FrozenSet[str]:
        """Drop every membership of a connection; returns the rooms it left."""
        rooms = self._rooms.pop(conn_id, set())
        for room in rooms:
            members = self._members.get(room)
            if members is None:
                continue
            members.discard(conn_id)
            if not members:
                del self._members[room]
        return frozenset(rooms)

    def members_of(self, room: str) -> FrozenSet[str]:
        return frozenset(self._members.get(room, ()))

    def rooms_of(self, conn_id: str) -> FrozenSet[str]:
        return frozenset(self._rooms.get(conn_id, ()))

    def clear(self) -> None:
        self._members.clear()
        self._rooms.clear()

    @property
    def room_count(self) -> int:
        return len(self._members)
