"""
Connection Registry.

Owns every live connection's record: the transport-level liveness marker
set on connect, and the claimed identity stored on authenticate. Room
membership is kept in a RoomMembership instance the registry drives, so the
two can be queried separately (and may legitimately drift apart).

The registry is constructed at startup and closed with the server; it is
injected wherever it is needed rather than reached as a global.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Set

from statuspage.errors import UnknownConnectionError
from statuspage.models import ClaimedIdentity, ConnectionInfo, utc_timestamp
from statuspage.rooms import (
    ORG_PREFIX,
    TENANT_PREFIX,
    RoomMembership,
    make_room,
    org_room,
    tenant_room,
)

log = logging.getLogger(__name__)


class ConnectionRegistry:
    """
    Tracks live connections and their claimed identity.

    All methods are plain synchronous calls meant to be invoked from the
    event loop thread, which serializes them.
    """

    def __init__(self, rooms: Optional[RoomMembership] = None) -> None:
        self.rooms = rooms if rooms is not None else RoomMembership()
        self._live: Set[str] = set()
        self._clients: Dict[str, ConnectionInfo] = {}

    # ── Lifecycle ─────────────────────────────────────────

    def on_connect(self, conn_id: str) -> None:
        self._live.add(conn_id)
        log.info("Client connected: %s", conn_id)

    def on_authenticate(self, conn_id: str, identity: ClaimedIdentity) -> ConnectionInfo:
        """
        Create or overwrite the record for ``conn_id`` and join the rooms
        for the claimed organization and tenant.
        """
        self._require_live(conn_id)
        now = utc_timestamp()

        previous = self._clients.get(conn_id)
        info = ConnectionInfo(
            socket_id=conn_id,
            user_id=identity.user_id,
            organization_id=identity.organization_id,
            tenant_id=identity.tenant_id,
            user_role=identity.user_role,
            connected_at=previous.connected_at if previous else now,
            last_activity=now,
        )

        if identity.organization_id:
            self._switch_room(conn_id, ORG_PREFIX, identity.organization_id)
            log.info("Client %s joined organization: %s", conn_id, identity.organization_id)
        if identity.tenant_id:
            self._switch_room(conn_id, TENANT_PREFIX, identity.tenant_id)
            log.info("Client %s joined tenant: %s", conn_id, identity.tenant_id)

        self._clients[conn_id] = info
        return info

    def on_disconnect(self, conn_id: str, reason: str = "") -> None:
        """Remove everything known about ``conn_id``. Safe to call twice."""
        if conn_id not in self._live and conn_id not in self._clients:
            return
        self._live.discard(conn_id)
        self._clients.pop(conn_id, None)
        self.rooms.release(conn_id)
        log.info("Client disconnected: %s, reason: %s", conn_id, reason or "unknown")

    def close(self) -> None:
        """Tear down all state; called when the transport server stops."""
        count = len(self._live)
        self._live.clear()
        self._clients.clear()
        self.rooms.clear()
        log.info("Connection registry closed (%d live connection(s) dropped)", count)

    # ── Room changes without disconnect ───────────────────

    def join_organization(self, conn_id: str, organization_id: str) -> None:
        self._require_live(conn_id)
        self._switch_room(conn_id, ORG_PREFIX, organization_id)
        info = self._clients.get(conn_id)
        if info is not None:
            info.organization_id = organization_id
            info.last_activity = utc_timestamp()
        log.info("Client %s joined organization: %s", conn_id, organization_id)

    def leave_organization(self, conn_id: str, organization_id: str) -> None:
        self._require_live(conn_id)
        self.rooms.leave(conn_id, org_room(organization_id))
        info = self._clients.get(conn_id)
        if info is not None:
            if info.organization_id == organization_id:
                info.organization_id = None
            info.last_activity = utc_timestamp()
        log.info("Client %s left organization: %s", conn_id, organization_id)

    def touch(self, conn_id: str) -> None:
        info = self._clients.get(conn_id)
        if info is not None:
            info.last_activity = utc_timestamp()

    # ── Queries ───────────────────────────────────────────

    def is_live(self, conn_id: str) -> bool:
        return conn_id in self._live

    def get(self, conn_id: str) -> Optional[ConnectionInfo]:
        return self._clients.get(conn_id)

    def list_all(self) -> List[ConnectionInfo]:
        return list(self._clients.values())

    def live_ids(self) -> frozenset:
        return frozenset(self._live)

    def count_in_scope(
        self,
        organization_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> int:
        """
        Count connections. With a scope this is the size of the matching
        room, not the number of records that claim the scope.
        """
        if organization_id:
            return len(self.rooms.members_of(org_room(organization_id)))
        if tenant_id:
            return len(self.rooms.members_of(tenant_room(tenant_id)))
        return len(self._live)

    # ── Internals ─────────────────────────────────────────

    def _require_live(self, conn_id: str) -> None:
        if conn_id not in self._live:
            raise UnknownConnectionError(conn_id)

    def _switch_room(self, conn_id: str, namespace: str, scope_id: str) -> None:
        # One room per kind through the registry: last join wins
        target = make_room(namespace, scope_id)
        prefix = f"{namespace}:"
        for room in self.rooms.rooms_of(conn_id):
            if room.startswith(prefix) and room != target:
                self.rooms.leave(conn_id, room)
        self.rooms.join(conn_id, target)
