"""
Socket.IO gateway — the connection-level protocol.

Inbound:   authenticate, join-organization, leave-organization, ping
Outbound:  authenticated, authentication-error, joined-organization,
           left-organization, pong, error

Every fault here is scoped to the connection that caused it: the offending
client gets an ``error`` (or ``authentication-error``) event and nothing
else changes.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping, Optional

import socketio

from statuspage.errors import DeliveryError
from statuspage.models import ClaimedIdentity, utc_timestamp
from statuspage.registry import ConnectionRegistry
from statuspage.transport import Transport

log = logging.getLogger(__name__)

SUPPORTED_EVENTS = [
    "authenticate",
    "join-organization",
    "leave-organization",
    "ping",
    "service-update",
    "incident-update",
    "status-update",
]


class SocketGateway:
    """
    Handles inbound connection events and replies to the sender.

    Attributes:
        registry: Connection registry shared with the broadcast router.
        transport: Outbound transport used for replies.
    """

    def __init__(self, registry: ConnectionRegistry, transport: Transport) -> None:
        self.registry = registry
        self.transport = transport
        self._sio: Optional[socketio.AsyncServer] = None
        self._handlers: Dict[str, Callable[[str, Any], None]] = {
            "authenticate": self.on_authenticate,
            "join-organization": self.on_join_organization,
            "leave-organization": self.on_leave_organization,
            "ping": self.on_ping,
        }

    # ── Connection lifecycle ──────────────────────────────

    def connect(self, conn_id: str) -> None:
        self.transport.open(conn_id)
        self.registry.on_connect(conn_id)

    def disconnect(self, conn_id: str, reason: str = "") -> None:
        self.registry.on_disconnect(conn_id, reason)
        self.transport.close(conn_id)

    # ── Inbound dispatch ──────────────────────────────────

    def handle(self, conn_id: str, event: str, data: Any = None) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            self._reply(conn_id, "error", {"message": f"Unsupported event: {event}"})
            return
        handler(conn_id, data)

    # ── Handlers ──────────────────────────────────────────

    def on_authenticate(self, conn_id: str, data: Any) -> None:
        try:
            identity = ClaimedIdentity.from_payload(data)
            self.registry.on_authenticate(conn_id, identity)
        except Exception:
            log.exception("Authentication error for %s", conn_id)
            # Registry untouched: earlier identity and rooms still hold
            self._reply(
                conn_id,
                "authentication-error",
                {"error": "Authentication failed", "timestamp": utc_timestamp()},
            )
            return

        self._reply(
            conn_id,
            "authenticated",
            {"success": True, "clientId": conn_id, "timestamp": utc_timestamp()},
        )

    def on_join_organization(self, conn_id: str, data: Any) -> None:
        organization_id = _organization_id(data)
        if not organization_id:
            self._reply(conn_id, "error", {"message": "Organization ID is required"})
            return
        try:
            self.registry.join_organization(conn_id, organization_id)
        except Exception:
            log.exception("Join organization error for %s", conn_id)
            self._reply(conn_id, "error", {"message": "Failed to join organization"})
            return
        self._reply(
            conn_id,
            "joined-organization",
            {"organizationId": organization_id, "timestamp": utc_timestamp()},
        )

    def on_leave_organization(self, conn_id: str, data: Any) -> None:
        organization_id = _organization_id(data)
        if not organization_id:
            self._reply(conn_id, "error", {"message": "Organization ID is required"})
            return
        try:
            self.registry.leave_organization(conn_id, organization_id)
        except Exception:
            log.exception("Leave organization error for %s", conn_id)
            self._reply(conn_id, "error", {"message": "Failed to leave organization"})
            return
        self._reply(
            conn_id,
            "left-organization",
            {"organizationId": organization_id, "timestamp": utc_timestamp()},
        )

    def on_ping(self, conn_id: str, data: Any = None) -> None:
        self.registry.touch(conn_id)
        self._reply(conn_id, "pong", {"timestamp": utc_timestamp()})

    # ── Socket.IO wiring ──────────────────────────────────

    def attach(self, sio: socketio.AsyncServer) -> None:
        """Register the protocol handlers on a Socket.IO server."""
        self._sio = sio
        sio.on("connect", self._sio_connect)
        sio.on("disconnect", self._sio_disconnect)
        for event in self._handlers:
            sio.on(event, self._listener(event))
        sio.on("*", self._sio_unsupported)

    def _listener(self, event: str):
        async def listener(sid: str, data: Any = None) -> None:
            self.handle(sid, event, data)

        return listener

    async def _sio_connect(self, sid: str, environ: Dict[str, Any], auth: Any = None) -> None:
        self.connect(sid)

    async def _sio_disconnect(self, sid: str, reason: Any = None) -> None:
        self.disconnect(sid, str(reason) if reason else "client disconnect")

    async def _sio_unsupported(self, event: str, sid: str, *args: Any) -> None:
        self.handle(sid, event, args[0] if args else None)

    async def close_all(self) -> None:
        """Disconnect every live client; used on server shutdown."""
        if self._sio is None:
            return
        for conn_id in self.registry.live_ids():
            await self._sio.disconnect(conn_id)

    # ── Internals ─────────────────────────────────────────

    def _reply(self, conn_id: str, event: str, data: Dict[str, Any]) -> None:
        try:
            self.transport.send(conn_id, event, data)
        except DeliveryError as exc:
            log.warning("Could not reply %s to %s: %s", event, conn_id, exc.reason)


def _organization_id(data: Any) -> Optional[str]:
    if not isinstance(data, Mapping):
        return None
    value = data.get("organizationId")
    if value is None or value == "" or isinstance(value, (dict, list)):
        return None
    return str(value)
