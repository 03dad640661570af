"""
Broadcast Router.

Given an event kind, a payload and an optional scope, delivers the
``{type, data, timestamp}`` envelope to exactly the right live connections:

    organizationId given  -> members of ``org:<id>``
    else tenantId given   -> members of ``tenant:<id>``
    else                  -> every live connection

Delivery is best-effort. A recipient that cannot be reached is logged and
skipped; the caller never sees the failure.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, FrozenSet, Optional, Tuple, Union

from statuspage.errors import UnknownEventKindError
from statuspage.events import INCIDENT_UPDATE, SERVICE_UPDATE, STATUS_UPDATE, DomainEvent
from statuspage.models import utc_timestamp
from statuspage.registry import ConnectionRegistry
from statuspage.rooms import org_room, tenant_room
from statuspage.transport import Transport

log = logging.getLogger(__name__)


class EventKind(str, Enum):
    SERVICE_UPDATE = SERVICE_UPDATE
    INCIDENT_UPDATE = INCIDENT_UPDATE
    STATUS_UPDATE = STATUS_UPDATE


class BroadcastRouter:
    """Resolves broadcast targets and hands envelopes to the transport."""

    def __init__(self, registry: ConnectionRegistry, transport: Transport) -> None:
        self._registry = registry
        self._transport = transport

    def broadcast(
        self,
        kind: Union[EventKind, str],
        payload: Any,
        organization_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> int:
        """
        Deliver ``payload`` to the connections in scope.

        Returns the number of connections the envelope was handed to.
        """
        kind = EventKind(kind)
        envelope = {
            "type": kind.value,
            "data": payload,
            # One timestamp per logical event, shared by all recipients
            "timestamp": utc_timestamp(),
        }
        scope, targets = self._resolve(organization_id, tenant_id)

        delivered = 0
        for conn_id in targets:
            try:
                self._transport.send(conn_id, kind.value, envelope)
            except Exception as exc:
                log.warning("Failed to deliver %s to %s: %s", kind.value, conn_id, exc)
                continue
            delivered += 1

        log.info(
            "%s broadcasted to %s (%d/%d recipient(s))",
            kind.value,
            scope,
            delivered,
            len(targets),
        )
        return delivered

    def dispatch(
        self,
        type_name: Any,
        payload: Any,
        organization_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> int:
        """Manual broadcast entry point; validates the kind then broadcasts."""
        try:
            kind = EventKind(type_name)
        except ValueError:
            raise UnknownEventKindError(type_name) from None
        return self.broadcast(kind, payload, organization_id, tenant_id)

    def handle_event(self, event: DomainEvent) -> None:
        """EventBus subscriber."""
        self.broadcast(event.kind, event.payload, event.organization_id, event.tenant_id)

    def _resolve(
        self,
        organization_id: Optional[str],
        tenant_id: Optional[str],
    ) -> Tuple[str, FrozenSet[str]]:
        # Exactly one branch per call
        if organization_id:
            room = org_room(organization_id)
            return f"organization {organization_id}", self._registry.rooms.members_of(room)
        if tenant_id:
            room = tenant_room(tenant_id)
            return f"tenant {tenant_id}", self._registry.rooms.members_of(room)
        return "all clients", self._registry.live_ids()
