"""
Domain event bus.

The stores emit a DomainEvent after every committed mutation; the broadcast
router subscribes to it. Fan-out is synchronous so the broadcast happens
immediately after the mutation, and a failing subscriber never unwinds the
mutation that emitted the event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

log = logging.getLogger(__name__)

SERVICE_UPDATE = "service-update"
INCIDENT_UPDATE = "incident-update"
STATUS_UPDATE = "status-update"


@dataclass(frozen=True)
class DomainEvent:
    """
    A change that subscribers should hear about.

    Fields:
        kind:            Broadcast event name (``service-update`` ...).
        payload:         Wire form of the post-mutation entity.
        organization_id: The entity's own organization scope.
        tenant_id:       The entity's own tenant scope.
    """

    kind: str
    payload: Dict[str, Any]
    organization_id: Optional[str] = None
    tenant_id: Optional[str] = None


Handler = Callable[[DomainEvent], Any]


class EventBus:
    """Synchronous publish/subscribe channel for DomainEvents."""

    def __init__(self) -> None:
        self._subscribers: List[Handler] = []

    def subscribe(self, handler: Handler) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: Handler) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def emit(self, event: DomainEvent) -> None:
        """Deliver ``event`` to every subscriber, in subscription order."""
        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception:
                log.exception("Subscriber %r failed handling %s", handler, event.kind)
