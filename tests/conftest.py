"""Shared fixtures: an in-memory transport and a wired-up core."""

from typing import Any, Dict, List, Set, Tuple

import pytest

from statuspage.errors import DeliveryError
from statuspage.events import EventBus
from statuspage.gateway import SocketGateway
from statuspage.registry import ConnectionRegistry
from statuspage.router import BroadcastRouter
from statuspage.store import IncidentStore, ServiceStore


class RecordingTransport:
    """Transport stand-in that records frames per connection."""

    def __init__(self) -> None:
        self.open_ids: Set[str] = set()
        self.sent: List[Tuple[str, str, Any]] = []
        self.failing: Set[str] = set()

    def open(self, conn_id: str) -> None:
        self.open_ids.add(conn_id)

    def close(self, conn_id: str) -> None:
        self.open_ids.discard(conn_id)

    def is_open(self, conn_id: str) -> bool:
        return conn_id in self.open_ids

    def send(self, conn_id: str, event: str, data: Any) -> None:
        if conn_id in self.failing or conn_id not in self.open_ids:
            raise DeliveryError(conn_id, "not connected")
        self.sent.append((conn_id, event, data))

    def frames_for(self, conn_id: str) -> List[Tuple[str, Any]]:
        return [(event, data) for cid, event, data in self.sent if cid == conn_id]

    def events_for(self, conn_id: str) -> List[str]:
        return [event for event, _ in self.frames_for(conn_id)]

    def recipients(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for cid, _, _ in self.sent:
            counts[cid] = counts.get(cid, 0) + 1
        return counts


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def registry():
    return ConnectionRegistry()


@pytest.fixture
def router(registry, transport):
    return BroadcastRouter(registry, transport)


@pytest.fixture
def gateway(registry, transport):
    return SocketGateway(registry, transport)


@pytest.fixture
def bus(router):
    bus = EventBus()
    bus.subscribe(router.handle_event)
    return bus


@pytest.fixture
def services(bus):
    return ServiceStore(bus)


@pytest.fixture
def incidents(bus):
    return IncidentStore(bus)
