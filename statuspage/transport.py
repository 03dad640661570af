"""
Outbound transport.

The router and gateway only ever call ``send()``, which never awaits: each
emit is handed to the Socket.IO server as a background task, so a
broadcast never waits on a slow client.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Set

import socketio

from statuspage.errors import DeliveryError

log = logging.getLogger(__name__)


class Transport(ABC):
    """Delivers named events to individual connections."""

    @abstractmethod
    def send(self, conn_id: str, event: str, data: Any) -> None:
        """Hand ``data`` to the connection as ``event``.

        Must not block. Raises DeliveryError if the connection is gone.
        """


class SocketIOTransport(Transport):
    """Transport backed by a python-socketio ``AsyncServer``."""

    def __init__(self, sio: socketio.AsyncServer) -> None:
        self.sio = sio
        self._open: Set[str] = set()
        self._pending: Set[asyncio.Future] = set()

    def open(self, conn_id: str) -> None:
        self._open.add(conn_id)

    def close(self, conn_id: str) -> None:
        self._open.discard(conn_id)

    def is_open(self, conn_id: str) -> bool:
        return conn_id in self._open

    def send(self, conn_id: str, event: str, data: Any) -> None:
        if conn_id not in self._open:
            raise DeliveryError(conn_id, "not connected")
        task = self.sio.start_background_task(self.sio.emit, event, data, to=conn_id)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._finished(conn_id, event, t))

    async def flush(self) -> None:
        """Wait for every scheduled emit to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _finished(self, conn_id: str, event: str, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.warning("Emit of %s to %s failed: %s", event, conn_id, exc)
