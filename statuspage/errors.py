"""Exception hierarchy shared by the stores, router and HTTP layer."""

from __future__ import annotations

from typing import Optional


class StatusPageError(Exception):
    """Base exception for the status page backend."""

    http_status = 500

    def __init__(self, message: Optional[str] = "Status page error") -> None:
        self.message = message
        super().__init__(self.message)


class ValidationError(StatusPageError):
    """Raised when a request or payload is missing required fields."""

    http_status = 400

    def __init__(self, message: Optional[str] = "Invalid request") -> None:
        super().__init__(message)


class NotFoundError(StatusPageError):
    """Raised when a service or incident does not exist."""

    http_status = 404

    def __init__(self, message: Optional[str] = "Object not found") -> None:
        super().__init__(message)


class UnknownEventKindError(ValidationError):
    """Raised by the manual broadcast entry point for an unsupported type."""

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__("Invalid broadcast type")


class UnknownConnectionError(StatusPageError):
    """Raised when a connection id was never registered (or already left)."""

    def __init__(self, conn_id: str) -> None:
        self.conn_id = conn_id
        super().__init__(f"Unknown connection: {conn_id}")


class DeliveryError(StatusPageError):
    """A payload could not be handed to a connection's transport."""

    def __init__(self, conn_id: str, reason: str) -> None:
        self.conn_id = conn_id
        self.reason = reason
        super().__init__(f"Delivery to {conn_id} failed: {reason}")
