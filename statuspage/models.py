"""
Data models for the status page backend.

Defines structured representations for services, incidents, the derived
status snapshot, live connections and server settings. Every model that
goes over the wire exposes ``to_dict()`` producing the camelCase shape
clients consume.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from statuspage.errors import ValidationError


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with milliseconds, e.g. ``2026-01-01T12:00:00.000Z``."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utc_timestamp() -> str:
    return format_timestamp(datetime.now(timezone.utc))


def new_id() -> str:
    return str(uuid.uuid4())


class ServiceStatus(str, Enum):
    """Health of a single monitored service."""

    OPERATIONAL = "operational"
    DEGRADED = "degraded"
    PARTIAL = "partial"
    MAJOR = "major"


class IncidentStatus(str, Enum):
    """Lifecycle status of an incident."""

    INVESTIGATING = "investigating"
    IDENTIFIED = "identified"
    MONITORING = "monitoring"
    RESOLVED = "resolved"


class IncidentImpact(str, Enum):
    """Known impact levels. Other values are stored verbatim."""

    MINOR = "minor"
    MAJOR = "major"
    CRITICAL = "critical"


# Overall health buckets reported by the aggregator
OVERALL_OPERATIONAL = "operational"
OVERALL_DEGRADED = "degraded"
OVERALL_MAJOR = "major"


@dataclass
class Service:
    """
    A monitored service.

    Attributes:
        id: Unique identifier.
        name: Display name, also used in ``Incident.affected_services``.
        description: Short human-readable description.
        status: Current health.
        uptime: Percentage between 0 and 100.
        organization_id: Owning organization, if scoped.
        tenant_id: Owning tenant, if scoped.
        last_updated: Refreshed on every mutation.
    """

    id: str
    name: str
    description: str
    status: ServiceStatus = ServiceStatus.OPERATIONAL
    uptime: float = 100.0
    organization_id: Optional[str] = None
    tenant_id: Optional[str] = None
    last_updated: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "uptime": self.uptime,
            "organizationId": self.organization_id,
            "tenantId": self.tenant_id,
            "lastUpdated": self.last_updated,
        }


@dataclass(frozen=True)
class IncidentUpdate:
    """One timeline entry of an incident. Never edited once appended."""

    id: str
    status: IncidentStatus
    message: str
    created_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "message": self.message,
            "createdAt": self.created_at,
        }


@dataclass
class Incident:
    """
    An incident affecting one or more services.

    ``updates`` is append-only; ``status`` mirrors the latest entry and is
    only changed through ``append_update()``.
    """

    id: str
    title: str
    description: str
    status: IncidentStatus = IncidentStatus.INVESTIGATING
    impact: str = IncidentImpact.MINOR.value
    affected_services: List[str] = field(default_factory=list)
    organization_id: Optional[str] = None
    tenant_id: Optional[str] = None
    created_at: str = field(default_factory=utc_timestamp)
    updated_at: str = field(default_factory=utc_timestamp)
    updates: List[IncidentUpdate] = field(default_factory=list)

    def append_update(self, status: IncidentStatus, message: str) -> IncidentUpdate:
        entry = IncidentUpdate(id=new_id(), status=status, message=message)
        self.updates.append(entry)
        self.status = status
        self.updated_at = entry.created_at
        return entry

    @property
    def is_active(self) -> bool:
        return self.status is not IncidentStatus.RESOLVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "impact": self.impact,
            "affectedServices": list(self.affected_services),
            "organizationId": self.organization_id,
            "tenantId": self.tenant_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "updates": [u.to_dict() for u in self.updates],
        }


@dataclass(frozen=True)
class StatusSnapshot:
    """Aggregate health summary. Derived on demand, never stored."""

    overall_status: str
    total_services: int
    operational_services: int
    degraded_services: int
    down_services: int
    active_incidents: int
    average_uptime: float
    last_updated: str
    organization_id: Optional[str] = None
    tenant_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallStatus": self.overall_status,
            "totalServices": self.total_services,
            "operationalServices": self.operational_services,
            "degradedServices": self.degraded_services,
            "downServices": self.down_services,
            "activeIncidents": self.active_incidents,
            "averageUptime": self.average_uptime,
            "lastUpdated": self.last_updated,
            "organizationId": self.organization_id,
            "tenantId": self.tenant_id,
        }


def _scalar(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None or value == "":
        return None
    if isinstance(value, (dict, list, tuple, set)):
        raise ValidationError(f"{key} must be a scalar value")
    return str(value)


@dataclass(frozen=True)
class ClaimedIdentity:
    """Identity a client claims when authenticating. Taken at face value."""

    user_id: Optional[str] = None
    organization_id: Optional[str] = None
    tenant_id: Optional[str] = None
    user_role: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ClaimedIdentity":
        if payload is None:
            raise ValidationError("Authentication payload is required")
        if not isinstance(payload, Mapping):
            raise ValidationError("Authentication payload must be an object")
        return cls(
            user_id=_scalar(payload, "userId"),
            organization_id=_scalar(payload, "organizationId"),
            tenant_id=_scalar(payload, "tenantId"),
            user_role=_scalar(payload, "userRole"),
        )


@dataclass
class ConnectionInfo:
    """Registry record for an authenticated live connection."""

    socket_id: str
    user_id: Optional[str] = None
    organization_id: Optional[str] = None
    tenant_id: Optional[str] = None
    user_role: Optional[str] = None
    connected_at: str = field(default_factory=utc_timestamp)
    last_activity: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "socketId": self.socket_id,
            "userId": self.user_id,
            "organizationId": self.organization_id,
            "tenantId": self.tenant_id,
            "userRole": self.user_role,
            "connectedAt": self.connected_at,
            "lastActivity": self.last_activity,
        }


@dataclass
class ServerSettings:
    """Global server settings."""

    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    heartbeat: float = 25.0  # seconds between Socket.IO pings
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    seed_demo_data: bool = True
