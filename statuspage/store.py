"""
In-memory service and incident stores.

Each successful create/update/delete emits exactly one DomainEvent carrying
the post-mutation entity and the entity's own organization/tenant scope.
Deletions emit the last known state with ``deleted: true`` so subscribers
can reconcile without a follow-up fetch.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from statuspage.errors import NotFoundError, ValidationError
from statuspage.events import INCIDENT_UPDATE, SERVICE_UPDATE, DomainEvent, EventBus
from statuspage.models import (
    Incident,
    IncidentImpact,
    IncidentStatus,
    Service,
    ServiceStatus,
    new_id,
    utc_timestamp,
)

log = logging.getLogger(__name__)


def _service_status(value: Any) -> ServiceStatus:
    try:
        return ServiceStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in ServiceStatus)
        raise ValidationError(f"Invalid service status '{value}' (expected one of: {allowed})") from None


def _incident_status(value: Any) -> IncidentStatus:
    try:
        return IncidentStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in IncidentStatus)
        raise ValidationError(f"Invalid incident status '{value}' (expected one of: {allowed})") from None


def _uptime(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("Uptime must be a number")
    if not 0 <= value <= 100:
        raise ValidationError("Uptime must be between 0 and 100")
    return float(value)


def _name_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError("affectedServices must be a list of service names")
    return [str(v) for v in value]


class ServiceStore:
    """Services kept in a plain list, in creation order."""

    def __init__(self, bus: EventBus, services: Optional[Iterable[Service]] = None) -> None:
        self._bus = bus
        self._services: List[Service] = list(services or [])

    def list(self) -> List[Service]:
        return list(self._services)

    def get(self, service_id: str) -> Service:
        for service in self._services:
            if service.id == service_id:
                return service
        raise NotFoundError("Service not found")

    def load(self, services: Iterable[Service]) -> None:
        """Bulk insert without emitting events (seeding)."""
        self._services.extend(services)

    def create(
        self,
        name: Optional[str],
        description: Optional[str],
        status: Any = ServiceStatus.OPERATIONAL,
        organization_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> Service:
        if not name or not description:
            raise ValidationError("Name and description are required")

        service = Service(
            id=new_id(),
            name=name,
            description=description,
            status=_service_status(status or ServiceStatus.OPERATIONAL),
            uptime=100.0,
            organization_id=organization_id or None,
            tenant_id=tenant_id or None,
        )
        self._services.append(service)
        log.info("Service created: %s (%s)", service.name, service.id)
        self._emit(service.to_dict(), service)
        return service

    def update(self, service_id: str, **changes: Any) -> Service:
        """
        Apply partial changes. Absent or empty fields are left untouched;
        ``uptime`` may legitimately be 0.
        """
        service = self.get(service_id)

        # Validate everything before touching the record
        status = _service_status(changes["status"]) if changes.get("status") else None
        uptime = _uptime(changes["uptime"]) if changes.get("uptime") is not None else None

        if changes.get("name"):
            service.name = changes["name"]
        if changes.get("description"):
            service.description = changes["description"]
        if status is not None:
            service.status = status
        if uptime is not None:
            service.uptime = uptime
        if changes.get("organization_id"):
            service.organization_id = changes["organization_id"]
        if changes.get("tenant_id"):
            service.tenant_id = changes["tenant_id"]
        service.last_updated = utc_timestamp()

        self._emit(service.to_dict(), service)
        return service

    def delete(self, service_id: str) -> Service:
        service = self.get(service_id)
        self._services.remove(service)
        log.info("Service deleted: %s (%s)", service.name, service.id)
        self._emit({**service.to_dict(), "deleted": True}, service)
        return service

    def _emit(self, payload, service: Service) -> None:
        self._bus.emit(
            DomainEvent(
                kind=SERVICE_UPDATE,
                payload=payload,
                organization_id=service.organization_id,
                tenant_id=service.tenant_id,
            )
        )


class IncidentStore:
    """Incidents kept in a plain list, in creation order."""

    def __init__(self, bus: EventBus, incidents: Optional[Iterable[Incident]] = None) -> None:
        self._bus = bus
        self._incidents: List[Incident] = list(incidents or [])

    def list(self) -> List[Incident]:
        return list(self._incidents)

    def get(self, incident_id: str) -> Incident:
        for incident in self._incidents:
            if incident.id == incident_id:
                return incident
        raise NotFoundError("Incident not found")

    def load(self, incidents: Iterable[Incident]) -> None:
        """Bulk insert without emitting events (seeding)."""
        self._incidents.extend(incidents)

    def create(
        self,
        title: Optional[str],
        description: Optional[str],
        impact: Optional[str] = IncidentImpact.MINOR.value,
        affected_services: Optional[Iterable[str]] = None,
        organization_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
    ) -> Incident:
        if not title or not description:
            raise ValidationError("Title and description are required")

        incident = Incident(
            id=new_id(),
            title=title,
            description=description,
            status=IncidentStatus.INVESTIGATING,
            impact=str(impact or IncidentImpact.MINOR.value),
            affected_services=_name_list(affected_services or []),
            organization_id=organization_id or None,
            tenant_id=tenant_id or None,
        )
        self._incidents.append(incident)
        log.info("Incident created: %s (%s)", incident.title, incident.id)
        self._emit(incident.to_dict(), incident)
        return incident

    def update(self, incident_id: str, **changes: Any) -> Incident:
        """
        Apply partial changes. A status change is recorded as a new
        timeline entry so the top-level status keeps mirroring the latest
        update.
        """
        incident = self.get(incident_id)

        status = _incident_status(changes["status"]) if changes.get("status") else None
        affected = None
        if changes.get("affected_services") is not None:
            affected = _name_list(changes["affected_services"])

        if changes.get("title"):
            incident.title = changes["title"]
        if changes.get("description"):
            incident.description = changes["description"]
        if changes.get("impact"):
            incident.impact = str(changes["impact"])
        if affected is not None:
            incident.affected_services = affected
        if changes.get("organization_id"):
            incident.organization_id = changes["organization_id"]
        if changes.get("tenant_id"):
            incident.tenant_id = changes["tenant_id"]
        if status is not None and status is not incident.status:
            incident.append_update(status, f"Status changed to {status.value}")
        incident.updated_at = utc_timestamp()

        self._emit(incident.to_dict(), incident)
        return incident

    def add_update(self, incident_id: str, status: Any, message: Optional[str]):
        """Append a timeline entry; returns the new IncidentUpdate."""
        incident = self.get(incident_id)
        if not status or not message:
            raise ValidationError("Status and message are required")

        entry = incident.append_update(_incident_status(status), message)
        log.info("Incident %s moved to %s", incident.id, entry.status.value)
        self._emit(incident.to_dict(), incident)
        return entry

    def delete(self, incident_id: str) -> Incident:
        incident = self.get(incident_id)
        self._incidents.remove(incident)
        log.info("Incident deleted: %s (%s)", incident.title, incident.id)
        self._emit({**incident.to_dict(), "deleted": True}, incident)
        return incident

    def _emit(self, payload, incident: Incident) -> None:
        self._bus.emit(
            DomainEvent(
                kind=INCIDENT_UPDATE,
                payload=payload,
                organization_id=incident.organization_id,
                tenant_id=incident.tenant_id,
            )
        )
