"""Demo fleet loaded at startup when ``seed_demo_data`` is enabled."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Tuple

from statuspage.models import (
    Incident,
    IncidentImpact,
    IncidentStatus,
    IncidentUpdate,
    Service,
    ServiceStatus,
    format_timestamp,
    new_id,
    utc_timestamp,
)

_DEMO_SERVICES = [
    ("API Gateway", "Core API services and routing", ServiceStatus.OPERATIONAL, 99.98),
    ("Database Cluster", "Primary database and replicas", ServiceStatus.OPERATIONAL, 99.95),
    ("Authentication Service", "User authentication and authorization", ServiceStatus.OPERATIONAL, 99.99),
    ("File Storage", "Document and media storage", ServiceStatus.DEGRADED, 98.5),
    ("Email Service", "Transactional email delivery", ServiceStatus.OPERATIONAL, 99.92),
    ("CDN", "Content delivery network", ServiceStatus.OPERATIONAL, 99.97),
]


def _ago(**delta) -> str:
    return format_timestamp(datetime.now(timezone.utc) - timedelta(**delta))


def demo_data() -> Tuple[List[Service], List[Incident]]:
    services = [
        Service(id=new_id(), name=name, description=desc, status=status, uptime=uptime)
        for name, desc, status, uptime in _DEMO_SERVICES
    ]

    opened = _ago(hours=2)
    updates = [
        IncidentUpdate(
            id=new_id(),
            status=IncidentStatus.INVESTIGATING,
            message="We are investigating reports of slow file upload speeds.",
            created_at=opened,
        ),
        IncidentUpdate(
            id=new_id(),
            status=IncidentStatus.IDENTIFIED,
            message="We have identified the issue as a network bottleneck and are working on a fix.",
            created_at=_ago(minutes=30),
        ),
    ]
    incident = Incident(
        id=new_id(),
        title="File Storage Performance Issues",
        description="Users experiencing slow upload speeds",
        status=updates[-1].status,
        impact=IncidentImpact.MINOR.value,
        affected_services=["File Storage"],
        created_at=opened,
        updated_at=utc_timestamp(),
        updates=updates,
    )
    return services, [incident]
