"""
Status Aggregator.

Turns the current service and incident collections into a single
StatusSnapshot. Pure function: no I/O, no caching, safe to call per request.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional

from statuspage.models import (
    OVERALL_DEGRADED,
    OVERALL_MAJOR,
    OVERALL_OPERATIONAL,
    Incident,
    Service,
    ServiceStatus,
    StatusSnapshot,
    utc_timestamp,
)

_DOWN_STATUSES = frozenset({ServiceStatus.MAJOR, ServiceStatus.PARTIAL})


def _in_scope(record, organization_id: Optional[str], tenant_id: Optional[str]) -> bool:
    # Organization filter wins when both are supplied
    if organization_id:
        return record.organization_id == organization_id
    if tenant_id:
        return record.tenant_id == tenant_id
    return True


def compute_status(
    services: Iterable[Service],
    incidents: Iterable[Incident],
    organization_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
) -> StatusSnapshot:
    """
    Compute the overall health summary for an optional scope.

    Overall status is decided in strict order: any major/partial service
    makes it ``major``; otherwise a degraded service or an unresolved
    incident makes it ``degraded``; otherwise ``operational``.
    """
    scoped_services: List[Service] = [
        s for s in services if _in_scope(s, organization_id, tenant_id)
    ]
    scoped_incidents: List[Incident] = [
        i for i in incidents if _in_scope(i, organization_id, tenant_id)
    ]

    total = len(scoped_services)
    operational = sum(1 for s in scoped_services if s.status is ServiceStatus.OPERATIONAL)
    degraded = sum(1 for s in scoped_services if s.status is ServiceStatus.DEGRADED)
    down = sum(1 for s in scoped_services if s.status in _DOWN_STATUSES)
    active = sum(1 for i in scoped_incidents if i.is_active)

    if total:
        mean = sum(s.uptime for s in scoped_services) / total
        # Two decimals, exact halves round up
        average_uptime = math.floor(mean * 100 + 0.5) / 100
    else:
        # Nothing to report counts as fully healthy
        average_uptime = 100

    if down > 0:
        overall = OVERALL_MAJOR
    elif degraded > 0 or active > 0:
        overall = OVERALL_DEGRADED
    else:
        overall = OVERALL_OPERATIONAL

    return StatusSnapshot(
        overall_status=overall,
        total_services=total,
        operational_services=operational,
        degraded_services=degraded,
        down_services=down,
        active_incidents=active,
        average_uptime=average_uptime,
        last_updated=utc_timestamp(),
        organization_id=organization_id,
        tenant_id=tenant_id,
    )
