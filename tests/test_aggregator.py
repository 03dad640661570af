"""
Tests for the status aggregator.

Covers the overall-status ordering, scope filtering precedence and the
uptime averaging rules.
"""

from statuspage.aggregator import compute_status
from statuspage.models import Incident, IncidentStatus, Service, ServiceStatus


def _service(status="operational", uptime=100.0, org=None, tenant=None, name="svc"):
    return Service(
        id=name,
        name=name,
        description="",
        status=ServiceStatus(status),
        uptime=uptime,
        organization_id=org,
        tenant_id=tenant,
    )


def _incident(status="investigating", org=None, tenant=None):
    return Incident(
        id="inc",
        title="t",
        description="d",
        status=IncidentStatus(status),
        organization_id=org,
        tenant_id=tenant,
    )


# ─── Tests ────────────────────────────────────────────────────


class TestOverallStatus:
    def test_degraded_example(self):
        snapshot = compute_status(
            [_service("operational", 100), _service("degraded", 90)],
            [],
        )
        assert snapshot.overall_status == "degraded"
        assert snapshot.total_services == 2
        assert snapshot.operational_services == 1
        assert snapshot.degraded_services == 1
        assert snapshot.down_services == 0
        assert snapshot.active_incidents == 0
        assert snapshot.average_uptime == 95

    def test_major_outranks_resolved_incident(self):
        snapshot = compute_status([_service("major", 0)], [_incident("resolved")])
        assert snapshot.overall_status == "major"
        assert snapshot.active_incidents == 0

    def test_one_down_among_many_operational(self):
        fleet = [_service("operational", name=f"s{i}") for i in range(20)]
        fleet.append(_service("partial", 50, name="broken"))
        snapshot = compute_status(fleet, [])
        assert snapshot.overall_status == "major"
        assert snapshot.down_services == 1

    def test_down_outranks_degraded_and_incidents(self):
        snapshot = compute_status(
            [_service("degraded"), _service("degraded"), _service("major")],
            [_incident("investigating"), _incident("monitoring")],
        )
        assert snapshot.overall_status == "major"

    def test_active_incident_degrades_healthy_fleet(self):
        snapshot = compute_status([_service("operational")], [_incident("identified")])
        assert snapshot.overall_status == "degraded"
        assert snapshot.active_incidents == 1

    def test_all_operational(self):
        snapshot = compute_status([_service(), _service()], [_incident("resolved")])
        assert snapshot.overall_status == "operational"


class TestUptime:
    def test_no_services_is_fully_healthy(self):
        snapshot = compute_status([], [])
        assert snapshot.average_uptime == 100
        assert snapshot.overall_status == "operational"
        assert snapshot.total_services == 0

    def test_rounded_to_two_places(self):
        snapshot = compute_status(
            [_service(uptime=99.98), _service(uptime=99.95), _service(uptime=98.5)],
            [],
        )
        assert snapshot.average_uptime == 99.48

    def test_exact_half_rounds_up(self):
        snapshot = compute_status([_service(uptime=99.25), _service(uptime=99.0)], [])
        assert snapshot.average_uptime == 99.13


class TestScopeFiltering:
    def test_organization_filter(self):
        services = [_service(org="acme"), _service("major", org="globex")]
        snapshot = compute_status(services, [], organization_id="acme")
        assert snapshot.total_services == 1
        assert snapshot.overall_status == "operational"
        assert snapshot.organization_id == "acme"

    def test_tenant_filter(self):
        services = [_service(tenant="t1"), _service("degraded", tenant="t2")]
        incidents = [_incident(tenant="t2")]
        snapshot = compute_status(services, incidents, tenant_id="t2")
        assert snapshot.total_services == 1
        assert snapshot.active_incidents == 1
        assert snapshot.tenant_id == "t2"

    def test_organization_takes_precedence_over_tenant(self):
        services = [
            _service(org="acme", tenant="other"),
            _service("major", org="globex", tenant="t1"),
        ]
        snapshot = compute_status(services, [], organization_id="acme", tenant_id="t1")
        assert snapshot.total_services == 1
        assert snapshot.overall_status == "operational"

    def test_unscoped_equals_scope_matching_every_record(self):
        services = [_service("degraded", 80, org="acme"), _service(uptime=99, org="acme")]
        incidents = [_incident(org="acme")]
        unscoped = compute_status(services, incidents).to_dict()
        scoped = compute_status(services, incidents, organization_id="acme").to_dict()
        for key in ("lastUpdated", "organizationId", "tenantId"):
            unscoped.pop(key)
            scoped.pop(key)
        assert unscoped == scoped

    def test_unknown_scope_is_empty(self):
        snapshot = compute_status([_service(org="acme")], [], organization_id="nobody")
        assert snapshot.total_services == 0
        assert snapshot.average_uptime == 100


class TestSnapshotShape:
    def test_to_dict_keys(self):
        data = compute_status([_service()], []).to_dict()
        assert set(data) == {
            "overallStatus",
            "totalServices",
            "operationalServices",
            "degradedServices",
            "downServices",
            "activeIncidents",
            "averageUptime",
            "lastUpdated",
            "organizationId",
            "tenantId",
        }
        assert data["lastUpdated"].endswith("Z")
