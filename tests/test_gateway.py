"""
Tests for the connection-level protocol handled by SocketGateway.
"""

import pytest


@pytest.fixture
def conn(gateway):
    gateway.connect("c1")
    return "c1"


class TestAuthenticate:
    def test_success(self, gateway, registry, transport, conn):
        gateway.handle(conn, "authenticate", {
            "userId": "u1",
            "organizationId": "acme",
            "tenantId": "t1",
            "userRole": "viewer",
        })
        event, data = transport.frames_for(conn)[-1]
        assert event == "authenticated"
        assert data["success"] is True
        assert data["clientId"] == conn
        assert registry.get(conn).organization_id == "acme"
        assert registry.rooms.rooms_of(conn) == {"org:acme", "tenant:t1"}

    def test_numeric_ids_are_stringified(self, gateway, registry, conn):
        gateway.handle(conn, "authenticate", {"userId": 7, "organizationId": 42})
        assert registry.get(conn).organization_id == "42"
        assert registry.count_in_scope(organization_id="42") == 1

    def test_bad_payload_keeps_connection(self, gateway, registry, transport, conn):
        gateway.handle(conn, "authenticate", ["not", "an", "object"])
        event, data = transport.frames_for(conn)[-1]
        assert event == "authentication-error"
        assert data["error"] == "Authentication failed"
        assert registry.is_live(conn)
        assert registry.get(conn) is None

    def test_failure_after_success_keeps_identity(self, gateway, registry, transport, conn):
        gateway.handle(conn, "authenticate", {"organizationId": "acme"})
        gateway.handle(conn, "authenticate", {"organizationId": {"nested": True}})
        assert transport.events_for(conn) == ["authenticated", "authentication-error"]
        assert registry.get(conn).organization_id == "acme"
        assert registry.count_in_scope(organization_id="acme") == 1
        assert registry.count_in_scope() == 1

    def test_missing_payload_is_a_failure(self, gateway, registry, transport, conn):
        gateway.handle(conn, "authenticate")
        assert transport.events_for(conn) == ["authentication-error"]
        assert registry.get(conn) is None

    def test_failure_keeps_joined_rooms(self, gateway, router, transport, conn):
        gateway.handle(conn, "join-organization", {"organizationId": "acme"})
        gateway.handle(conn, "authenticate", {"organizationId": {"bad": 1}})
        assert transport.events_for(conn)[-1] == "authentication-error"

        delivered = router.broadcast("service-update", {"id": "s1"}, organization_id="acme")
        assert delivered == 1
        assert transport.events_for(conn)[-1] == "service-update"


class TestOrganizationRooms:
    def test_join(self, gateway, registry, transport, conn):
        gateway.handle(conn, "join-organization", {"organizationId": "acme"})
        event, data = transport.frames_for(conn)[-1]
        assert event == "joined-organization"
        assert data["organizationId"] == "acme"
        assert registry.count_in_scope(organization_id="acme") == 1

    def test_leave(self, gateway, registry, transport, conn):
        gateway.handle(conn, "join-organization", {"organizationId": "acme"})
        gateway.handle(conn, "leave-organization", {"organizationId": "acme"})
        assert transport.events_for(conn)[-1] == "left-organization"
        assert registry.count_in_scope(organization_id="acme") == 0

    @pytest.mark.parametrize("event", ["join-organization", "leave-organization"])
    @pytest.mark.parametrize("payload", [None, {}, {"organizationId": ""}, "acme"])
    def test_missing_organization_id(self, gateway, registry, transport, conn, event, payload):
        gateway.handle(conn, event, payload)
        assert transport.frames_for(conn) == [
            ("error", {"message": "Organization ID is required"})
        ]
        assert registry.rooms.rooms_of(conn) == frozenset()

    def test_error_goes_to_sender_only(self, gateway, transport, conn):
        gateway.connect("c2")
        gateway.handle(conn, "join-organization", {})
        assert transport.frames_for("c2") == []


class TestPingAndUnknownEvents:
    def test_ping(self, gateway, transport, conn):
        gateway.handle(conn, "ping")
        event, data = transport.frames_for(conn)[-1]
        assert event == "pong"
        assert "timestamp" in data

    def test_unsupported_event(self, gateway, transport, conn):
        gateway.handle(conn, "shutdown", {})
        event, data = transport.frames_for(conn)[-1]
        assert event == "error"
        assert "shutdown" in data["message"]


class TestDisconnect:
    def test_releases_registry_and_transport(self, gateway, registry, transport, conn):
        gateway.handle(conn, "authenticate", {"organizationId": "acme"})
        gateway.disconnect(conn, "client disconnect")
        assert not registry.is_live(conn)
        assert not transport.is_open(conn)
        assert registry.count_in_scope(organization_id="acme") == 0
