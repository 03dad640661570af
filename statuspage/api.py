"""
HTTP API — aiohttp application wiring.

Builds the component graph (registry, transport, router, event bus, stores,
gateway) once per application and exposes:

    /api/services, /api/incidents      CRUD, each mutation broadcast live
    /api/status                        aggregated health, optional scope
    /api/websocket/info                connection introspection
    /api/websocket/broadcast           manual broadcast (operational testing)
    /health, /api/health               liveness
    /socket.io/                        Socket.IO endpoint
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import socketio
from aiohttp import web

from statuspage.aggregator import compute_status
from statuspage.errors import StatusPageError, ValidationError
from statuspage.events import EventBus
from statuspage.gateway import SUPPORTED_EVENTS, SocketGateway
from statuspage.models import ServerSettings, utc_timestamp
from statuspage.registry import ConnectionRegistry
from statuspage.router import BroadcastRouter
from statuspage.seed import demo_data
from statuspage.store import IncidentStore, ServiceStore
from statuspage.transport import SocketIOTransport

log = logging.getLogger(__name__)

SETTINGS_KEY = web.AppKey("settings", ServerSettings)
REGISTRY_KEY = web.AppKey("registry", ConnectionRegistry)
ROUTER_KEY = web.AppKey("router", BroadcastRouter)
GATEWAY_KEY = web.AppKey("gateway", SocketGateway)
SERVICES_KEY = web.AppKey("services", ServiceStore)
INCIDENTS_KEY = web.AppKey("incidents", IncidentStore)
STARTED_KEY = web.AppKey("started", float)

SOCKETIO_PATH = "socket.io"


# ── Error handling ───────────────────────────────────────


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Render package errors and unexpected failures as JSON."""
    try:
        return await handler(request)
    except StatusPageError as exc:
        return web.json_response({"error": exc.message}, status=exc.http_status)
    except web.HTTPNotFound:
        return web.json_response({"error": "Route not found"}, status=404)
    except web.HTTPException:
        raise
    except Exception:
        log.exception("Unhandled error on %s %s", request.method, request.path)
        return web.json_response({"error": "Internal server error"}, status=500)


async def _json_body(request: web.Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON") from None
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _scope(request: web.Request) -> Dict[str, Optional[str]]:
    return {
        "organization_id": request.query.get("organizationId") or None,
        "tenant_id": request.query.get("tenantId") or None,
    }


# ── Services ─────────────────────────────────────────────


async def list_services(request: web.Request) -> web.Response:
    services = request.app[SERVICES_KEY].list()
    return web.json_response([s.to_dict() for s in services])


async def get_service(request: web.Request) -> web.Response:
    service = request.app[SERVICES_KEY].get(request.match_info["id"])
    return web.json_response(service.to_dict())


async def create_service(request: web.Request) -> web.Response:
    body = await _json_body(request)
    service = request.app[SERVICES_KEY].create(
        name=body.get("name"),
        description=body.get("description"),
        status=body.get("status") or "operational",
        organization_id=body.get("organizationId"),
        tenant_id=body.get("tenantId"),
    )
    return web.json_response(service.to_dict(), status=201)


async def update_service(request: web.Request) -> web.Response:
    body = await _json_body(request)
    service = request.app[SERVICES_KEY].update(
        request.match_info["id"],
        name=body.get("name"),
        description=body.get("description"),
        status=body.get("status"),
        uptime=body.get("uptime"),
        organization_id=body.get("organizationId"),
        tenant_id=body.get("tenantId"),
    )
    return web.json_response(service.to_dict())


async def delete_service(request: web.Request) -> web.Response:
    request.app[SERVICES_KEY].delete(request.match_info["id"])
    return web.Response(status=204)


# ── Incidents ────────────────────────────────────────────


async def list_incidents(request: web.Request) -> web.Response:
    incidents = request.app[INCIDENTS_KEY].list()
    return web.json_response([i.to_dict() for i in incidents])


async def get_incident(request: web.Request) -> web.Response:
    incident = request.app[INCIDENTS_KEY].get(request.match_info["id"])
    return web.json_response(incident.to_dict())


async def create_incident(request: web.Request) -> web.Response:
    body = await _json_body(request)
    incident = request.app[INCIDENTS_KEY].create(
        title=body.get("title"),
        description=body.get("description"),
        impact=body.get("impact") or "minor",
        affected_services=body.get("affectedServices") or [],
        organization_id=body.get("organizationId"),
        tenant_id=body.get("tenantId"),
    )
    return web.json_response(incident.to_dict(), status=201)


async def update_incident(request: web.Request) -> web.Response:
    body = await _json_body(request)
    incident = request.app[INCIDENTS_KEY].update(
        request.match_info["id"],
        title=body.get("title"),
        description=body.get("description"),
        status=body.get("status"),
        impact=body.get("impact"),
        affected_services=body.get("affectedServices"),
        organization_id=body.get("organizationId"),
        tenant_id=body.get("tenantId"),
    )
    return web.json_response(incident.to_dict())


async def add_incident_update(request: web.Request) -> web.Response:
    body = await _json_body(request)
    entry = request.app[INCIDENTS_KEY].add_update(
        request.match_info["id"],
        status=body.get("status"),
        message=body.get("message"),
    )
    return web.json_response(entry.to_dict(), status=201)


async def delete_incident(request: web.Request) -> web.Response:
    request.app[INCIDENTS_KEY].delete(request.match_info["id"])
    return web.Response(status=204)


# ── Status / health ──────────────────────────────────────


async def system_status(request: web.Request) -> web.Response:
    snapshot = compute_status(
        request.app[SERVICES_KEY].list(),
        request.app[INCIDENTS_KEY].list(),
        **_scope(request),
    )
    return web.json_response(snapshot.to_dict())


async def health(request: web.Request) -> web.Response:
    return web.json_response({
        "status": "ok",
        "timestamp": utc_timestamp(),
        "uptime": round(time.monotonic() - request.app[STARTED_KEY], 3),
    })


# ── WebSocket introspection / manual broadcast ───────────


async def websocket_info(request: web.Request) -> web.Response:
    registry = request.app[REGISTRY_KEY]
    scope = _scope(request)

    clients = registry.list_all()
    if scope["organization_id"]:
        clients = [c for c in clients if c.organization_id == scope["organization_id"]]
    elif scope["tenant_id"]:
        clients = [c for c in clients if c.tenant_id == scope["tenant_id"]]

    return web.json_response({
        "connectedClients": registry.count_in_scope(**scope),
        "totalConnectedClients": registry.count_in_scope(),
        "clientsInfo": [c.to_dict() for c in clients],
        "websocketEndpoint": f"/{SOCKETIO_PATH}",
        "supportedEvents": SUPPORTED_EVENTS,
        "timestamp": utc_timestamp(),
    })


async def manual_broadcast(request: web.Request) -> web.Response:
    body = await _json_body(request)
    kind = body.get("type")
    data = body.get("data")
    if not kind or not data:
        raise ValidationError("Type and data are required")

    organization_id = body.get("organizationId") or None
    tenant_id = body.get("tenantId") or None
    recipients = request.app[ROUTER_KEY].dispatch(kind, data, organization_id, tenant_id)

    return web.json_response({
        "success": True,
        "message": "Broadcast sent successfully",
        "type": kind,
        "organizationId": organization_id,
        "tenantId": tenant_id,
        "recipients": recipients,
        "timestamp": utc_timestamp(),
    })


# ── Lifecycle ────────────────────────────────────────────


async def _close_sockets(app: web.Application) -> None:
    await app[GATEWAY_KEY].close_all()


async def _close_registry(app: web.Application) -> None:
    app[REGISTRY_KEY].close()


def create_app(settings: Optional[ServerSettings] = None) -> web.Application:
    """Build the application and its component graph."""
    settings = settings or ServerSettings()

    registry = ConnectionRegistry()
    sio = socketio.AsyncServer(
        async_mode="aiohttp",
        cors_allowed_origins="*" if "*" in settings.cors_origins else settings.cors_origins,
        ping_interval=settings.heartbeat,
        logger=False,
        engineio_logger=False,
    )
    transport = SocketIOTransport(sio)
    router = BroadcastRouter(registry, transport)

    bus = EventBus()
    bus.subscribe(router.handle_event)

    services = ServiceStore(bus)
    incidents = IncidentStore(bus)
    if settings.seed_demo_data:
        seeded_services, seeded_incidents = demo_data()
        services.load(seeded_services)
        incidents.load(seeded_incidents)

    app = web.Application(middlewares=[error_middleware])
    app[SETTINGS_KEY] = settings
    app[REGISTRY_KEY] = registry
    app[ROUTER_KEY] = router
    gateway = SocketGateway(registry, transport)
    gateway.attach(sio)
    app[GATEWAY_KEY] = gateway
    app[SERVICES_KEY] = services
    app[INCIDENTS_KEY] = incidents
    app[STARTED_KEY] = time.monotonic()

    app.router.add_get("/health", health)
    app.router.add_get("/api/health", health)

    app.router.add_get("/api/services", list_services)
    app.router.add_post("/api/services", create_service)
    app.router.add_get("/api/services/{id}", get_service)
    app.router.add_put("/api/services/{id}", update_service)
    app.router.add_delete("/api/services/{id}", delete_service)

    app.router.add_get("/api/incidents", list_incidents)
    app.router.add_post("/api/incidents", create_incident)
    app.router.add_get("/api/incidents/{id}", get_incident)
    app.router.add_put("/api/incidents/{id}", update_incident)
    app.router.add_delete("/api/incidents/{id}", delete_incident)
    app.router.add_post("/api/incidents/{id}/updates", add_incident_update)

    app.router.add_get("/api/status", system_status)
    app.router.add_get("/api/websocket/info", websocket_info)
    app.router.add_post("/api/websocket/broadcast", manual_broadcast)

    sio.attach(app, socketio_path=SOCKETIO_PATH)

    app.on_shutdown.append(_close_sockets)
    app.on_cleanup.append(_close_registry)
    return app
