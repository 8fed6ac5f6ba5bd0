from fastapi import APIRouter, Body, Depends, status
from typing import Any, Callable
import asyncio
import logging

from app.core.errors import DashboardError
from app.core.router_connection import resolve_router, router_connection
from app.schemas.mikrotik_dashboard import (
    DisconnectSessionRequest,
    PppoeSecretCreate,
    PppoeSecretUpdate,
    QueueCreate,
    QueueUpdate,
    parse_request,
)
from app.services import mikrotik_dashboard as ops
from app.services.mikrotik_api import MikroTikAPI, RouterOSError

logger = logging.getLogger(__name__)

# resolve_router runs before the body dependencies, so an unknown router is
# reported ahead of a bad body and neither opens a connection
router = APIRouter(tags=["mikrotik-dashboard"], dependencies=[Depends(resolve_router)])


async def _run(message: str, router_id: int, op: Callable, api: MikroTikAPI, *args) -> Any:
    """Run a blocking dashboard operation in the thread pool."""
    try:
        return await asyncio.to_thread(op, api, *args)
    except RouterOSError as e:
        logger.error(f"{message} (router {router_id}): {e}")
        raise DashboardError(status.HTTP_500_INTERNAL_SERVER_ERROR, message, str(e))


# ---------------------------------------------------------------------------
# Body dependencies
# ---------------------------------------------------------------------------

def _interface_name(interface_name: str) -> str:
    return ops.require_interface_name(interface_name)


def _disconnect_body(payload: Any = Body(default=None)) -> DisconnectSessionRequest:
    return parse_request(DisconnectSessionRequest, payload)


def _secret_create_body(payload: Any = Body(default=None)) -> PppoeSecretCreate:
    return parse_request(PppoeSecretCreate, payload)


def _secret_update_body(payload: Any = Body(default=None)) -> PppoeSecretUpdate:
    return parse_request(PppoeSecretUpdate, payload)


def _queue_create_body(payload: Any = Body(default=None)) -> QueueCreate:
    return parse_request(QueueCreate, payload)


def _queue_update_body(payload: Any = Body(default=None)) -> QueueUpdate:
    return parse_request(QueueUpdate, payload)


# ---------------------------------------------------------------------------
# Status, interfaces, traffic
# ---------------------------------------------------------------------------

@router.get("/status")
async def router_status(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch router status", router_id, ops.get_router_status, api)


@router.get("/interfaces")
async def router_interfaces(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch router interfaces", router_id, ops.get_router_interfaces, api)


@router.get("/traffic/{interface_name:path}")
async def interface_traffic(
    router_id: int,
    name: str = Depends(_interface_name),
    api: MikroTikAPI = Depends(router_connection),
):
    return await _run(f"Failed to fetch traffic for {name}", router_id, ops.get_interface_traffic, api, name)


# ---------------------------------------------------------------------------
# PPPoE
# ---------------------------------------------------------------------------

@router.get("/pppoe/active")
async def active_pppoe_sessions(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch active PPPoE sessions", router_id, ops.get_active_pppoe_sessions, api)


@router.post("/pppoe/active/disconnect")
async def disconnect_pppoe_session(
    router_id: int,
    body: DisconnectSessionRequest = Depends(_disconnect_body),
    api: MikroTikAPI = Depends(router_connection),
):
    result = await _run("Failed to disconnect PPPoE user", router_id, ops.disconnect_pppoe_session, api, body.id)
    logger.info(f"Disconnected PPPoE session {body.id} on router {router_id}")
    return result


@router.get("/pppoe/secrets")
async def pppoe_secrets(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch PPPoE secrets", router_id, ops.get_pppoe_secrets, api)


@router.post("/pppoe/secrets", status_code=status.HTTP_201_CREATED)
async def add_pppoe_secret(
    router_id: int,
    body: PppoeSecretCreate = Depends(_secret_create_body),
    api: MikroTikAPI = Depends(router_connection),
):
    result = await _run("Failed to add PPPoE secret", router_id, ops.add_pppoe_secret, api, body)
    logger.info(f"Added PPPoE secret {body.name} on router {router_id}")
    return result


@router.put("/pppoe/secrets/{secret_id}")
async def update_pppoe_secret(
    router_id: int,
    secret_id: str,
    body: PppoeSecretUpdate = Depends(_secret_update_body),
    api: MikroTikAPI = Depends(router_connection),
):
    return await _run("Failed to update PPPoE secret", router_id, ops.update_pppoe_secret, api, secret_id, body)


@router.delete("/pppoe/secrets/{secret_id}")
async def delete_pppoe_secret(router_id: int, secret_id: str, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to delete PPPoE secret", router_id, ops.delete_pppoe_secret, api, secret_id)


@router.get("/pppoe/profiles")
async def pppoe_profiles(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch PPPoE profiles", router_id, ops.get_pppoe_profiles, api)


@router.get("/pppoe/counts")
async def pppoe_user_counts(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch PPPoE user counts", router_id, ops.get_pppoe_user_counts, api)


# ---------------------------------------------------------------------------
# Simple queues
# ---------------------------------------------------------------------------

@router.get("/queues")
async def queues(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch queues", router_id, ops.get_queues, api)


@router.post("/queues", status_code=status.HTTP_201_CREATED)
async def add_queue(
    router_id: int,
    body: QueueCreate = Depends(_queue_create_body),
    api: MikroTikAPI = Depends(router_connection),
):
    result = await _run("Failed to add simple queue", router_id, ops.add_queue, api, body)
    logger.info(f"Added simple queue {body.name} -> {body.target} on router {router_id}")
    return result


@router.put("/queues/{queue_id}")
async def update_queue(
    router_id: int,
    queue_id: str,
    body: QueueUpdate = Depends(_queue_update_body),
    api: MikroTikAPI = Depends(router_connection),
):
    return await _run("Failed to update simple queue", router_id, ops.update_queue, api, queue_id, body)


@router.delete("/queues/{queue_id}")
async def delete_queue(router_id: int, queue_id: str, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to delete simple queue", router_id, ops.delete_queue, api, queue_id)


# ---------------------------------------------------------------------------
# Firewall, DHCP, logs, hotspot
# ---------------------------------------------------------------------------

@router.get("/firewall/filter")
async def firewall_filters(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch firewall filters", router_id, ops.get_firewall_filters, api)


@router.get("/dhcp-leases")
async def dhcp_leases(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch DHCP leases", router_id, ops.get_dhcp_leases, api)


@router.get("/static/counts")
async def static_user_counts(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch static user counts", router_id, ops.get_static_user_counts, api)


@router.get("/logs")
async def router_logs(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch logs", router_id, ops.get_logs, api)


@router.get("/hotspot/servers")
async def hotspot_servers(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch hotspot servers", router_id, ops.get_hotspot_servers, api)


@router.get("/hotspot/profiles")
async def hotspot_profiles(router_id: int, api: MikroTikAPI = Depends(router_connection)):
    return await _run("Failed to fetch hotspot profiles", router_id, ops.get_hotspot_profiles, api)
