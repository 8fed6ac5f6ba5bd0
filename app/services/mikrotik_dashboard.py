"""
Dashboard operations on a connected router.

Every function takes the client as its first argument and is blocking;
the HTTP layer runs them with asyncio.to_thread. RouterOS returns every
value as a string, so numbers and booleans are read through the to_int /
to_bool helpers below rather than coerced implicitly.
"""
import logging
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Protocol

from app.core.errors import DashboardValidationError
from app.schemas.mikrotik_dashboard import (
    PppoeSecretCreate,
    PppoeSecretUpdate,
    QueueCreate,
    QueueUpdate,
)

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"

Record = Dict[str, str]


class RouterClient(Protocol):
    def write(self, command: str, args: Optional[List[str]] = None) -> List[Record]:
        ...


# ---------------------------------------------------------------------------
# Typed accessors
# ---------------------------------------------------------------------------

def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def to_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "yes", "1", "on")


def bits_to_mbps(bits: Any) -> float:
    """bits/s -> Mbit/s rounded half-up to two decimals."""
    mbps = Decimal(to_int(bits)) / Decimal(1_000_000)
    return float(mbps.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _first(rows: List[Record]) -> Record:
    return dict(rows[0]) if rows else {}


# ---------------------------------------------------------------------------
# Status and interfaces
# ---------------------------------------------------------------------------

def _hdd_free(files: List[Record]) -> str:
    disk = next((f for f in files if f.get("name") == "disk"), None)
    if disk and disk.get("free-space"):
        return disk["free-space"]
    total = sum(
        to_int(f["free-space"])
        for f in files
        if f.get("free-space") and (f.get("type") == "disk" or "disk" in f.get("name", ""))
    )
    return str(total) if total > 0 else NOT_AVAILABLE


def _total_hdd_space(resources: Record, files: List[Record]) -> str:
    if resources.get("total-hdd-space"):
        return resources["total-hdd-space"]
    total = sum(to_int(f["size"]) for f in files if f.get("type") == "disk" and f.get("size"))
    return str(total) if total > 0 else NOT_AVAILABLE


def _primary_ip(addresses: List[Record]) -> str:
    if not addresses:
        return NOT_AVAILABLE
    for entry in addresses:
        address = entry.get("address", "")
        if (
            not to_bool(entry.get("dynamic"))
            and not to_bool(entry.get("invalid"))
            and not address.startswith("127.")
            and not address.startswith("169.254.")
        ):
            return address.split("/")[0]
    return addresses[0].get("address", "").split("/")[0] or NOT_AVAILABLE


def get_router_status(api: RouterClient) -> Dict[str, Any]:
    resources = _first(api.write("/system/resource/print"))
    files = api.write("/file/print")
    addresses = api.write("/ip/address/print")

    return {
        **resources,
        "hdd-free": _hdd_free(files),
        "total-hdd-space": _total_hdd_space(resources, files),
        "ip-address": _primary_ip(addresses),
    }


def get_router_interfaces(api: RouterClient) -> List[Dict[str, Any]]:
    interfaces = api.write("/interface/print")
    names = [i["name"] for i in interfaces if i.get("name")]
    if not names:
        return [dict(i) for i in interfaces]

    traffic = api.write("/interface/monitor-traffic", [
        "=interface=" + ",".join(names),
        "=once=",
    ])
    by_name = {t.get("name"): t for t in traffic if t.get("name")}

    combined = []
    for iface in interfaces:
        row = dict(iface)
        stats = by_name.get(iface.get("name"), {})
        if "rx-bits-per-second" in stats:
            row["rx-byte"] = stats["rx-bits-per-second"]
        if "tx-bits-per-second" in stats:
            row["tx-byte"] = stats["tx-bits-per-second"]
        combined.append(row)
    return combined


def require_interface_name(interface_name: Optional[str]) -> str:
    name = (interface_name or "").strip()
    if not name:
        raise DashboardValidationError("Interface name is required")
    return name


def get_interface_traffic(api: RouterClient, interface_name: Optional[str]) -> Dict[str, Any]:
    name = require_interface_name(interface_name)
    traffic = api.write("/interface/monitor-traffic", [
        "=interface=" + name,
        "=once=",
    ])
    sample = traffic[0] if traffic else {}
    data = {
        "interface": name,
        "rxMbps": bits_to_mbps(sample.get("rx-bits-per-second")),
        "txMbps": bits_to_mbps(sample.get("tx-bits-per-second")),
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
    }
    logger.debug(f"Traffic for {name}: {data}")
    return data


# ---------------------------------------------------------------------------
# PPPoE
# ---------------------------------------------------------------------------

def get_active_pppoe_sessions(api: RouterClient) -> List[Record]:
    return api.write("/ppp/active/print")


def disconnect_pppoe_session(api: RouterClient, session_id: str) -> Dict[str, str]:
    api.write("/ppp/active/remove", ["=.id=" + session_id])
    return {"message": "PPPoE user disconnected successfully"}


def get_pppoe_secrets(api: RouterClient) -> List[Record]:
    return api.write("/ppp/secret/print")


def get_pppoe_profiles(api: RouterClient) -> List[Record]:
    return api.write("/ppp/profile/print")


def add_pppoe_secret(api: RouterClient, secret: PppoeSecretCreate) -> List[Record]:
    return api.write("/ppp/secret/add", secret.router_args())


def update_pppoe_secret(api: RouterClient, secret_id: str, changes: PppoeSecretUpdate) -> List[Record]:
    return api.write("/ppp/secret/set", ["=.id=" + secret_id] + changes.router_args())


def delete_pppoe_secret(api: RouterClient, secret_id: str) -> Dict[str, str]:
    api.write("/ppp/secret/remove", ["=.id=" + secret_id])
    return {"message": "PPPoE secret removed successfully"}


def get_pppoe_user_counts(api: RouterClient) -> Dict[str, int]:
    active_sessions = api.write("/ppp/active/print")
    secrets = api.write("/ppp/secret/print")
    return {
        "activePppoe": len(active_sessions),
        "inactivePppoe": len(secrets) - len(active_sessions),
    }


# ---------------------------------------------------------------------------
# Simple queues
# ---------------------------------------------------------------------------

def get_queues(api: RouterClient) -> List[Record]:
    return api.write("/queue/simple/print")


def add_queue(api: RouterClient, queue: QueueCreate) -> List[Record]:
    return api.write("/queue/simple/add", queue.router_args())


def update_queue(api: RouterClient, queue_id: str, changes: QueueUpdate) -> List[Record]:
    return api.write("/queue/simple/set", ["=.id=" + queue_id] + changes.router_args())


def delete_queue(api: RouterClient, queue_id: str) -> Dict[str, str]:
    api.write("/queue/simple/remove", ["=.id=" + queue_id])
    return {"message": "Simple queue removed successfully"}


# ---------------------------------------------------------------------------
# Firewall, DHCP, logs, hotspot
# ---------------------------------------------------------------------------

def get_firewall_filters(api: RouterClient) -> List[Record]:
    return api.write("/ip/firewall/filter/print")


def get_dhcp_leases(api: RouterClient) -> List[Record]:
    return api.write("/ip/dhcp-server/lease/print")


def get_static_user_counts(api: RouterClient) -> Dict[str, int]:
    leases = api.write("/ip/dhcp-server/lease/print")
    active_static = 0
    inactive_static = 0
    for lease in leases:
        # only leases the router reports as dynamic=false are static
        if lease.get("dynamic") != "false":
            continue
        if lease.get("status") == "bound":
            active_static += 1
        else:
            inactive_static += 1
    return {"activeStatic": active_static, "inactiveStatic": inactive_static}


def get_logs(api: RouterClient) -> List[Record]:
    return api.write("/log/print")


def get_hotspot_servers(api: RouterClient) -> List[str]:
    return [s["name"] for s in api.write("/ip/hotspot/print") if s.get("name")]


def get_hotspot_profiles(api: RouterClient) -> List[str]:
    return [p["name"] for p in api.write("/ip/hotspot/user/profile/print") if p.get("name")]
